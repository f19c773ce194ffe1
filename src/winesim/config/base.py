"""
Configuration base classes for the wine simulation.
Provides hierarchical, validatable configuration with YAML/JSON round-tripping.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields, asdict
from typing import Dict, Any, Union, List, Type, TypeVar
from pathlib import Path
import yaml
import json
from enum import Enum
import logging


class ConfigFormat(Enum):
    """Supported configuration file formats."""
    YAML = "yaml"
    JSON = "json"


class ValidationLevel(Enum):
    """Configuration validation levels."""
    STRICT = "strict"      # Fail on any validation error
    WARN = "warn"          # Log warnings but continue
    PERMISSIVE = "permissive"  # Ignore validation errors


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add a validation error."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a validation warning."""
        self.warnings.append(message)

    def extend(self, other: 'ConfigValidationResult', prefix: str = "") -> None:
        """Fold another result into this one, prefixing its messages."""
        label = f"{prefix}: " if prefix else ""
        for error in other.errors:
            self.add_error(f"{label}{error}")
        for warning in other.warnings:
            self.add_warning(f"{label}{warning}")


S = TypeVar("S", bound="SectionConfig")


class SectionConfig:
    """Mixin for flat dataclass sections: dictionary conversion by field name."""

    def validate(self) -> ConfigValidationResult:
        return ConfigValidationResult(is_valid=True)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls: Type[S], data: Dict[str, Any]) -> S:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logging.getLogger("winesim.config").warning(
                f"Ignoring unknown {cls.__name__} keys: {sorted(unknown)}"
            )
        return cls(**{k: v for k, v in data.items() if k in known})

    @staticmethod
    def _check_positive(result: ConfigValidationResult, name: str, value: float) -> None:
        if value <= 0:
            result.add_error(f"{name} must be > 0, got {value}")

    @staticmethod
    def _check_unit(result: ConfigValidationResult, name: str, value: float) -> None:
        if not 0 <= value <= 1:
            result.add_error(f"{name} must be between 0 and 1, got {value}")

    @staticmethod
    def _check_order(result: ConfigValidationResult, low_name: str, low: float,
                     high_name: str, high: float) -> None:
        if high <= low:
            result.add_error(f"{high_name} ({high}) must be greater than {low_name} ({low})")


class BaseConfig(ABC):
    """Abstract base class for root configuration objects."""

    def __init__(self, validation_level: ValidationLevel = ValidationLevel.STRICT):
        self.validation_level = validation_level
        self._logger = logging.getLogger(f"winesim.config.{self.__class__.__name__}")

    @abstractmethod
    def validate(self) -> ConfigValidationResult:
        """Validate the configuration."""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        pass

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseConfig':
        """Create configuration from dictionary."""
        pass

    def save_to_file(self, file_path: Union[str, Path], format: ConfigFormat = ConfigFormat.YAML) -> None:
        """Save configuration to file."""
        file_path = Path(file_path)
        data = self.to_dict()

        if format == ConfigFormat.YAML:
            with open(file_path, 'w') as f:
                yaml.safe_dump(data, f, default_flow_style=False, indent=2)
        elif format == ConfigFormat.JSON:
            with open(file_path, 'w') as f:
                json.dump(data, f, indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> 'BaseConfig':
        """Load configuration from file."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        if file_path.suffix.lower() in ['.yaml', '.yml']:
            with open(file_path, 'r') as f:
                data = yaml.safe_load(f)
        elif file_path.suffix.lower() == '.json':
            with open(file_path, 'r') as f:
                data = json.load(f)
        else:
            raise ValueError(f"Unsupported file format: {file_path.suffix}")

        return cls.from_dict(data or {})

    def merge(self, other: 'BaseConfig') -> 'BaseConfig':
        """Merge this configuration with another."""
        self_dict = self.to_dict()
        other_dict = other.to_dict()
        merged = self._deep_merge(self_dict, other_dict)
        return self.__class__.from_dict(merged)

    @staticmethod
    def _deep_merge(dict1: Dict[str, Any], dict2: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = dict1.copy()

        for key, value in dict2.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = BaseConfig._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
