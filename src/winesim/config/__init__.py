"""
Configuration package for the wine simulation.
Provides hierarchical and validatable configuration management.
"""

from .base import (
    BaseConfig,
    SectionConfig,
    ConfigFormat,
    ValidationLevel,
    ConfigValidationResult,
)

from .game_config import (
    WorldConfig,
    EconomyConfig,
    MarketConfig,
    TimeConfig,
    VineyardConfig,
    FermentationConfig,
    AgingConfig,
    BottlingConfig,
    WeatherConfig,
    MonitoringConfig,
    VarietyConfig,
    YeastConfig,
    GameConfig,
    default_varieties,
    default_yeasts,
)

__all__ = [
    # Base configuration classes
    "BaseConfig",
    "SectionConfig",
    "ConfigFormat",
    "ValidationLevel",
    "ConfigValidationResult",

    # Sections
    "WorldConfig",
    "EconomyConfig",
    "MarketConfig",
    "TimeConfig",
    "VineyardConfig",
    "FermentationConfig",
    "AgingConfig",
    "BottlingConfig",
    "WeatherConfig",
    "MonitoringConfig",

    # Catalogs
    "VarietyConfig",
    "YeastConfig",
    "default_varieties",
    "default_yeasts",

    # Main configuration class
    "GameConfig",
]
