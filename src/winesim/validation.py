"""Validation utilities for persisted simulation state."""

from typing import Any, Dict, Iterable, Optional, Union, Type, Tuple

from .exceptions import ValidationError, ValidationTypeError, ValidationRangeError

Number = (int, float)


class Validator:
    """Base validator class."""

    @staticmethod
    def validate_type(value: Any, expected_type: Union[Type, Tuple[Type, ...]], name: str = "value") -> None:
        """Validate value type."""
        if isinstance(value, bool) and expected_type in (Number, int, float):
            raise ValidationTypeError(f"{name}: expected a number, got bool")
        if not isinstance(value, expected_type):
            expected = (
                expected_type.__name__ if isinstance(expected_type, type)
                else "/".join(t.__name__ for t in expected_type)
            )
            raise ValidationTypeError(
                f"{name}: expected type {expected}, got {type(value).__name__}"
            )

    @staticmethod
    def validate_range(
        value: Union[int, float],
        min_value: Optional[Union[int, float]] = None,
        max_value: Optional[Union[int, float]] = None,
        name: str = "value"
    ) -> None:
        """Validate numeric range."""
        if min_value is not None and value < min_value:
            raise ValidationRangeError(f"{name}: {value} is below minimum {min_value}")

        if max_value is not None and value > max_value:
            raise ValidationRangeError(f"{name}: {value} exceeds maximum {max_value}")

    @staticmethod
    def validate_required(data: Dict[str, Any], keys: Iterable[str], name: str) -> None:
        if not isinstance(data, dict):
            raise ValidationTypeError(f"{name}: expected an object, got {type(data).__name__}")
        missing = [key for key in keys if key not in data]
        if missing:
            raise ValidationError(f"{name}: missing fields {missing}")


class StateValidator(Validator):
    """Field checks for the persisted state layout."""

    @staticmethod
    def validate_market(data: Dict[str, Any]) -> None:
        Validator.validate_required(data, ("cash", "market_index", "brand_level"), "market")
        Validator.validate_type(data["cash"], int, "market.cash")
        Validator.validate_type(data["market_index"], Number, "market.market_index")
        Validator.validate_range(data["market_index"], min_value=0, name="market.market_index")
        Validator.validate_type(data["brand_level"], Number, "market.brand_level")
        Validator.validate_range(data["brand_level"], min_value=0, name="market.brand_level")

    @staticmethod
    def validate_tile(data: Dict[str, Any], index: int) -> None:
        name = f"plots[{index}]"
        Validator.validate_required(data, ("owned",), name)
        Validator.validate_type(data["owned"], bool, f"{name}.owned")
        variety = data.get("planted_variety")
        if variety is not None:
            Validator.validate_type(variety, str, f"{name}.planted_variety")
        for key in ("soil_moisture", "water_stress", "disease_pressure"):
            if key in data:
                Validator.validate_type(data[key], Number, f"{name}.{key}")
                Validator.validate_range(data[key], 0, 1, f"{name}.{key}")
        for key in ("phenolic", "color_index", "aroma_index"):
            if key in data:
                Validator.validate_type(data[key], Number, f"{name}.{key}")
                Validator.validate_range(data[key], 0, 100, f"{name}.{key}")

    @staticmethod
    def validate_tank(data: Dict[str, Any], index: int) -> None:
        name = f"tanks[{index}]"
        Validator.validate_required(data, ("id", "capacity_l"), name)
        Validator.validate_type(data["capacity_l"], int, f"{name}.capacity_l")
        Validator.validate_range(data["capacity_l"], min_value=1, name=f"{name}.capacity_l")
        ferment = data.get("ferment")
        if ferment is not None:
            Validator.validate_required(
                ferment,
                ("variety", "vintage_year", "start_brix", "current_brix", "ph", "phenolic",
                 "alcohol_abv", "yeast", "days_fermenting", "target_days", "liters"),
                f"{name}.ferment",
            )
            Validator.validate_range(ferment["liters"], 0, data["capacity_l"], f"{name}.ferment.liters")

    @staticmethod
    def validate_barrel(data: Dict[str, Any], index: int) -> None:
        name = f"barrels[{index}]"
        Validator.validate_required(data, ("id", "capacity_l"), name)
        Validator.validate_type(data["capacity_l"], int, f"{name}.capacity_l")
        aging = data.get("aging")
        if aging is not None:
            Validator.validate_required(
                aging, ("variety", "vintage_year", "liters", "days_in_barrel", "craft_quality"),
                f"{name}.aging",
            )
            Validator.validate_range(aging["liters"], 0, data["capacity_l"], f"{name}.aging.liters")

    @staticmethod
    def validate_stock_entry(data: Dict[str, Any], index: int) -> None:
        name = f"inventory[{index}]"
        Validator.validate_required(data, ("bottles", "quality"), name)
        if not data.get("variety") and not data.get("id"):
            raise ValidationError(f"{name}: needs a variety or an id")
        Validator.validate_type(data["bottles"], int, f"{name}.bottles")
        Validator.validate_range(data["bottles"], min_value=0, name=f"{name}.bottles")
        Validator.validate_type(data["quality"], Number, f"{name}.quality")
        Validator.validate_range(data["quality"], 0, 100, f"{name}.quality")
