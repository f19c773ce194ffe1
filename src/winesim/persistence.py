"""
Persisted game state and a JSON save store.

``PersistedState`` is the lossless serialization contract for a session.
``SaveStore`` does the file plumbing and never lets an I/O or decoding
failure escape: problems are logged and reported as ``False``/``None``.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

from .exceptions import PersistenceError, ValidationError
from .models import (
    Barrel, BottleStockEntry, MarketState, Tank, VineyardTile, stock_id
)
from .validation import StateValidator, Validator

SAVE_VERSION = 2

logger = logging.getLogger("winesim.persistence")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PersistedState:
    """Everything needed to resume a session."""
    day: int
    saved_at: datetime
    market: MarketState
    plots: List[VineyardTile] = field(default_factory=list)
    tanks: List[Tank] = field(default_factory=list)
    barrels: List[Barrel] = field(default_factory=list)
    has_bottling_equipment: bool = False
    inventory: List[BottleStockEntry] = field(default_factory=list)
    version: int = SAVE_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "day": self.day,
            "saved_at": self.saved_at.isoformat(),
            "market": self.market.to_dict(),
            "plots": [tile.to_dict() for tile in self.plots],
            "tanks": [tank.to_dict() for tank in self.tanks],
            "barrels": [barrel.to_dict() for barrel in self.barrels],
            "has_bottling_equipment": self.has_bottling_equipment,
            "inventory": [entry.to_dict() for entry in self.inventory],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PersistedState':
        """Decode and validate a saved dictionary.

        Ledger rows saved with the older ``Variety_Vintage`` ids, or without
        an id, are rebuilt onto the ``Variety|Vintage`` key.

        Raises:
            ValidationError: if a field is missing, mistyped or out of range
        """
        Validator.validate_required(data, ("day", "saved_at", "market"), "state")
        Validator.validate_type(data["day"], int, "day")
        Validator.validate_range(data["day"], min_value=0, name="day")
        StateValidator.validate_market(data["market"])

        plots = data.get("plots") or []
        tanks = data.get("tanks") or []
        barrels = data.get("barrels") or []
        inventory = data.get("inventory") or []
        for i, tile in enumerate(plots):
            StateValidator.validate_tile(tile, i)
        for i, tank in enumerate(tanks):
            StateValidator.validate_tank(tank, i)
        for i, barrel in enumerate(barrels):
            StateValidator.validate_barrel(barrel, i)
        for i, entry in enumerate(inventory):
            StateValidator.validate_stock_entry(entry, i)

        try:
            saved_at = datetime.fromisoformat(data["saved_at"])
        except (TypeError, ValueError) as e:
            raise ValidationError(f"saved_at: {e}")
        if saved_at.tzinfo is None:
            saved_at = saved_at.replace(tzinfo=timezone.utc)

        try:
            entries = [BottleStockEntry.from_dict(entry) for entry in inventory]
            state = cls(
                day=data["day"],
                saved_at=saved_at,
                market=MarketState.from_dict(data["market"]),
                plots=[VineyardTile.from_dict(tile) for tile in plots],
                tanks=[Tank.from_dict(tank) for tank in tanks],
                barrels=[Barrel.from_dict(barrel) for barrel in barrels],
                has_bottling_equipment=bool(data.get("has_bottling_equipment", False)),
                inventory=entries,
                version=int(data.get("version", 1)),
            )
        except (TypeError, KeyError) as e:
            raise ValidationError(f"Malformed saved state: {e}")

        migrated = sum(
            1 for raw, entry in zip(inventory, entries)
            if raw.get("id") != stock_id(entry.variety, entry.vintage_year)
        )
        if migrated:
            logger.info(f"Migrated {migrated} ledger ids to the Variety|Vintage form")
        return state


class SaveStore:
    """JSON file store for a single save slot."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, state: PersistedState) -> bool:
        """Write ``state``; returns False (and logs) if the write fails."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "w") as f:
                json.dump(state.to_dict(), f, indent=2)
            tmp.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Save skipped, could not write {self.path}: {e}")
            return False
        logger.info(f"Saved day {state.day} to {self.path}")
        return True

    def load(self) -> Optional[PersistedState]:
        """Read the slot; any failure is treated as no save present."""
        try:
            return self.load_or_raise()
        except PersistenceError as e:
            logger.warning(f"No usable save: {e}")
            return None

    def load_or_raise(self) -> PersistedState:
        """Read the slot.

        Raises:
            PersistenceError: if the file is missing, unreadable or invalid
        """
        if not self.exists():
            raise PersistenceError(f"Save file not found: {self.path}")
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            return PersistedState.from_dict(data)
        except (OSError, ValueError, TypeError, KeyError, ValidationError) as e:
            raise PersistenceError(f"Could not load {self.path}: {e}") from e

    def delete(self) -> bool:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not delete {self.path}: {e}")
            return False
        return True
