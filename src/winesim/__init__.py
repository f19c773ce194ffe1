"""Wine estate simulation library initialization."""

from .core import Winery
from .config import GameConfig
from .exceptions import WineSimError
from .scheduler import DayScheduler
from .persistence import PersistedState, SaveStore

__version__ = "0.1.0"
__author__ = "Wine Simulation Team"
__license__ = "MIT"

__all__ = [
    "Winery",
    "GameConfig",
    "WineSimError",
    "DayScheduler",
    "PersistedState",
    "SaveStore",
]
