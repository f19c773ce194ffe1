"""Day scheduler: real time to whole simulated days, in a fixed subsystem order."""

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from .config import TimeConfig
from .events import EventBus
from .exceptions import SimulationError
from .models import DailyWeather
from .persistence import PersistedState, utc_now

# Floor on the real-time length of one day
MIN_SECONDS_PER_DAY = 1e-3


class DayScheduler:
    """Drives Weather, Vineyard, Production, Inventory and Market once per day.

    Any subsystem may be absent; its slice of the day is skipped. A slice that
    raises is logged and the rest of the day still runs.
    """

    def __init__(
        self,
        time_config: Optional[TimeConfig] = None,
        weather=None,
        vineyard=None,
        production=None,
        inventory=None,
        market=None,
        events: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.time_config = time_config or TimeConfig()
        self.weather = weather
        self.vineyard = vineyard
        self.production = production
        self.inventory = inventory
        self.market = market
        self.events = events or EventBus()
        self.clock = clock

        self.day = 0
        self.today: Optional[DailyWeather] = None
        self._accumulated_seconds = 0.0
        self.logger = logging.getLogger("winesim.scheduler")

    @property
    def days_per_year(self) -> int:
        return max(1, self.time_config.days_per_year)

    @property
    def seconds_per_day(self) -> float:
        return max(MIN_SECONDS_PER_DAY, self.time_config.seconds_per_day)

    @property
    def year(self) -> int:
        return self.day // self.days_per_year

    @property
    def day_of_year(self) -> int:
        return self.day % self.days_per_year

    def reset(self) -> None:
        """Back to day 0 with no weather and no partial day carried over."""
        self.day = 0
        self.today = None
        self._accumulated_seconds = 0.0

    # Advancing time

    def advance_by(self, real_seconds: float) -> int:
        """Accumulate real time and run every whole day it completes."""
        if real_seconds <= 0:
            return 0
        seconds_per_day = self.seconds_per_day
        self._accumulated_seconds += real_seconds
        days = int(self._accumulated_seconds // seconds_per_day)
        self._accumulated_seconds -= days * seconds_per_day
        for _ in range(days):
            self.simulate_one_day()
        return days

    def simulate_one_day(self) -> int:
        """Run one ordered tick, bump the day counter and notify observers."""
        year, day_of_year = self.year, self.day_of_year

        weather = None
        if self.weather is not None:
            weather = self._run_slice("weather", self.weather.tick, year, day_of_year)
        self.today = weather

        if self.vineyard is not None and weather is not None:
            self._run_slice("vineyard", self.vineyard.tick, weather, day_of_year, self.days_per_year)
        if self.production is not None:
            self._run_slice("production", self.production.tick)
        if self.inventory is not None:
            self._run_slice("inventory", self.inventory.tick, self.day)
        if self.market is not None:
            self._run_slice("market", self.market.tick, self.day)

        self.day += 1
        self.logger.debug(f"Day {self.day} (year {self.year}, day {self.day_of_year})")
        self.events.notify_day_changed(self.day)
        return self.day

    def _run_slice(self, name: str, func: Callable[..., Any], *args) -> Any:
        try:
            return func(*args)
        except Exception as e:
            self.logger.exception(f"{name} tick failed on day {self.day}: {e}")
            return None

    # Save and restore

    def save(self) -> PersistedState:
        """Snapshot every subsystem into the persisted layout."""
        if self.market is None:
            raise SimulationError("Cannot save without a market model")
        return PersistedState(
            day=self.day,
            saved_at=self.clock(),
            market=self.market.snapshot(),
            plots=self.vineyard.tiles() if self.vineyard is not None else [],
            tanks=self.production.tank_snapshot() if self.production is not None else [],
            barrels=self.production.barrel_snapshot() if self.production is not None else [],
            has_bottling_equipment=(
                self.production.has_bottling_equipment if self.production is not None else False
            ),
            inventory=self.inventory.entries() if self.inventory is not None else [],
        )

    def load(self, state: PersistedState, now: Optional[datetime] = None) -> int:
        """Restore ``state`` and replay offline days, up to the catch-up cap.

        Returns the number of days replayed.
        """
        if self.market is not None:
            self.market.load_state(state.market)
        if self.vineyard is not None:
            self.vineyard.load_tiles(state.plots)
        if self.production is not None:
            self.production.load(state.tanks, state.barrels, state.has_bottling_equipment)
        if self.inventory is not None:
            self.inventory.load_entries(state.inventory)
        self.day = state.day
        self.today = None
        if self.weather is not None and self.day > 0:
            last = self.day - 1
            self.today = self.weather.weather_for_day(last // self.days_per_year,
                                                      last % self.days_per_year)
        self._accumulated_seconds = 0.0

        now = now or self.clock()
        elapsed = (now - state.saved_at).total_seconds()
        owed = int(elapsed // self.seconds_per_day) if elapsed > 0 else 0
        if owed < 1:
            return 0

        replay = min(owed, max(0, self.time_config.offline_catchup_cap_days))
        if replay < owed:
            self.logger.info(f"Offline for {owed} days; replaying {replay}")
        for _ in range(replay):
            self.simulate_one_day()
        return replay
