"""Core winery simulation context."""

import logging
from datetime import datetime
from typing import Callable, Optional

from .config import GameConfig, ValidationLevel
from .events import EventBus, EventType
from .exceptions import ConfigurationError
from .inventory import InventoryLedger
from .market import MarketModel
from .models import BottledWine, HarvestResult, SaleResult
from .persistence import PersistedState, SaveStore, utc_now
from .production import ProductionPipeline
from .scheduler import DayScheduler
from .stats import StatsTracker
from .vineyard import VineyardModel
from .weather import WeatherGenerator


class Winery:
    """Main simulation class: owns every subsystem and the command surface.

    Commands never raise for game-rule failures; they return ``False``,
    ``None`` or an empty result object.
    """

    def __init__(self, config: Optional[GameConfig] = None,
                 clock: Callable[[], datetime] = utc_now):
        """Initialize a new game from configuration."""
        self.config = config or GameConfig()
        self.logger = logging.getLogger("winesim.winery")
        self._check_config()

        cfg = self.config
        self.events = EventBus()
        self.market = MarketModel(cfg)
        self.weather = WeatherGenerator(cfg.weather, cfg.time.days_per_year)
        self.inventory = InventoryLedger(cfg, self.market)
        self.vineyard = VineyardModel(cfg, self.market)
        self.production = ProductionPipeline(cfg, self.market, self.inventory)
        self.scheduler = DayScheduler(
            cfg.time,
            weather=self.weather,
            vineyard=self.vineyard,
            production=self.production,
            inventory=self.inventory,
            market=self.market,
            events=self.events,
            clock=clock,
        )
        self.stats = StatsTracker(self.market, self.inventory)
        self.stats.attach(self.events)

    def _check_config(self) -> None:
        level = self.config.validation_level
        if level == ValidationLevel.PERMISSIVE:
            return
        result = self.config.validate()
        if result.is_valid and not result.warnings:
            return
        if level == ValidationLevel.STRICT and not result.is_valid:
            raise ConfigurationError(f"Invalid configuration: {'; '.join(result.errors)}")
        for error in result.errors:
            self.logger.warning(f"Configuration error ignored: {error}")
        for warning in result.warnings:
            self.logger.warning(f"Configuration warning: {warning}")

    # Clock

    @property
    def day(self) -> int:
        return self.scheduler.day

    @property
    def year(self) -> int:
        return self.scheduler.year

    @property
    def day_of_year(self) -> int:
        return self.scheduler.day_of_year

    @property
    def cash(self) -> int:
        return self.market.cash

    def new_game(self) -> None:
        """Reset every subsystem to a fresh start."""
        self.market.new_game()
        self.vineyard.new_game()
        self.production.new_game()
        self.inventory.new_game()
        self.scheduler.reset()
        self.stats.reset()
        self.logger.info(f"New game '{self.config.name}' with {self.cash} cash")

    def advance_by(self, real_seconds: float) -> int:
        return self.scheduler.advance_by(real_seconds)

    def simulate_one_day(self) -> int:
        return self.scheduler.simulate_one_day()

    def simulate_days(self, days: int) -> int:
        for _ in range(max(0, days)):
            self.scheduler.simulate_one_day()
        return self.day

    def on_day_changed(self, callback: Callable[[], None]) -> None:
        self.events.on_day_changed(callback)

    def off_day_changed(self, callback: Callable[[], None]) -> None:
        self.events.off_day_changed(callback)

    # Vineyard commands

    def buy_plot(self, index: int) -> bool:
        return self.vineyard.buy_plot(index)

    def plant(self, index: int, variety: str) -> bool:
        return self.vineyard.plant(index, variety, self.year)

    def readiness(self, index: int) -> float:
        return self.vineyard.readiness(index)

    def harvest(self, index: int, yeast: Optional[str] = None) -> HarvestResult:
        """Harvest a plot and route the grapes to a tank or the wholesale market."""
        readiness = self.vineyard.readiness(index)
        if yeast is not None and self.config.get_yeast(yeast) is None:
            self.logger.warning(f"Harvest refused: unknown yeast '{yeast}'")
            return HarvestResult(disposition="refused", readiness=readiness)

        batch = self.vineyard.harvest(index, self.year, self.scheduler.today)
        if batch is None:
            return HarvestResult(disposition="refused", readiness=readiness)
        self.events.emit(EventType.HARVEST, self.day, {"plot": index, "variety": batch.variety, "kg": batch.kg})

        tank_id = self.production.receive_harvest(batch, yeast)
        if tank_id is not None:
            return HarvestResult(disposition="tank", batch=batch, tank_id=tank_id, readiness=readiness)

        revenue = self.market.wholesale_value(batch.kg)
        self.market.earn(revenue)
        self.logger.info(f"No tank for {batch.kg} kg {batch.variety}; sold wholesale for {revenue}")
        self.events.emit(EventType.WHOLESALE, self.day, {"variety": batch.variety, "kg": batch.kg, "revenue": revenue})
        return HarvestResult(disposition="wholesale", batch=batch, revenue=revenue, readiness=readiness)

    # Production commands

    def buy_tank(self, capacity_l: int) -> bool:
        return self.production.buy_tank(capacity_l) is not None

    def buy_barrel(self) -> bool:
        return self.production.buy_barrel() is not None

    def buy_bottling_equipment(self) -> bool:
        return self.production.buy_bottling_equipment()

    def rack_to_barrel(self, tank_id: str) -> bool:
        return self.production.rack_to_barrel(tank_id) is not None

    def bottle(self, barrel_id: str) -> Optional[BottledWine]:
        wine = self.production.bottle(barrel_id, self.day)
        if wine is not None:
            self.events.emit(EventType.BOTTLED, self.day, {
                "variety": wine.variety, "vintage": wine.vintage_year,
                "bottles": wine.bottles, "quality": wine.initial_quality,
            })
        return wine

    # Inventory commands

    def sell(self, variety: str, vintage_year: int, quantity: int) -> SaleResult:
        result = self.inventory.sell(variety, vintage_year, quantity)
        if result.review_score is not None:
            self.events.emit(EventType.REVIEW, self.day, {
                "variety": variety, "vintage": vintage_year, "score": result.review_score,
            })
        if result.success:
            self.events.emit(EventType.SALE, self.day, {
                "variety": variety, "vintage": vintage_year,
                "units": result.units_sold, "revenue": result.revenue,
            })
        return result

    # Persistence

    def save_state(self) -> PersistedState:
        return self.scheduler.save()

    def load_state(self, state: PersistedState, now: Optional[datetime] = None) -> int:
        """Restore a saved session; returns the number of catch-up days replayed."""
        self.stats.reset()
        return self.scheduler.load(state, now)

    def save(self, store: SaveStore) -> bool:
        return store.save(self.save_state())

    def load(self, store: SaveStore, now: Optional[datetime] = None) -> bool:
        """Load from ``store``; a missing or broken save leaves the game as is."""
        state = store.load()
        if state is None:
            return False
        self.load_state(state, now)
        return True
