"""
Fermentation, barrel aging and bottling.

Tanks and barrels are small Empty/Busy state machines. Incoming batches and
racked wine go to the smallest empty container that holds the whole volume.
"""

import uuid
import logging
from typing import List, Optional, Tuple

import numpy as np

from .config import GameConfig, VarietyConfig
from .curves import clamp01, lerp
from .market import MarketModel
from .models import (
    AgingBatch, Barrel, BottledWine, FermentationBatch, GrapeBatch, Tank
)


def best_fit(capacities: List[Tuple[int, int]], volume: int) -> Optional[int]:
    """Position of the smallest capacity that holds ``volume``.

    ``capacities`` is a list of ``(position, capacity)`` for empty containers.
    Ties keep the earliest position.
    """
    best_position = None
    best_capacity = None
    for position, capacity in capacities:
        if capacity < volume:
            continue
        if best_capacity is None or capacity < best_capacity:
            best_position, best_capacity = position, capacity
    return best_position


def sweet_spot_factor(days: int, start: float, end: float, peak_bonus: float) -> float:
    """Daily oak-gain multiplier: peaks mid-window, falls off linearly outside it."""
    center = (start + end) / 2.0
    half_width = max(1.0, (end - start) / 2.0)
    if start <= days <= end:
        return 1.0 + peak_bonus * (1.0 - abs(days - center) / half_width)
    distance = start - days if days < start else days - end
    return lerp(1.0, 0.5, distance / max(1.0, end - start))


def bottling_curve(days: int, start: float, end: float, penalty_per_day: float,
                   in_window: float = 1.1, low: float = 0.6, high: float = 1.2) -> float:
    """Quality multiplier applied at bottling from time spent in the barrel."""
    if days < start:
        curve = 1.0 - (start - days) * (penalty_per_day / 100.0)
    elif days > end:
        curve = 1.0 - (days - end) * (penalty_per_day / 100.0)
    else:
        curve = in_window
    return float(np.clip(curve, low, high))


class ProductionPipeline:
    """Owns tanks, barrels and the bottling machine."""

    def __init__(self, config: GameConfig, market: MarketModel, inventory=None):
        self.config = config
        self.market = market
        self.inventory = inventory
        self.logger = logging.getLogger("winesim.production")

        self.tanks: List[Tank] = []
        self.barrels: List[Barrel] = []
        self.has_bottling_equipment = False

    def new_game(self) -> None:
        self.tanks = []
        self.barrels = []
        self.has_bottling_equipment = False

    def load(self, tanks: List[Tank], barrels: List[Barrel], has_bottling_equipment: bool) -> None:
        self.tanks = [Tank.from_dict(t.to_dict()) for t in tanks]
        self.barrels = [Barrel.from_dict(b.to_dict()) for b in barrels]
        self.has_bottling_equipment = bool(has_bottling_equipment)

    # Lookups

    def get_tank(self, tank_id: str) -> Optional[Tank]:
        return next((t for t in self.tanks if t.id == tank_id), None)

    def get_barrel(self, barrel_id: str) -> Optional[Barrel]:
        return next((b for b in self.barrels if b.id == barrel_id), None)

    # Purchases

    def buy_tank(self, capacity_l: int) -> Optional[str]:
        """Buy a tank of a listed size. Returns the new tank id."""
        price = self.config.economy.tank_prices.get(capacity_l)
        if price is None:
            self.logger.warning(f"No {capacity_l} L tank for sale")
            return None
        if not self.market.try_spend(price):
            return None
        tank = Tank(id=str(uuid.uuid4()), capacity_l=int(capacity_l))
        self.tanks.append(tank)
        self.logger.info(f"Bought {capacity_l} L tank {tank.id}")
        return tank.id

    def buy_barrel(self) -> Optional[str]:
        if not self.market.try_spend(self.config.economy.barrel_price):
            return None
        barrel = Barrel(id=str(uuid.uuid4()), capacity_l=int(self.config.aging.barrel_volume_l))
        self.barrels.append(barrel)
        self.logger.info(f"Bought {barrel.capacity_l} L barrel {barrel.id}")
        return barrel.id

    def buy_bottling_equipment(self) -> bool:
        if self.has_bottling_equipment:
            self.logger.warning("Bottling machine already owned")
            return False
        if not self.market.try_spend(self.config.economy.bottling_machine_price):
            return False
        self.has_bottling_equipment = True
        self.logger.info("Bought bottling machine")
        return True

    # Fermentation

    def receive_harvest(self, batch: GrapeBatch, yeast_name: Optional[str] = None) -> Optional[str]:
        """Start fermenting ``batch`` in the best-fitting empty tank.

        Returns the tank id, or None when the yeast is unknown or no empty
        tank is large enough. Nothing changes on failure.
        """
        yeast = self.config.get_yeast(yeast_name)
        if yeast is None:
            self.logger.warning(f"Unknown yeast '{yeast_name}'")
            return None

        liters = batch.liters
        empty = [(i, t.capacity_l) for i, t in enumerate(self.tanks) if t.ferment is None]
        position = best_fit(empty, liters)
        if position is None:
            self.logger.info(f"No empty tank fits {liters} L of {batch.variety}")
            return None

        fermentation = self.config.fermentation
        target = int(round(
            lerp(fermentation.min_ferment_days, fermentation.max_ferment_days,
                 1.0 - clamp01(batch.brix / 26.0)) / max(0.5, yeast.speed)
        ))
        target = int(np.clip(target, fermentation.min_ferment_days, fermentation.max_ferment_days))

        tank = self.tanks[position]
        tank.ferment = FermentationBatch(
            variety=batch.variety,
            vintage_year=batch.vintage_year,
            start_brix=batch.brix,
            current_brix=batch.brix,
            ph=batch.ph,
            phenolic=batch.phenolic,
            alcohol_abv=0.0,
            yeast=yeast.name,
            days_fermenting=0,
            target_days=target,
            liters=liters,
        )
        self.logger.info(
            f"Fermenting {liters} L {batch.variety} in {tank.capacity_l} L tank {tank.id} "
            f"with {yeast.name} for {target} days"
        )
        return tank.id

    def can_rack_to_barrel(self, tank_id: str) -> bool:
        tank = self.get_tank(tank_id)
        if tank is None or tank.ferment is None:
            return False
        f = tank.ferment
        return (f.days_fermenting >= f.target_days
                or f.current_brix <= self.config.fermentation.done_brix_threshold)

    def rack_to_barrel(self, tank_id: str) -> Optional[str]:
        """Move a finished tank's whole batch into the best-fitting empty barrel."""
        if not self.can_rack_to_barrel(tank_id):
            self.logger.warning(f"Tank {tank_id} is not ready to rack")
            return None
        tank = self.get_tank(tank_id)
        f = tank.ferment

        empty = [(i, b.capacity_l) for i, b in enumerate(self.barrels) if b.aging is None]
        position = best_fit(empty, f.liters)
        if position is None:
            self.logger.warning(f"No empty barrel holds {f.liters} L from tank {tank_id}")
            return None

        craft = self.config.fermentation.craft_baseline
        yeast = self.config.get_yeast(f.yeast)
        if yeast is not None:
            craft += yeast.aroma

        barrel = self.barrels[position]
        barrel.aging = AgingBatch(
            variety=f.variety,
            vintage_year=f.vintage_year,
            liters=f.liters,
            days_in_barrel=0,
            craft_quality=craft,
        )
        tank.ferment = None
        self.logger.info(f"Racked {barrel.aging.liters} L {f.variety} from tank {tank_id} to barrel {barrel.id}")
        return barrel.id

    # Bottling

    def can_bottle(self, barrel_id: str) -> bool:
        barrel = self.get_barrel(barrel_id)
        return (self.has_bottling_equipment and barrel is not None
                and barrel.aging is not None and barrel.aging.liters > 0)

    def sweet_spot_window(self, variety: Optional[VarietyConfig]) -> Tuple[float, float]:
        if variety is not None:
            return variety.sweet_spot_start, variety.sweet_spot_end
        return self.config.aging.sweet_spot_days_min, self.config.aging.sweet_spot_days_max

    def bottle(self, barrel_id: str, day: int = 0) -> Optional[BottledWine]:
        """Bottle a barrel and pass the bottles to the inventory ledger."""
        if not self.can_bottle(barrel_id):
            self.logger.warning(f"Cannot bottle barrel {barrel_id}")
            return None
        barrel = self.get_barrel(barrel_id)
        aging = barrel.aging
        variety = self.config.get_variety(aging.variety)
        if variety is None:
            self.logger.warning(f"Cannot bottle barrel {barrel_id}: unknown variety '{aging.variety}'")
            return None

        cfg = self.config.aging
        start, end = self.sweet_spot_window(variety)
        curve = bottling_curve(aging.days_in_barrel, start, end, cfg.over_under_penalty_per_day,
                               cfg.in_window_curve, cfg.curve_min, cfg.curve_max)
        quality = (cfg.base_quality + aging.craft_quality + variety.terroir_bonus) * curve
        quality = float(np.clip(quality, 0.0, 100.0))
        bottles = int(aging.liters * 1000 // max(1, self.config.bottling.bottle_size_ml))

        wine = BottledWine(
            variety=variety.name,
            vintage_year=aging.vintage_year,
            is_red=variety.is_red,
            initial_quality=quality,
            bottles=bottles,
            bottled_day=day,
        )
        barrel.aging = None
        self.logger.info(
            f"Bottled {bottles} x {wine.variety} {wine.vintage_year} at quality {quality:.1f}"
        )
        if self.inventory is not None:
            self.inventory.add_bottles(wine)
        return wine

    # Daily tick

    def tick(self) -> None:
        self._tick_fermentation()
        self._tick_aging()

    def _tick_fermentation(self) -> None:
        ratio = self.config.fermentation.brix_to_alcohol
        floor = self.config.fermentation.stuck_brix_floor
        for tank in self.tanks:
            f = tank.ferment
            if f is None:
                continue
            f.days_fermenting += 1
            yeast = self.config.get_yeast(f.yeast)
            tolerance = yeast.tolerance_abv if yeast is not None else self.config.fermentation.default_tolerance_abv

            step = f.start_brix / max(1, f.target_days)
            previous = f.current_brix
            current = max(0.0, previous - step)
            if (f.start_brix - current) * ratio >= tolerance:
                # Stuck: yeast gives up with residual sugar left
                current = max(current, min(previous, floor))
            f.current_brix = current
            f.alcohol_abv = min((f.start_brix - current) * ratio, tolerance)

    def _tick_aging(self) -> None:
        cfg = self.config.aging
        for barrel in self.barrels:
            a = barrel.aging
            if a is None:
                continue
            a.days_in_barrel += 1
            start, end = cfg.sweet_spot_days_min, cfg.sweet_spot_days_max
            a.craft_quality += cfg.oak_gain_per_day * sweet_spot_factor(
                a.days_in_barrel, start, end, cfg.sweet_spot_peak_bonus
            )
            if a.days_in_barrel < start or a.days_in_barrel > end:
                a.craft_quality -= cfg.over_under_penalty_per_day * 0.25

    # Snapshots

    def tank_snapshot(self) -> List[Tank]:
        return [Tank.from_dict(t.to_dict()) for t in self.tanks]

    def barrel_snapshot(self) -> List[Barrel]:
        return [Barrel.from_dict(b.to_dict()) for b in self.barrels]
