"""
Vineyard growth model.

Each planted plot advances one day at a time from that day's weather:
soil water balance, stress and disease accumulators, acid loss, sugar,
pH, phenolic ripeness, colour and aroma. Readiness blends sugar, phenolic
and pH proximity to the variety's targets.
"""

import math
import logging
from dataclasses import replace
from typing import List, Optional

from .config import GameConfig, VarietyConfig
from .curves import clamp01, lerp, inverse_lerp
from .market import MarketModel
from .models import DailyWeather, GrapeBatch, VineyardTile

# Early-season baseline after planting or harvest
BASE_BRIX = 12.0
BASE_PH = 3.2
BASE_PHENOLIC = 10.0
BASE_TA = 7.0

MIN_LITERS_PER_KG = 0.62
MAX_LITERS_PER_KG = 0.78


class VineyardModel:
    """Owns the plot grid and every tile's vine state."""

    def __init__(self, config: GameConfig, market: MarketModel):
        self.config = config
        self.market = market
        self.logger = logging.getLogger("winesim.vineyard")
        self._tiles: List[VineyardTile] = []
        self.new_game()

    # Lifecycle

    def new_game(self) -> None:
        """Fresh grid with the configured starting plots owned."""
        self._tiles = [VineyardTile() for _ in range(self.config.world.plot_count)]
        for index in self.config.world.starting_owned_plots:
            if self._in_range(index):
                self._tiles[index].owned = True

    def load_tiles(self, tiles: List[VineyardTile]) -> None:
        if tiles:
            self._tiles = [replace(tile) for tile in tiles]
        else:
            self.new_game()

    # Read-only views

    def __len__(self) -> int:
        return len(self._tiles)

    def tile(self, index: int) -> Optional[VineyardTile]:
        """Copy of one tile's state, or None for a bad index."""
        return replace(self._tiles[index]) if self._in_range(index) else None

    def tiles(self) -> List[VineyardTile]:
        return [replace(tile) for tile in self._tiles]

    def is_planted(self, index: int) -> bool:
        return self._in_range(index) and self._tiles[index].is_planted

    # Commands

    def buy_plot(self, index: int) -> bool:
        if not self._in_range(index):
            self.logger.warning(f"Cannot buy plot {index}: no such plot")
            return False
        tile = self._tiles[index]
        if tile.owned:
            self.logger.warning(f"Cannot buy plot {index}: already owned")
            return False
        if not self.market.try_spend(self.config.economy.land_base_price):
            return False
        tile.owned = True
        self.logger.info(f"Bought plot {index}")
        return True

    def plant(self, index: int, variety_name: str, year: int = 0) -> bool:
        if not self._in_range(index):
            self.logger.warning(f"Cannot plant plot {index}: no such plot")
            return False
        tile = self._tiles[index]
        if not tile.owned or tile.is_planted:
            self.logger.warning(f"Cannot plant plot {index}: not owned or already planted")
            return False
        if self.config.get_variety(variety_name) is None:
            self.logger.warning(f"Cannot plant plot {index}: unknown variety '{variety_name}'")
            return False
        if not self.market.try_spend(self.config.economy.plant_cost_per_plot):
            return False

        tile.planted_variety = variety_name
        self._reset_season(tile, year)
        self.logger.info(f"Planted {variety_name} on plot {index}")
        return True

    # Daily tick

    def tick(self, weather: DailyWeather, day_of_year: int, days_per_year: Optional[int] = None) -> None:
        """Advance every planted tile by one day."""
        if days_per_year is None:
            days_per_year = self.config.time.days_per_year
        season01 = math.sin(day_of_year / max(1, days_per_year) * math.pi * 2.0 - math.pi / 2.0) * 0.5 + 0.5

        for tile in self._tiles:
            if not tile.is_planted:
                continue
            tile.days_since_planting += 1
            variety = self.config.get_variety(tile.planted_variety)
            if variety is None:
                continue
            self._grow(tile, variety, weather, season01)

    def _grow(self, tile: VineyardTile, variety: VarietyConfig,
              weather: DailyWeather, season01: float) -> None:
        cfg = self.config.vineyard

        # Water balance and stress
        tile.soil_moisture = clamp01(
            tile.soil_moisture + (weather.rain_mm - weather.et0_mm) / cfg.soil_water_capacity_mm
        )
        moisture_deficit = inverse_lerp(0.4, 0.1, tile.soil_moisture)
        dryness = inverse_lerp(1.0, 3.0, weather.vpd_kpa)
        tile.water_stress = clamp01(0.6 * moisture_deficit + 0.4 * dryness)

        # Disease pressure drifts toward today's mildew index
        decay = clamp01(cfg.disease_decay)
        tile.disease_pressure = clamp01(
            tile.disease_pressure * (1.0 - decay) + decay * weather.mildew_index / 100.0
        )

        # Acid respiration speeds up with heat
        warmth = clamp01((weather.t_avg_c - 10.0) / 20.0)
        acid_loss = cfg.acid_loss_per_day * warmth * (2.0 if weather.heatwave else 1.0)
        tile.ta = max(3.0, tile.ta - acid_loss)

        tile.liters_per_kg = lerp(MIN_LITERS_PER_KG, MAX_LITERS_PER_KG, tile.soil_moisture)
        dilution = self._dilution(tile, weather)

        # Sugar
        brix_gain = lerp(cfg.summer_brix_per_day_min, cfg.summer_brix_per_day_max, season01)
        if weather.rain_mm > 0:
            brix_gain -= cfg.rain_brix_penalty
        if tile.brix >= variety.target_harvest_brix - cfg.near_target_brix_band:
            brix_gain *= 1.0 - 0.5 * dilution
        brix_gain = max(0.01, brix_gain)
        tile.brix = max(0.0, tile.brix + brix_gain)

        # pH toward target, lifted slightly as acid drops
        tile.ph = lerp(tile.ph, variety.target_ph, clamp01(cfg.ph_daily_delta_towards_target))
        tile.ph += 0.05 * acid_loss

        # Phenolics, colour, aroma
        sun = clamp01(weather.sun_hours / 12.0)
        health = 1.0 - 0.5 * tile.disease_pressure
        phenolic_gain = cfg.phenolic_daily_gain * warmth * sun * (1.0 + 0.5 * tile.water_stress) * health
        tile.phenolic = min(100.0, max(0.0, tile.phenolic + phenolic_gain))

        color_gain = cfg.color_daily_gain * warmth * sun * (1.0 + 0.3 * tile.water_stress) * health
        if not variety.is_red:
            color_gain *= 0.3
        tile.color_index = min(100.0, max(0.0, tile.color_index + color_gain))

        heat_penalty = inverse_lerp(30.0, 38.0, weather.t_max_c)
        aroma_gain = cfg.aroma_daily_gain * sun * (1.0 - 0.5 * heat_penalty) * health
        tile.aroma_index = min(100.0, max(0.0, tile.aroma_index + aroma_gain))

        if weather.hail:
            tile.yield_kg *= 1.0 - clamp01(cfg.hail_yield_loss)

    @staticmethod
    def _dilution(tile: VineyardTile, weather: Optional[DailyWeather]) -> float:
        rain = weather.rain_mm if weather is not None else 0.0
        return clamp01(0.6 * tile.soil_moisture + 0.4 * clamp01(rain / 20.0))

    # Readiness and harvest

    def readiness(self, index: int) -> float:
        """Harvest readiness in [0, 1]; 0 for bad indices and unplanted plots."""
        if not self._in_range(index):
            return 0.0
        tile = self._tiles[index]
        if not tile.is_planted:
            return 0.0
        variety = self.config.get_variety(tile.planted_variety)
        if variety is None:
            return 0.0
        return self.readiness_of(tile, variety)

    @staticmethod
    def readiness_of(tile: VineyardTile, variety: VarietyConfig) -> float:
        brix_score = inverse_lerp(variety.target_harvest_brix - 3.0,
                                  variety.target_harvest_brix + 3.0, tile.brix)
        phenolic_score = inverse_lerp(variety.min_harvest_phenolic - 10.0, 100.0, tile.phenolic)
        ph_score = 1.0 - clamp01(abs(tile.ph - variety.target_ph) / 0.6)
        return clamp01(brix_score * 0.5 + phenolic_score * 0.3 + ph_score * 0.2)

    def can_harvest(self, index: int) -> bool:
        return self.readiness(index) >= self.config.vineyard.readiness_threshold

    def harvest(self, index: int, year: int = 0,
                weather: Optional[DailyWeather] = None) -> Optional[GrapeBatch]:
        """Pick a ready plot. Returns None, leaving the tile untouched, if not ready."""
        if not self.can_harvest(index):
            self.logger.warning(
                f"Harvest refused on plot {index}: readiness {self.readiness(index):.2f}"
            )
            return None

        tile = self._tiles[index]
        stress = tile.water_stress
        # Never earlier than the vintage the tile is growing for
        vintage = max(tile.vintage_year, year)
        disease = tile.disease_pressure
        batch = GrapeBatch(
            variety=tile.planted_variety,
            vintage_year=vintage,
            kg=int(round(tile.yield_kg)),
            brix=tile.brix,
            ph=tile.ph,
            phenolic=tile.phenolic,
            ta=tile.ta,
            yan=min(350.0, max(60.0, 250.0 * (1.0 - 0.4 * stress) * (1.0 - 0.3 * disease))),
            water_stress=stress,
            disease_pressure=disease,
            color_index=tile.color_index,
            aroma_index=tile.aroma_index,
            must_temp_c=weather.t_avg_c if weather is not None else 18.0,
            dilution=self._dilution(tile, weather),
            liters_per_kg=tile.liters_per_kg,
        )
        self._reset_season(tile, vintage + 1)
        self.logger.info(
            f"Harvested {batch.kg} kg {batch.variety} from plot {index} at {batch.brix:.1f} Brix"
        )
        return batch

    # Internals

    def _reset_season(self, tile: VineyardTile, vintage: int) -> None:
        # Ownership, variety, soil moisture and labels persist
        tile.days_since_planting = 0
        tile.brix = BASE_BRIX
        tile.ph = BASE_PH
        tile.phenolic = BASE_PHENOLIC
        tile.ta = BASE_TA
        tile.water_stress = 0.0
        tile.disease_pressure = 0.0
        tile.color_index = 0.0
        tile.aroma_index = 0.0
        tile.yield_kg = float(self.config.vineyard.yield_per_plot_kg)
        tile.vintage_year = vintage

    def _in_range(self, index: int) -> bool:
        return isinstance(index, int) and 0 <= index < len(self._tiles)
