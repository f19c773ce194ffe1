"""
Main game configuration class that integrates all configuration sections.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import logging
import os

from .base import (
    BaseConfig, SectionConfig, ConfigValidationResult, ValidationLevel
)


@dataclass
class WorldConfig(SectionConfig):
    """Vineyard grid dimensions and starting ownership."""
    vineyard_cols: int = 6
    vineyard_rows: int = 4
    starting_owned_plots: List[int] = field(default_factory=lambda: [0, 1])

    @property
    def plot_count(self) -> int:
        return max(1, self.vineyard_cols * self.vineyard_rows)

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        self._check_positive(result, "vineyard_cols", self.vineyard_cols)
        self._check_positive(result, "vineyard_rows", self.vineyard_rows)
        for index in self.starting_owned_plots:
            if not 0 <= index < self.plot_count:
                result.add_error(f"Starting plot {index} is outside the {self.plot_count}-plot grid")
        return result


@dataclass
class EconomyConfig(SectionConfig):
    """Starting cash and purchase prices (whole euros)."""
    starting_cash: int = 50000
    land_base_price: int = 3000
    plant_cost_per_plot: int = 800
    tank_prices: Dict[int, int] = field(
        default_factory=lambda: {1000: 5000, 3000: 12000, 6000: 25000}
    )
    barrel_price: int = 900
    bottling_machine_price: int = 10000
    grape_wholesale_per_kg: float = 1.2

    def __post_init__(self):
        # JSON object keys arrive as strings
        self.tank_prices = {int(k): int(v) for k, v in self.tank_prices.items()}

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        if self.starting_cash < 0:
            result.add_error(f"Starting cash must be >= 0, got {self.starting_cash}")
        for name in ("land_base_price", "plant_cost_per_plot", "barrel_price", "bottling_machine_price"):
            if getattr(self, name) < 0:
                result.add_error(f"{name} must be >= 0, got {getattr(self, name)}")
        if not self.tank_prices:
            result.add_warning("No tank sizes are purchasable")
        for capacity, price in self.tank_prices.items():
            self._check_positive(result, "tank capacity", capacity)
            if price < 0:
                result.add_error(f"Price for {capacity} L tank must be >= 0, got {price}")
        if self.grape_wholesale_per_kg < 0:
            result.add_error(f"Wholesale grape price must be >= 0, got {self.grape_wholesale_per_kg}")
        return result


@dataclass
class MarketConfig(SectionConfig):
    """Market index random walk, brand and pricing parameters."""
    index_min: float = 0.8
    index_max: float = 1.2
    step_max: float = 0.01
    brand_start: float = 1.0
    brand_min: float = 0.5
    brand_max: float = 2.0
    neutral_review_score: int = 70
    review_step_min: float = -0.02
    review_step_max: float = 0.06
    price_low: float = 5.0
    price_high: float = 120.0
    premium_varieties: List[str] = field(
        default_factory=lambda: ["Pinot Noir", "Cabernet Sauvignon"]
    )
    premium_multiplier: float = 1.1
    red_multiplier: float = 1.05
    seed: int = 4242

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        self._check_positive(result, "index_min", self.index_min)
        self._check_order(result, "index_min", self.index_min, "index_max", self.index_max)
        if self.step_max < 0:
            result.add_error(f"Market step must be >= 0, got {self.step_max}")
        self._check_positive(result, "brand_min", self.brand_min)
        self._check_order(result, "brand_min", self.brand_min, "brand_max", self.brand_max)
        if not self.brand_min <= self.brand_start <= self.brand_max:
            result.add_error(f"Starting brand {self.brand_start} outside [{self.brand_min}, {self.brand_max}]")
        self._check_order(result, "price_low", self.price_low, "price_high", self.price_high)
        return result


@dataclass
class TimeConfig(SectionConfig):
    """Real-time to game-time conversion."""
    seconds_per_day: float = 2.0
    days_per_year: int = 360
    offline_catchup_cap_days: int = 30

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        self._check_positive(result, "seconds_per_day", self.seconds_per_day)
        if not 30 <= self.days_per_year <= 400:
            result.add_error(f"days_per_year must be within [30, 400], got {self.days_per_year}")
        if self.offline_catchup_cap_days < 0:
            result.add_error(f"Catch-up cap must be >= 0, got {self.offline_catchup_cap_days}")
        return result


@dataclass
class VineyardConfig(SectionConfig):
    """Vine growth rates and penalties."""
    summer_brix_per_day_min: float = 0.10
    summer_brix_per_day_max: float = 0.40
    rain_brix_penalty: float = 0.15
    near_target_brix_band: float = 2.0
    yield_per_plot_kg: float = 1200.0
    ph_daily_delta_towards_target: float = 0.02
    phenolic_daily_gain: float = 0.8
    readiness_threshold: float = 0.65
    soil_water_capacity_mm: float = 60.0
    disease_decay: float = 0.1
    acid_loss_per_day: float = 0.04
    color_daily_gain: float = 0.6
    aroma_daily_gain: float = 0.5
    hail_yield_loss: float = 0.15

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        self._check_order(result, "summer_brix_per_day_min", self.summer_brix_per_day_min,
                          "summer_brix_per_day_max", self.summer_brix_per_day_max)
        self._check_positive(result, "yield_per_plot_kg", self.yield_per_plot_kg)
        self._check_positive(result, "soil_water_capacity_mm", self.soil_water_capacity_mm)
        self._check_unit(result, "ph_daily_delta_towards_target", self.ph_daily_delta_towards_target)
        self._check_unit(result, "readiness_threshold", self.readiness_threshold)
        self._check_unit(result, "disease_decay", self.disease_decay)
        self._check_unit(result, "hail_yield_loss", self.hail_yield_loss)
        return result


@dataclass
class FermentationConfig(SectionConfig):
    """Fermentation length and yield."""
    min_ferment_days: int = 7
    max_ferment_days: int = 14
    brix_to_alcohol: float = 0.55  # ABV ≈ Brix × 0.55
    stuck_brix_floor: float = 2.0
    done_brix_threshold: float = 1.0
    default_tolerance_abv: float = 16.0
    craft_baseline: float = 10.0

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        self._check_positive(result, "min_ferment_days", self.min_ferment_days)
        if self.max_ferment_days < self.min_ferment_days:
            result.add_error(
                f"max_ferment_days ({self.max_ferment_days}) must be >= min_ferment_days ({self.min_ferment_days})"
            )
        self._check_positive(result, "brix_to_alcohol", self.brix_to_alcohol)
        if self.stuck_brix_floor < 0:
            result.add_error(f"Stuck floor must be >= 0, got {self.stuck_brix_floor}")
        return result


@dataclass
class AgingConfig(SectionConfig):
    """Barrel aging and bottling-quality curve."""
    barrel_volume_l: int = 225
    oak_gain_per_day: float = 0.15
    over_under_penalty_per_day: float = 0.2
    sweet_spot_days_min: int = 120
    sweet_spot_days_max: int = 240
    sweet_spot_peak_bonus: float = 0.25
    base_quality: float = 50.0
    in_window_curve: float = 1.1
    curve_min: float = 0.6
    curve_max: float = 1.2

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        self._check_positive(result, "barrel_volume_l", self.barrel_volume_l)
        if self.oak_gain_per_day < 0:
            result.add_error(f"Oak gain must be >= 0, got {self.oak_gain_per_day}")
        self._check_order(result, "sweet_spot_days_min", self.sweet_spot_days_min,
                          "sweet_spot_days_max", self.sweet_spot_days_max)
        self._check_order(result, "curve_min", self.curve_min, "curve_max", self.curve_max)
        return result


@dataclass
class BottlingConfig(SectionConfig):
    """Bottle size and in-bottle quality drift."""
    bottle_size_ml: int = 750
    bottle_improvement_per_day: float = 0.02
    bottle_white_degrade_per_day: float = 0.01

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        self._check_positive(result, "bottle_size_ml", self.bottle_size_ml)
        if self.bottle_white_degrade_per_day > self.bottle_improvement_per_day:
            result.add_warning("Whites degrade faster than reds improve")
        return result


def _points(points):
    return lambda: [list(p) for p in points]


@dataclass
class WeatherConfig(SectionConfig):
    """Procedural weather parameters.

    Baselines come from the 12-entry monthly arrays when present, otherwise
    from the control-point curves (year fraction, value).
    """
    seed: int = 12345
    day_noise: float = 0.35
    et0_coef: float = 0.8

    frost_prob_spring: float = 0.02
    frost_prob_autumn: float = 0.01
    heatwave_prob_summer: float = 0.015
    hail_prob: float = 0.002
    storm_prob: float = 0.01

    mildew_hum_thresh: float = 85.0
    mildew_temp_band: List[float] = field(default_factory=lambda: [18.0, 26.0])
    mildew_baseline_weight: float = 0.3

    rain_event_intensity_mm: float = 8.0
    rain_intensity_seasonality: float = 0.4

    temp_curve: List[List[float]] = field(default_factory=_points(
        [(0.0, 8.0), (0.25, 20.0), (0.5, 23.0), (0.75, 14.0), (1.0, 8.0)]))
    rain_curve: List[List[float]] = field(default_factory=_points(
        [(0.0, 3.7), (0.25, 2.2), (0.5, 1.7), (0.75, 3.1), (1.0, 3.7)]))
    humidity_curve: List[List[float]] = field(default_factory=_points(
        [(0.0, 85.0), (0.25, 76.0), (0.5, 68.0), (0.75, 78.0), (1.0, 86.0)]))
    solar_curve: List[List[float]] = field(default_factory=_points(
        [(0.0, 7.0), (0.25, 14.0), (0.5, 20.0), (0.75, 12.0), (1.0, 7.0)]))
    wind_curve: List[List[float]] = field(default_factory=_points(
        [(0.0, 12.0), (0.25, 12.0), (0.5, 10.0), (0.75, 12.0), (1.0, 12.0)]))

    t_min_c12: Optional[List[float]] = None
    t_max_c12: Optional[List[float]] = None
    rain_mm12: Optional[List[float]] = None
    humidity_pct12: Optional[List[float]] = None
    sun_hours12: Optional[List[float]] = None
    wind_kph12: Optional[List[float]] = None
    mildew12: Optional[List[float]] = None

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        self._check_unit(result, "day_noise", self.day_noise)
        for name in ("frost_prob_spring", "frost_prob_autumn", "heatwave_prob_summer",
                     "hail_prob", "storm_prob", "mildew_baseline_weight"):
            self._check_unit(result, name, getattr(self, name))
        self._check_positive(result, "rain_event_intensity_mm", self.rain_event_intensity_mm)
        if len(self.mildew_temp_band) != 2:
            result.add_error("mildew_temp_band must have exactly two entries")
        for name in ("t_min_c12", "t_max_c12", "rain_mm12", "humidity_pct12",
                     "sun_hours12", "wind_kph12", "mildew12"):
            values = getattr(self, name)
            if values is not None and len(values) != 12:
                result.add_error(f"{name} must have 12 monthly values, got {len(values)}")
        if (self.t_min_c12 is None) != (self.t_max_c12 is None):
            result.add_warning("Monthly temperatures need both t_min_c12 and t_max_c12; using curve")
        for name in ("temp_curve", "rain_curve", "humidity_curve", "solar_curve", "wind_curve"):
            if len(getattr(self, name)) < 2:
                result.add_error(f"{name} needs at least two control points")
        return result


@dataclass
class MonitoringConfig(SectionConfig):
    """Configuration for logging."""
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            result.add_error(f"Invalid log level: {self.log_level}")
        return result


@dataclass
class VarietyConfig(SectionConfig):
    """A grape variety and its targets."""
    name: str
    is_red: bool
    target_harvest_brix: float = 24.0
    target_ph: float = 3.6
    min_harvest_phenolic: float = 70.0
    sweet_spot_start: int = 90
    sweet_spot_end: int = 150
    bottle_improve_days: float = 120.0
    bottle_white_degrade_start: float = 60.0
    terroir_bonus: float = 3.0

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        if not self.name:
            result.add_error("Variety name cannot be empty")
        self._check_order(result, "sweet_spot_start", self.sweet_spot_start,
                          "sweet_spot_end", self.sweet_spot_end)
        if not 0 <= self.terroir_bonus <= 10:
            result.add_warning(f"Terroir bonus {self.terroir_bonus} outside the usual 0..10")
        return result


@dataclass
class YeastConfig(SectionConfig):
    """A yeast strain."""
    name: str
    speed: float = 1.0          # 0.5..1.5 influences ferment days
    aroma: float = 0.0          # flat bonus to craft quality
    tolerance_abv: float = 15.0

    def validate(self) -> ConfigValidationResult:
        result = ConfigValidationResult(is_valid=True)
        if not self.name:
            result.add_error("Yeast name cannot be empty")
        self._check_positive(result, "speed", self.speed)
        self._check_positive(result, "tolerance_abv", self.tolerance_abv)
        return result


def default_varieties() -> List[VarietyConfig]:
    return [
        VarietyConfig("Cabernet Sauvignon", True, 24.0, 3.6, 75.0, 120, 210, 150.0, 0.0, 3.0),
        VarietyConfig("Pinot Noir", True, 23.0, 3.5, 70.0, 90, 150, 120.0, 0.0, 3.0),
        VarietyConfig("Chardonnay", False, 22.0, 3.4, 60.0, 60, 120, 0.0, 90.0, 2.0),
        VarietyConfig("Sauvignon Blanc", False, 21.5, 3.3, 55.0, 45, 100, 0.0, 80.0, 2.0),
    ]


def default_yeasts() -> List[YeastConfig]:
    return [
        YeastConfig("Neutral", speed=1.0, aroma=0.0, tolerance_abv=15.0),
        YeastConfig("Aromatic", speed=0.9, aroma=3.0, tolerance_abv=14.0),
        YeastConfig("Robust", speed=1.2, aroma=1.0, tolerance_abv=16.0),
    ]


@dataclass
class GameConfig(BaseConfig):
    """Main game configuration class."""

    name: str = "Wine Estate"
    world: WorldConfig = field(default_factory=WorldConfig)
    economy: EconomyConfig = field(default_factory=EconomyConfig)
    market: MarketConfig = field(default_factory=MarketConfig)
    time: TimeConfig = field(default_factory=TimeConfig)
    vineyard: VineyardConfig = field(default_factory=VineyardConfig)
    fermentation: FermentationConfig = field(default_factory=FermentationConfig)
    aging: AgingConfig = field(default_factory=AgingConfig)
    bottling: BottlingConfig = field(default_factory=BottlingConfig)
    weather: WeatherConfig = field(default_factory=WeatherConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    varieties: List[VarietyConfig] = field(default_factory=default_varieties)
    yeasts: List[YeastConfig] = field(default_factory=default_yeasts)
    level: ValidationLevel = ValidationLevel.STRICT
    config_version: str = "1.0"

    _SECTIONS = {
        "world": WorldConfig,
        "economy": EconomyConfig,
        "market": MarketConfig,
        "time": TimeConfig,
        "vineyard": VineyardConfig,
        "fermentation": FermentationConfig,
        "aging": AgingConfig,
        "bottling": BottlingConfig,
        "weather": WeatherConfig,
        "monitoring": MonitoringConfig,
    }

    def __post_init__(self):
        """Initialize after dataclass creation."""
        super().__init__(self.level)
        self._setup_logging()

    def _setup_logging(self):
        """Setup logging based on monitoring configuration."""
        logger = logging.getLogger("winesim")
        logger.setLevel(getattr(logging, self.monitoring.log_level, logging.INFO))
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # Console handler
        if not logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        # File handler if specified, once per file
        if self.monitoring.log_file:
            path = os.path.abspath(self.monitoring.log_file)
            if any(isinstance(h, logging.FileHandler) and h.baseFilename == path
                   for h in logger.handlers):
                return
            file_handler = logging.FileHandler(self.monitoring.log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    # Catalog lookups

    def get_variety(self, name: Optional[str]) -> Optional[VarietyConfig]:
        for variety in self.varieties:
            if variety.name == name:
                return variety
        return None

    def get_yeast(self, name: Optional[str]) -> Optional[YeastConfig]:
        """Look up a yeast; ``None`` selects the first catalog entry."""
        if name is None:
            return self.yeasts[0] if self.yeasts else None
        for yeast in self.yeasts:
            if yeast.name == name:
                return yeast
        return None

    def validate(self) -> ConfigValidationResult:
        """Validate the entire game configuration."""
        result = ConfigValidationResult(is_valid=True)

        if not self.name:
            result.add_error("Game name cannot be empty")

        for section_name in self._SECTIONS:
            result.extend(getattr(self, section_name).validate(), section_name)

        if not self.varieties:
            result.add_error("At least one grape variety is required")
        if not self.yeasts:
            result.add_error("At least one yeast is required")

        seen = set()
        for variety in self.varieties:
            if variety.name in seen:
                result.add_error(f"Duplicate variety name: {variety.name}")
            seen.add(variety.name)
            result.extend(variety.validate(), f"variety '{variety.name}'")

        seen = set()
        for yeast in self.yeasts:
            if yeast.name in seen:
                result.add_error(f"Duplicate yeast name: {yeast.name}")
            seen.add(yeast.name)
            result.extend(yeast.validate(), f"yeast '{yeast.name}'")

        for premium in self.market.premium_varieties:
            if self.get_variety(premium) is None:
                result.add_warning(f"market: premium variety '{premium}' is not in the catalog")

        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        data: Dict[str, Any] = {"name": self.name}
        for section_name in self._SECTIONS:
            data[section_name] = getattr(self, section_name).to_dict()
        data["varieties"] = [variety.to_dict() for variety in self.varieties]
        data["yeasts"] = [yeast.to_dict() for yeast in self.yeasts]
        data["level"] = self.level.value
        data["config_version"] = self.config_version
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameConfig':
        """Create configuration from dictionary."""
        sections = {
            section_name: section_cls.from_dict(data.get(section_name, {}))
            for section_name, section_cls in cls._SECTIONS.items()
        }
        varieties = (
            [VarietyConfig.from_dict(v) for v in data["varieties"]]
            if "varieties" in data else default_varieties()
        )
        yeasts = (
            [YeastConfig.from_dict(y) for y in data["yeasts"]]
            if "yeasts" in data else default_yeasts()
        )
        return cls(
            name=data.get("name", "Wine Estate"),
            varieties=varieties,
            yeasts=yeasts,
            level=ValidationLevel(data.get("level", ValidationLevel.STRICT.value)),
            config_version=data.get("config_version", "1.0"),
            **sections
        )

    def validate_and_log(self) -> bool:
        """Validate configuration and log results."""
        result = self.validate()

        logger = logging.getLogger("winesim.config")

        if result.is_valid:
            logger.info("Configuration validation passed")
        else:
            logger.error("Configuration validation failed")
            for error in result.errors:
                logger.error(f"Validation error: {error}")

        for warning in result.warnings:
            logger.warning(f"Validation warning: {warning}")

        return result.is_valid
