"""Data models for the wine simulation."""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Any, Optional, Tuple, Iterator


@dataclass(frozen=True)
class DailyWeather:
    """Weather for one simulated day. Never mutated after generation."""
    day_index: int
    t_min_c: float
    t_avg_c: float
    t_max_c: float
    rain_mm: float
    humidity_pct: float
    wind_kph: float
    wind_dir_deg: float
    solar_mj_m2: float  # MJ/m² per day
    sun_hours: float
    cloud_frac: float  # 0..1
    et0_mm: float  # reference evapotranspiration
    vpd_kpa: float  # vapor pressure deficit
    gdd_base10: float  # growing degree days, base 10 °C
    frost_risk: bool = False
    heatwave: bool = False
    hail: bool = False
    storm: bool = False
    mildew_index: float = 0.0  # 0..100

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class YearWeather:
    """Ordered daily records for one in-game year."""
    year: int
    days: Tuple[DailyWeather, ...]

    def __len__(self) -> int:
        return len(self.days)

    def __getitem__(self, day_of_year: int) -> DailyWeather:
        return self.days[day_of_year]

    def __iter__(self) -> Iterator[DailyWeather]:
        return iter(self.days)


@dataclass
class VineyardTile:
    """Per-plot vine state. Mutated only by the vineyard model."""
    owned: bool = False
    planted_variety: Optional[str] = None
    days_since_planting: int = 0
    brix: float = 0.0
    ph: float = 0.0
    ta: float = 7.0  # g/L titratable acidity
    phenolic: float = 0.0  # 0..100
    soil_moisture: float = 0.5  # 0..1
    water_stress: float = 0.0  # 0..1
    disease_pressure: float = 0.0  # 0..1
    color_index: float = 0.0  # 0..100
    aroma_index: float = 0.0  # 0..100
    liters_per_kg: float = 0.70
    yield_kg: float = 0.0
    vintage_year: int = 0
    soil: str = "Loam"
    orientation: str = "South"

    @property
    def is_planted(self) -> bool:
        return bool(self.planted_variety)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VineyardTile':
        return cls(**data)


@dataclass(frozen=True)
class GrapeBatch:
    """Harvested grapes handed from the vineyard to production."""
    variety: str
    vintage_year: int
    kg: int
    brix: float
    ph: float
    phenolic: float
    ta: float = 7.0  # g/L titratable acidity
    yan: float = 200.0  # mg N/L yeast assimilable nitrogen
    water_stress: float = 0.0
    disease_pressure: float = 0.0
    color_index: float = 0.0
    aroma_index: float = 0.0
    must_temp_c: float = 18.0
    dilution: float = 0.0  # 0..1
    liters_per_kg: float = 0.70

    @property
    def liters(self) -> int:
        """Must volume after crushing."""
        return int(round(self.kg * self.liters_per_kg))


class ContainerState(str, Enum):
    """Occupancy of a tank or barrel."""
    EMPTY = "empty"
    FERMENTING = "fermenting"
    AGING = "aging"


@dataclass
class FermentationBatch:
    variety: str
    vintage_year: int
    start_brix: float
    current_brix: float
    ph: float
    phenolic: float
    alcohol_abv: float
    yeast: str
    days_fermenting: int
    target_days: int
    liters: int


@dataclass
class Tank:
    """Fermentation tank holding at most one batch."""
    id: str
    capacity_l: int
    ferment: Optional[FermentationBatch] = None

    @property
    def state(self) -> ContainerState:
        return ContainerState.EMPTY if self.ferment is None else ContainerState.FERMENTING

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Tank':
        ferment = data.get("ferment")
        return cls(
            id=data["id"],
            capacity_l=data["capacity_l"],
            ferment=FermentationBatch(**ferment) if ferment else None,
        )


@dataclass
class AgingBatch:
    variety: str
    vintage_year: int
    liters: int
    days_in_barrel: int
    craft_quality: float  # fermentation baseline plus oak


@dataclass
class Barrel:
    """Oak barrel holding at most one batch."""
    id: str
    capacity_l: int
    aging: Optional[AgingBatch] = None

    @property
    def state(self) -> ContainerState:
        return ContainerState.EMPTY if self.aging is None else ContainerState.AGING

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Barrel':
        aging = data.get("aging")
        return cls(
            id=data["id"],
            capacity_l=data["capacity_l"],
            aging=AgingBatch(**aging) if aging else None,
        )


@dataclass(frozen=True)
class BottledWine:
    """Output of bottling one barrel."""
    variety: str
    vintage_year: int
    is_red: bool
    initial_quality: float  # 0..100
    bottles: int
    bottled_day: int


StockKey = Tuple[str, int]


def stock_id(variety: str, vintage_year: int) -> str:
    """Serialized form of a ledger key."""
    return f"{variety}|{vintage_year}"


def parse_stock_id(value: str) -> Optional[StockKey]:
    """Parse ``Variety|Vintage`` or the legacy ``Variety_Vintage`` form."""
    for separator in ("|", "_"):
        name, sep, year = value.rpartition(separator)
        if sep and name and year.lstrip("-").isdigit():
            return name, int(year)
    return None


@dataclass
class BottleStockEntry:
    """Ledger row for one (variety, vintage)."""
    variety: str
    vintage_year: int
    is_red: bool
    bottles: int
    quality: float
    has_review: bool = False
    review_score: int = 0
    bottled_day: int = 0

    @property
    def key(self) -> StockKey:
        return (self.variety, self.vintage_year)

    @property
    def id(self) -> str:
        return stock_id(self.variety, self.vintage_year)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BottleStockEntry':
        """Build an entry, rebuilding variety/vintage from a legacy id if needed."""
        data = dict(data)
        legacy_id = data.pop("id", None)
        if legacy_id and (not data.get("variety") or "vintage_year" not in data):
            parsed = parse_stock_id(legacy_id)
            if parsed is not None:
                data["variety"] = data.get("variety") or parsed[0]
                data.setdefault("vintage_year", parsed[1])
        return cls(**data)


@dataclass
class MarketState:
    """Cash, market index and brand level."""
    cash: int
    market_index: float
    brand_level: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MarketState':
        return cls(**data)


@dataclass
class HarvestResult:
    """Outcome of a harvest command."""
    disposition: str  # "refused", "tank" or "wholesale"
    batch: Optional[GrapeBatch] = None
    tank_id: Optional[str] = None
    revenue: int = 0
    readiness: float = 0.0

    @property
    def harvested(self) -> bool:
        return self.batch is not None


@dataclass
class SaleResult:
    """Outcome of a sell command."""
    units_sold: int = 0
    revenue: int = 0
    unit_price: int = 0
    review_score: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.units_sold > 0
