"""
Procedural weather generation.

One ``YearWeather`` is produced per (seed, year) from seasonal baselines,
two smooth noise signals and a per-day block of seeded uniforms. Generation
is deterministic: the same seed and year always give identical records.
"""

import math
import logging
from typing import Callable, Dict, List, Optional

import numpy as np

from .config import WeatherConfig
from .curves import SeasonalCurve, clamp01, lerp, inverse_lerp, smooth_noise
from .models import DailyWeather, YearWeather

YEAR_SALT = 73856093
SEED_MASK = 0xFFFFFFFF

# Uniform draws consumed per day, whether or not an event fires
UNIFORMS_PER_DAY = 10
(_JITTER, _WET, _WET_AMOUNT, _WIND_DIR, _FROST, _HEAT,
 _HAIL, _STORM, _BURST, _MAGNITUDE) = range(UNIFORMS_PER_DAY)

SPRING = (0.17, 0.42)
SUMMER = (0.42, 0.67)
AUTUMN = (0.67, 0.92)


def year_seed(seed: int, year: int) -> int:
    """Seed for one year's random stream."""
    return (int(seed) ^ (int(year) * YEAR_SALT)) & SEED_MASK


def season_of(t: float) -> str:
    """Season label for a year fraction (day 0 is the first of January)."""
    if SPRING[0] <= t < SPRING[1]:
        return "spring"
    if SUMMER[0] <= t < SUMMER[1]:
        return "summer"
    if AUTUMN[0] <= t < AUTUMN[1]:
        return "autumn"
    return "winter"


def saturation_vapor_pressure(temp_c: float) -> float:
    """Tetens equation, kPa."""
    return 0.6108 * math.exp(17.27 * temp_c / (temp_c + 237.3))


def sun_hours_to_solar(sun_hours: float) -> float:
    """Approximate daily solar radiation (MJ/m²) from sunshine hours."""
    return lerp(5.0, 22.0, (sun_hours - 2.0) / 12.0)


class Baselines:
    """Seasonal baseline curves built from a weather configuration.

    Monthly arrays win over control-point curves whenever they are present.
    """

    def __init__(self, config: WeatherConfig):
        if config.t_min_c12 is not None and config.t_max_c12 is not None:
            t_min = np.asarray(config.t_min_c12, dtype=float)
            t_max = np.asarray(config.t_max_c12, dtype=float)
            self.temp = SeasonalCurve.from_monthly((t_min + t_max) / 2.0)
            self.half_range: Optional[SeasonalCurve] = SeasonalCurve.from_monthly(
                np.abs(t_max - t_min) / 2.0
            )
        else:
            self.temp = SeasonalCurve(config.temp_curve)
            self.half_range = None

        self.rain = self._pick(config.rain_mm12, config.rain_curve)
        self.humidity = self._pick(config.humidity_pct12, config.humidity_curve)
        self.wind = self._pick(config.wind_kph12, config.wind_curve)

        if config.sun_hours12 is not None:
            self.solar = SeasonalCurve.from_monthly(
                [sun_hours_to_solar(h) for h in config.sun_hours12]
            )
        else:
            self.solar = SeasonalCurve(config.solar_curve)

        self.mildew = (
            SeasonalCurve.from_monthly(config.mildew12)
            if config.mildew12 is not None else None
        )

    @staticmethod
    def _pick(monthly: Optional[List[float]], points: List[List[float]]) -> SeasonalCurve:
        if monthly is not None:
            return SeasonalCurve.from_monthly(monthly)
        return SeasonalCurve(points)


class WeatherGenerator:
    """Deterministic per-year daily weather with a lazy year cache."""

    def __init__(
        self,
        config: Optional[WeatherConfig] = None,
        days_per_year: int = 360,
        max_cached_years: int = 4
    ):
        self.config = config or WeatherConfig()
        self.days_per_year = int(np.clip(days_per_year, 30, 400))
        self.max_cached_years = max(1, max_cached_years)
        self.baselines = Baselines(self.config)

        self._years: Dict[int, YearWeather] = {}
        self._callbacks: List[Callable[[int, DailyWeather], None]] = []
        self.logger = logging.getLogger("winesim.weather")

    def register_callback(self, callback: Callable[[int, DailyWeather], None]) -> None:
        """Register a ``(day_of_year, record)`` callback invoked by :meth:`tick`."""
        self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[int, DailyWeather], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def is_generated(self, year: int) -> bool:
        return year in self._years

    def year_series(self, year: int) -> YearWeather:
        """Weather for a whole year, generated on first access."""
        series = self._years.get(year)
        if series is None:
            series = self._generate_year(year)
            if len(self._years) >= self.max_cached_years:
                self._years.pop(next(iter(self._years)))
            self._years[year] = series
        return series

    def weather_for_day(self, year: int, day_of_year: int) -> DailyWeather:
        """Record for one day; out-of-range days are clamped into the year."""
        day = min(max(int(day_of_year), 0), self.days_per_year - 1)
        return self.year_series(year)[day]

    def tick(self, year: int, day_of_year: int) -> DailyWeather:
        """Resolve today's record and notify day callbacks."""
        record = self.weather_for_day(year, day_of_year)
        for callback in list(self._callbacks):
            try:
                callback(record.day_index, record)
            except Exception as e:
                self.logger.error(f"Weather callback failed on day {record.day_index}: {e}")
        return record

    # Generation

    def _generate_year(self, year: int) -> YearWeather:
        seed = year_seed(self.config.seed, year)
        rng = np.random.RandomState(seed)
        draws = rng.random_sample((self.days_per_year, UNIFORMS_PER_DAY))

        days = tuple(
            self._generate_day(day, draws[day], seed)
            for day in range(self.days_per_year)
        )
        self.logger.debug(
            f"Generated weather for year {year}: "
            f"{sum(d.rain_mm > 0 for d in days)} wet days, "
            f"{sum(d.frost_risk for d in days)} frost, {sum(d.heatwave for d in days)} heatwave"
        )
        return YearWeather(year=year, days=days)

    def _generate_day(self, day: int, u: np.ndarray, seed: int) -> DailyWeather:
        cfg = self.config
        base = self.baselines
        t = day / float(self.days_per_year)
        season = season_of(t)

        base_temp = base.temp(t)
        base_rain = max(0.0, base.rain(t))
        base_hum = base.humidity(t)
        base_solar = max(0.0, base.solar(t))
        base_wind = max(0.0, base.wind(t))

        dn = smooth_noise(t * 6.0, seed + 1)
        wn = smooth_noise(t * 1.2, seed + 2)
        rj = u[_JITTER] - 0.5
        noise = clamp01(cfg.day_noise)

        # Temperature
        t_avg = base_temp + noise * 5.0 * dn + 0.8 * rj
        if base.half_range is not None:
            spread = max(1.0, base.half_range(t) + 2.0 * dn)
            t_min, t_max = t_avg - spread, t_avg + spread
        else:
            t_min = t_avg - (6.0 + 2.0 * dn)
            t_max = t_avg + (8.0 + 2.0 * dn)

        frost = False
        heatwave = False
        if season in ("spring", "autumn"):
            probability = cfg.frost_prob_spring if season == "spring" else cfg.frost_prob_autumn
            if u[_FROST] < probability:
                t_min = min(t_min, 0.5 - 3.0 * u[_MAGNITUDE])
                frost = True
        if season == "summer" and u[_HEAT] < cfg.heatwave_prob_summer:
            t_max = max(t_max, 34.0 + 4.0 * u[_MAGNITUDE])
            t_avg = max(t_avg, t_max - 8.0)
            heatwave = True

        # Precipitation: wet/dry trial, exponential amount around the event mean
        intensity = cfg.rain_event_intensity_mm * (
            1.0 + cfg.rain_intensity_seasonality * math.sin(2.0 * math.pi * t - math.pi / 2.0)
        )
        intensity = max(0.5, intensity)
        p_wet = min(0.95, base_rain / intensity)
        rain = 0.0
        if u[_WET] < p_wet:
            rain = -intensity * math.log1p(-u[_WET_AMOUNT])

        hail = u[_HAIL] < cfg.hail_prob
        storm = hail or u[_STORM] < cfg.storm_prob
        if storm:
            rain += -2.0 * intensity * math.log1p(-u[_BURST])

        # Humidity, wind
        humidity = float(np.clip(base_hum + 10.0 * dn + 5.0 * rj, 25.0, 100.0))
        wind = max(0.0, base_wind + 6.0 * wn + 2.0 * rj)
        if storm:
            wind += 15.0 * u[_MAGNITUDE]
        wind_dir = u[_WIND_DIR] * 360.0

        # Clouds, sun, solar
        cloud = clamp01(0.35 + 0.4 * (0.5 - dn) + 0.25 * (1.0 - inverse_lerp(0.0, 24.0, base_solar)))
        if rain > 0:
            cloud = clamp01(cloud + 0.2)
        sun_hours = float(np.clip(12.0 * (1.0 - cloud) + 2.0 * dn, 0.0, 14.5))
        solar = max(1.0, base_solar * lerp(0.6, 1.1, 1.0 - cloud))

        # Derived agronomy
        et0 = max(0.0, max(0.1, cfg.et0_coef) * (solar / 5.0)
                  * lerp(0.5, 1.3, inverse_lerp(5.0, 30.0, t_avg)))
        vpd = max(0.0, saturation_vapor_pressure(t_avg) * (1.0 - humidity / 100.0))
        gdd = max(0.0, t_avg - 10.0)

        band_low, band_high = cfg.mildew_temp_band
        hum_term = inverse_lerp(cfg.mildew_hum_thresh, 100.0, humidity)
        temp_term = inverse_lerp(band_low, band_high, t_avg)
        vpd_term = 1.0 - clamp01(vpd / 2.0)
        mildew = clamp01(0.4 * hum_term + 0.4 * temp_term + 0.2 * vpd_term) * 100.0
        if base.mildew is not None:
            mildew = lerp(mildew, base.mildew(t), cfg.mildew_baseline_weight)
        mildew = float(np.clip(mildew, 0.0, 100.0))

        return DailyWeather(
            day_index=day,
            t_min_c=float(t_min),
            t_avg_c=float(t_avg),
            t_max_c=float(t_max),
            rain_mm=float(rain),
            humidity_pct=humidity,
            wind_kph=float(wind),
            wind_dir_deg=float(wind_dir),
            solar_mj_m2=float(solar),
            sun_hours=sun_hours,
            cloud_frac=float(cloud),
            et0_mm=float(et0),
            vpd_kpa=float(vpd),
            gdd_base10=float(gdd),
            frost_risk=bool(frost),
            heatwave=bool(heatwave),
            hail=bool(hail),
            storm=bool(storm),
            mildew_index=mildew,
        )
