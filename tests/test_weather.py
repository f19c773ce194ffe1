"""
Tests for the procedural weather generator.

Covers:
- Reproducibility per (seed, year) and decorrelation across years
- Physical bounds and derived quantities on every record
- Season-gated events
- Monthly-array baselines
- Day callbacks
"""

import sys
from pathlib import Path
import unittest

import numpy as np

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from winesim.config import WeatherConfig
from winesim.weather import (
    WeatherGenerator, YEAR_SALT, season_of, year_seed, saturation_vapor_pressure
)

MONTHLY_CLIMATE = dict(
    t_min_c12=[2, 2, 4, 6, 9, 12, 14, 14, 11, 8, 4, 2],
    t_max_c12=[9, 10, 14, 17, 21, 24, 27, 27, 23, 18, 12, 9],
    rain_mm12=[3.0, 2.6, 2.4, 2.6, 2.5, 2.0, 1.6, 1.8, 2.4, 3.0, 3.2, 3.3],
    humidity_pct12=[88, 84, 78, 75, 76, 74, 72, 73, 78, 84, 88, 89],
    sun_hours12=[3, 4, 6, 7, 8, 9, 10, 9, 7, 5, 3, 2],
    wind_kph12=[14, 14, 13, 12, 11, 10, 10, 10, 11, 12, 13, 14],
)


class TestDeterminism(unittest.TestCase):

    def test_same_seed_and_year_is_identical(self):
        a = WeatherGenerator(WeatherConfig(seed=99)).year_series(3)
        b = WeatherGenerator(WeatherConfig(seed=99)).year_series(3)
        self.assertEqual(a, b)

    def test_year_is_cached(self):
        generator = WeatherGenerator(WeatherConfig())
        self.assertFalse(generator.is_generated(0))
        first = generator.year_series(0)
        self.assertTrue(generator.is_generated(0))
        self.assertIs(generator.year_series(0), first)

    def test_regeneration_after_eviction_is_identical(self):
        generator = WeatherGenerator(WeatherConfig(), max_cached_years=1)
        first = generator.year_series(0)
        generator.year_series(1)
        self.assertFalse(generator.is_generated(0))
        self.assertEqual(generator.year_series(0), first)

    def test_years_differ(self):
        generator = WeatherGenerator(WeatherConfig())
        year0 = [d.t_avg_c for d in generator.year_series(0)]
        year1 = [d.t_avg_c for d in generator.year_series(1)]
        self.assertNotEqual(year0, year1)

    def test_seeds_differ(self):
        a = WeatherGenerator(WeatherConfig(seed=1)).year_series(0)
        b = WeatherGenerator(WeatherConfig(seed=2)).year_series(0)
        self.assertNotEqual(a, b)

    def test_year_seed(self):
        self.assertEqual(year_seed(12345, 0), 12345)
        self.assertEqual(year_seed(1, 1), 1 ^ YEAR_SALT)
        self.assertLessEqual(year_seed(12345, 10 ** 6), 0xFFFFFFFF)


class TestRecords(unittest.TestCase):

    def setUp(self):
        self.generator = WeatherGenerator(WeatherConfig(seed=2024), days_per_year=360)
        self.year = self.generator.year_series(0)

    def test_length_and_indices(self):
        self.assertEqual(len(self.year), 360)
        self.assertEqual([d.day_index for d in self.year], list(range(360)))
        self.assertEqual(self.year.year, 0)

    def test_bounds(self):
        for d in self.year:
            self.assertLessEqual(d.t_min_c, d.t_avg_c)
            self.assertLessEqual(d.t_avg_c, d.t_max_c)
            self.assertGreaterEqual(d.rain_mm, 0.0)
            self.assertTrue(25.0 <= d.humidity_pct <= 100.0)
            self.assertGreaterEqual(d.wind_kph, 0.0)
            self.assertTrue(0.0 <= d.wind_dir_deg < 360.0)
            self.assertTrue(0.0 <= d.cloud_frac <= 1.0)
            self.assertTrue(0.0 <= d.sun_hours <= 14.5)
            self.assertGreaterEqual(d.solar_mj_m2, 1.0)
            self.assertGreaterEqual(d.et0_mm, 0.0)
            self.assertGreaterEqual(d.vpd_kpa, 0.0)
            self.assertTrue(0.0 <= d.mildew_index <= 100.0)

    def test_derived_values(self):
        for d in self.year:
            self.assertAlmostEqual(d.gdd_base10, max(0.0, d.t_avg_c - 10.0))
            expected_vpd = max(0.0, saturation_vapor_pressure(d.t_avg_c) * (1 - d.humidity_pct / 100.0))
            self.assertAlmostEqual(d.vpd_kpa, expected_vpd)

    def test_event_consistency(self):
        for d in self.year:
            if d.hail:
                self.assertTrue(d.storm)
            if d.heatwave:
                self.assertGreaterEqual(d.t_max_c, 34.0)

    def test_wet_and_dry_days(self):
        rain = np.array([d.rain_mm for d in self.year])
        self.assertGreater(np.sum(rain > 0), 0)
        self.assertGreater(np.sum(rain == 0), 0)

    def test_summer_warmer_than_winter(self):
        temps = np.array([d.t_avg_c for d in self.year])
        self.assertGreater(temps[160:200].mean(), temps[0:30].mean() + 5.0)

    def test_day_clamping(self):
        self.assertEqual(self.generator.weather_for_day(0, -5), self.year[0])
        self.assertEqual(self.generator.weather_for_day(0, 10000), self.year[359])

    def test_days_per_year_is_bounded(self):
        self.assertEqual(len(WeatherGenerator(days_per_year=5).year_series(0)), 30)
        self.assertEqual(len(WeatherGenerator(days_per_year=1000).year_series(0)), 400)


class TestEvents(unittest.TestCase):

    def test_spring_frost_when_certain(self):
        generator = WeatherGenerator(WeatherConfig(frost_prob_spring=1.0))
        for d in generator.year_series(0):
            if season_of(d.day_index / 360.0) == "spring":
                self.assertTrue(d.frost_risk)
                self.assertLessEqual(d.t_min_c, 0.5)

    def test_cold_nights_alone_do_not_flag_frost(self):
        cold = [[0.0, 1.0], [0.5, 4.0], [1.0, 1.0]]
        generator = WeatherGenerator(WeatherConfig(
            temp_curve=cold, frost_prob_spring=0.0, frost_prob_autumn=0.0))
        year = generator.year_series(0)
        self.assertTrue(any(d.t_min_c <= 0.0 for d in year))
        self.assertFalse(any(d.frost_risk for d in year))

    def test_no_frost_outside_spring_and_autumn(self):
        generator = WeatherGenerator(WeatherConfig(frost_prob_spring=1.0, frost_prob_autumn=1.0))
        for d in generator.year_series(0):
            if season_of(d.day_index / 360.0) in ("winter", "summer"):
                self.assertFalse(d.frost_risk)

    def test_summer_heatwave_when_certain(self):
        generator = WeatherGenerator(WeatherConfig(heatwave_prob_summer=1.0))
        summer = [d for d in generator.year_series(0) if season_of(d.day_index / 360.0) == "summer"]
        self.assertTrue(summer)
        for d in summer:
            self.assertTrue(d.heatwave)
            self.assertGreaterEqual(d.t_max_c, 34.0)

    def test_no_heatwave_outside_summer(self):
        generator = WeatherGenerator(WeatherConfig(heatwave_prob_summer=1.0))
        for d in generator.year_series(0):
            if season_of(d.day_index / 360.0) != "summer":
                self.assertFalse(d.heatwave)

    def test_hail_implies_storm_rain(self):
        generator = WeatherGenerator(WeatherConfig(hail_prob=1.0))
        for d in generator.year_series(0):
            self.assertTrue(d.hail)
            self.assertTrue(d.storm)

    def test_seasons(self):
        self.assertEqual(season_of(0.0), "winter")
        self.assertEqual(season_of(0.17), "spring")
        self.assertEqual(season_of(0.42), "summer")
        self.assertEqual(season_of(0.67), "autumn")
        self.assertEqual(season_of(0.92), "winter")


class TestMonthlyBaselines(unittest.TestCase):

    def test_monthly_arrays_drive_the_year(self):
        generator = WeatherGenerator(WeatherConfig(**MONTHLY_CLIMATE))
        temps = np.array([d.t_avg_c for d in generator.year_series(0)])
        july = temps[180:210].mean()
        january = temps[0:30].mean()
        self.assertGreater(july, january + 8.0)
        self.assertTrue(15.0 < july < 26.0)

    def test_monthly_mildew_blend(self):
        config = WeatherConfig(mildew12=[100.0] * 12, mildew_baseline_weight=1.0)
        for d in WeatherGenerator(config).year_series(0):
            self.assertAlmostEqual(d.mildew_index, 100.0)


class TestCallbacks(unittest.TestCase):

    def test_tick_invokes_callbacks(self):
        generator = WeatherGenerator(WeatherConfig())
        seen = []
        generator.register_callback(lambda day, record: seen.append((day, record)))
        record = generator.tick(2, 45)
        self.assertEqual(seen, [(45, record)])
        self.assertEqual(record, generator.weather_for_day(2, 45))

    def test_failing_callback_is_contained(self):
        generator = WeatherGenerator(WeatherConfig())
        seen = []

        def broken(day, record):
            raise RuntimeError("boom")

        generator.register_callback(broken)
        generator.register_callback(lambda day, record: seen.append(day))
        with self.assertLogs("winesim.weather", level="ERROR"):
            generator.tick(0, 3)
        self.assertEqual(seen, [3])

    def test_unregister(self):
        generator = WeatherGenerator(WeatherConfig())
        seen = []
        callback = lambda day, record: seen.append(day)
        generator.register_callback(callback)
        generator.unregister_callback(callback)
        generator.tick(0, 1)
        self.assertEqual(seen, [])


if __name__ == "__main__":
    unittest.main()
