"""
Tests for the vineyard growth model: plot commands, daily growth,
readiness scoring and harvest.
"""

import sys
from pathlib import Path
import unittest

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from winesim.config import GameConfig, MonitoringConfig
from winesim.market import MarketModel
from winesim.models import DailyWeather
from winesim.vineyard import VineyardModel


def quiet_config(**kwargs) -> GameConfig:
    return GameConfig(monitoring=MonitoringConfig(log_level="CRITICAL"), **kwargs)


def make_weather(**overrides) -> DailyWeather:
    values = dict(
        day_index=180, t_min_c=15.0, t_avg_c=22.0, t_max_c=29.0, rain_mm=0.0,
        humidity_pct=60.0, wind_kph=10.0, wind_dir_deg=0.0, solar_mj_m2=20.0,
        sun_hours=12.0, cloud_frac=0.2, et0_mm=4.0, vpd_kpa=1.0, gdd_base10=12.0,
        mildew_index=20.0,
    )
    values.update(overrides)
    return DailyWeather(**values)


class VineyardTestCase(unittest.TestCase):

    def setUp(self):
        self.config = quiet_config()
        self.market = MarketModel(self.config)
        self.vineyard = VineyardModel(self.config, self.market)

    def make_ready(self, index: int) -> None:
        """Push a planted tile to full readiness."""
        tile = self.vineyard._tiles[index]
        variety = self.config.get_variety(tile.planted_variety)
        tile.brix = variety.target_harvest_brix + 3.0
        tile.phenolic = 100.0
        tile.ph = variety.target_ph


class TestPlotCommands(VineyardTestCase):

    def test_fresh_grid(self):
        """Fresh start: plots 0 and 1 owned, the rest locked."""
        self.assertEqual(len(self.vineyard), 24)
        owned = [i for i, tile in enumerate(self.vineyard.tiles()) if tile.owned]
        self.assertEqual(owned, [0, 1])
        self.assertFalse(any(tile.is_planted for tile in self.vineyard.tiles()))

    def test_buy_plot(self):
        self.assertTrue(self.vineyard.buy_plot(5))
        self.assertTrue(self.vineyard.tile(5).owned)
        self.assertEqual(self.market.cash, 50000 - 3000)

    def test_buy_owned_plot_fails(self):
        self.assertFalse(self.vineyard.buy_plot(0))
        self.assertEqual(self.market.cash, 50000)

    def test_buy_plot_out_of_range(self):
        self.assertFalse(self.vineyard.buy_plot(-1))
        self.assertFalse(self.vineyard.buy_plot(24))
        self.assertEqual(self.market.cash, 50000)

    def test_buy_plot_insufficient_funds(self):
        self.market.state.cash = 100
        self.assertFalse(self.vineyard.buy_plot(5))
        self.assertFalse(self.vineyard.tile(5).owned)
        self.assertEqual(self.market.cash, 100)

    def test_plant_resets_to_baseline(self):
        self.assertTrue(self.vineyard.plant(0, "Pinot Noir", year=2))
        tile = self.vineyard.tile(0)
        self.assertEqual(tile.planted_variety, "Pinot Noir")
        self.assertEqual(tile.brix, 12.0)
        self.assertEqual(tile.ph, 3.2)
        self.assertEqual(tile.phenolic, 10.0)
        self.assertEqual(tile.yield_kg, 1200.0)
        self.assertEqual(tile.vintage_year, 2)
        self.assertEqual(self.market.cash, 50000 - 800)

    def test_plant_unknown_variety_spends_nothing(self):
        self.assertFalse(self.vineyard.plant(0, "Merlot"))
        self.assertFalse(self.vineyard.is_planted(0))
        self.assertEqual(self.market.cash, 50000)

    def test_plant_requires_owned_empty_plot(self):
        self.assertFalse(self.vineyard.plant(7, "Chardonnay"))
        self.assertTrue(self.vineyard.plant(1, "Chardonnay"))
        self.assertFalse(self.vineyard.plant(1, "Pinot Noir"))
        self.assertEqual(self.vineyard.tile(1).planted_variety, "Chardonnay")
        self.assertEqual(self.market.cash, 50000 - 800)

    def test_plant_insufficient_funds(self):
        self.market.state.cash = 10
        self.assertFalse(self.vineyard.plant(0, "Pinot Noir"))
        self.assertFalse(self.vineyard.is_planted(0))

    def test_snapshots_are_copies(self):
        self.vineyard.plant(0, "Pinot Noir")
        snapshot = self.vineyard.tile(0)
        snapshot.brix = 99.0
        self.assertEqual(self.vineyard.tile(0).brix, 12.0)
        self.vineyard.tiles()[0].owned = False
        self.assertTrue(self.vineyard.tile(0).owned)
        self.assertIsNone(self.vineyard.tile(99))


class TestGrowth(VineyardTestCase):

    def setUp(self):
        super().setUp()
        self.vineyard.plant(0, "Pinot Noir")

    def test_midsummer_sugar_gain(self):
        self.vineyard.tick(make_weather(), day_of_year=180, days_per_year=360)
        self.assertAlmostEqual(self.vineyard.tile(0).brix, 12.4)
        self.assertEqual(self.vineyard.tile(0).days_since_planting, 1)

    def test_rain_penalises_sugar(self):
        self.vineyard.tick(make_weather(rain_mm=5.0), day_of_year=180, days_per_year=360)
        self.assertAlmostEqual(self.vineyard.tile(0).brix, 12.25)

    def test_winter_rain_floor(self):
        self.vineyard.tick(make_weather(rain_mm=5.0), day_of_year=0, days_per_year=360)
        self.assertAlmostEqual(self.vineyard.tile(0).brix, 12.01)

    def test_ph_moves_toward_target(self):
        before = abs(self.vineyard.tile(0).ph - 3.5)
        self.vineyard.tick(make_weather(), 180, 360)
        after = abs(self.vineyard.tile(0).ph - 3.5)
        self.assertLess(after, before)

    def test_phenolic_needs_warmth(self):
        self.vineyard.tick(make_weather(t_avg_c=10.0), 180, 360)
        self.assertAlmostEqual(self.vineyard.tile(0).phenolic, 10.0)
        self.vineyard.tick(make_weather(t_avg_c=30.0), 180, 360)
        self.assertGreater(self.vineyard.tile(0).phenolic, 10.0)

    def test_soil_moisture_is_clamped(self):
        self.vineyard.tick(make_weather(rain_mm=500.0), 180, 360)
        self.assertEqual(self.vineyard.tile(0).soil_moisture, 1.0)
        for _ in range(30):
            self.vineyard.tick(make_weather(et0_mm=8.0), 180, 360)
        tile = self.vineyard.tile(0)
        self.assertEqual(tile.soil_moisture, 0.0)
        self.assertGreater(tile.water_stress, 0.5)
        self.assertAlmostEqual(tile.liters_per_kg, 0.62)

    def test_disease_drifts_toward_mildew(self):
        for _ in range(100):
            self.vineyard.tick(make_weather(mildew_index=80.0), 180, 360)
        self.assertAlmostEqual(self.vineyard.tile(0).disease_pressure, 0.8, places=3)

    def test_heatwave_speeds_acid_loss(self):
        hot =make_weather(t_avg_c=30.0, heatwave=True)
        self.vineyard.tick(hot, 180, 360)
        tile = self.vineyard.tile(0)
        # warmth 1.0, doubled by the heatwave
        self.assertAlmostEqual(tile.ta, 7.0 - 0.08)

    def test_hail_reduces_yield(self):
        self.vineyard.tick(make_weather(hail=True, storm=True), 180, 360)
        self.assertAlmostEqual(self.vineyard.tile(0).yield_kg, 1200.0 * 0.85)

    def test_unplanted_tiles_untouched(self):
        before = self.vineyard.tile(1)
        self.vineyard.tick(make_weather(rain_mm=20.0), 180, 360)
        self.assertEqual(self.vineyard.tile(1), before)

    def test_bounds_after_long_run(self):
        for day in range(720):
            self.vineyard.tick(make_weather(t_avg_c=35.0, t_max_c=40.0, mildew_index=100.0), day % 360, 360)
        tile = self.vineyard.tile(0)
        self.assertTrue(0.0 <= tile.phenolic <= 100.0)
        self.assertTrue(0.0 <= tile.color_index <= 100.0)
        self.assertTrue(0.0 <= tile.aroma_index <= 100.0)
        self.assertTrue(0.0 <= tile.disease_pressure <= 1.0)
        self.assertGreaterEqual(tile.ta, 3.0)


class TestReadinessAndHarvest(VineyardTestCase):

    def test_unplanted_readiness_is_zero(self):
        self.assertEqual(self.vineyard.readiness(0), 0.0)
        self.assertEqual(self.vineyard.readiness(5), 0.0)
        self.assertEqual(self.vineyard.readiness(-3), 0.0)

    def test_fresh_planting_readiness(self):
        self.vineyard.plant(0, "Pinot Noir")
        # Only the pH term contributes: 1 - 0.3 / 0.6 = 0.5, weighted 0.2
        self.assertAlmostEqual(self.vineyard.readiness(0), 0.1)

    def test_full_readiness(self):
        self.vineyard.plant(0, "Pinot Noir")
        self.make_ready(0)
        self.assertAlmostEqual(self.vineyard.readiness(0), 1.0)

    def test_readiness_clamped_for_extremes(self):
        self.vineyard.plant(0, "Cabernet Sauvignon")
        tile = self.vineyard._tiles[0]
        for brix, phenolic, ph in [(1000, 1000, 3.6), (-50, -50, -10), (24, 500, 40), (0, 0, 3.6)]:
            tile.brix, tile.phenolic, tile.ph = brix, phenolic, ph
            readiness = self.vineyard.readiness(0)
            self.assertGreaterEqual(readiness, 0.0)
            self.assertLessEqual(readiness, 1.0)

    def test_harvest_refused_below_threshold(self):
        self.vineyard.plant(0, "Pinot Noir")
        before = self.vineyard.tile(0)
        self.assertLess(self.vineyard.readiness(0), 0.65)
        self.assertFalse(self.vineyard.can_harvest(0))
        self.assertIsNone(self.vineyard.harvest(0, year=1))
        self.assertEqual(self.vineyard.tile(0), before)

    def test_harvest_unplanted_or_bad_index(self):
        self.assertIsNone(self.vineyard.harvest(0))
        self.assertIsNone(self.vineyard.harvest(100))

    def test_harvest_produces_batch_and_resets(self):
        self.vineyard.plant(0, "Pinot Noir", year=0)
        self.make_ready(0)
        weather = make_weather(t_avg_c=17.5)
        batch = self.vineyard.harvest(0, year=1, weather=weather)

        self.assertIsNotNone(batch)
        self.assertEqual(batch.variety, "Pinot Noir")
        self.assertEqual(batch.vintage_year, 1)
        self.assertEqual(batch.kg, 1200)
        self.assertAlmostEqual(batch.brix, 26.0)
        self.assertAlmostEqual(batch.phenolic, 100.0)
        self.assertAlmostEqual(batch.must_temp_c, 17.5)
        self.assertEqual(batch.liters, 840)
        self.assertTrue(60.0 <= batch.yan <= 350.0)
        self.assertTrue(0.0 <= batch.dilution <= 1.0)

        tile = self.vineyard.tile(0)
        self.assertTrue(tile.owned)
        self.assertEqual(tile.planted_variety, "Pinot Noir")
        self.assertEqual((tile.brix, tile.ph, tile.phenolic), (12.0, 3.2, 10.0))
        self.assertEqual(tile.days_since_planting, 0)
        self.assertEqual(tile.vintage_year, 2)
        self.assertEqual(self.vineyard.readiness(0), self.vineyard.readiness_of(
            tile, self.config.get_variety("Pinot Noir")))

    def test_second_harvest_in_a_year_gets_next_vintage(self):
        self.vineyard.plant(0, "Pinot Noir", year=0)
        self.make_ready(0)
        first = self.vineyard.harvest(0, year=0)
        self.make_ready(0)
        second = self.vineyard.harvest(0, year=0)
        self.assertEqual((first.vintage_year, second.vintage_year), (0, 1))
        self.assertEqual(self.vineyard.tile(0).vintage_year, 2)

    def test_harvest_keeps_planted_vintage(self):
        self.vineyard.plant(0, "Pinot Noir", year=3)
        self.make_ready(0)
        batch = self.vineyard.harvest(0, year=1)
        self.assertEqual(batch.vintage_year, 3)

    def test_new_game_resets_grid(self):
        self.vineyard.buy_plot(5)
        self.vineyard.plant(0, "Pinot Noir")
        self.vineyard.new_game()
        owned = [i for i, tile in enumerate(self.vineyard.tiles()) if tile.owned]
        self.assertEqual(owned, [0, 1])
        self.assertFalse(self.vineyard.is_planted(0))


if __name__ == "__main__":
    unittest.main()
