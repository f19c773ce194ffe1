"""
Tests for the market model: cash, index random walk, pricing and brand.
"""

import sys
from pathlib import Path
import unittest

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from winesim.config import GameConfig, MarketConfig, MonitoringConfig
from winesim.market import MarketModel
from winesim.models import MarketState


def quiet_config(**kwargs) -> GameConfig:
    return GameConfig(monitoring=MonitoringConfig(log_level="CRITICAL"), **kwargs)


class TestMarketModel(unittest.TestCase):

    def setUp(self):
        self.config = quiet_config()
        self.market = MarketModel(self.config)

    def test_new_game(self):
        """Fresh start: starting cash, index at the midpoint of its bounds."""
        self.assertEqual(self.market.cash, 50000)
        self.assertAlmostEqual(self.market.market_index, 1.0)
        self.assertAlmostEqual(self.market.brand_level, 1.0)

        skewed = MarketModel(quiet_config(market=MarketConfig(index_min=0.5, index_max=1.5)))
        self.assertAlmostEqual(skewed.market_index, 1.0)
        skewed = MarketModel(quiet_config(market=MarketConfig(index_min=0.6, index_max=1.0)))
        self.assertAlmostEqual(skewed.market_index, 0.8)

    def test_try_spend(self):
        self.assertTrue(self.market.try_spend(1000))
        self.assertEqual(self.market.cash, 49000)
        self.assertFalse(self.market.try_spend(49001))
        self.assertEqual(self.market.cash, 49000)
        self.assertFalse(self.market.try_spend(-5))
        self.assertTrue(self.market.try_spend(49000))
        self.assertEqual(self.market.cash, 0)

    def test_earn(self):
        self.market.earn(250)
        self.market.earn(-100)
        self.assertEqual(self.market.cash, 50250)

    def test_walk_is_bounded(self):
        previous = self.market.market_index
        for day in range(2000):
            index = self.market.tick(day)
            self.assertGreaterEqual(index, 0.8)
            self.assertLessEqual(index, 1.2)
            self.assertLessEqual(abs(index - previous), 0.01 + 1e-12)
            previous = index

    def test_walk_is_reproducible(self):
        other = MarketModel(self.config)
        first = [self.market.tick(day) for day in range(100)]
        second = [other.tick(day) for day in range(100)]
        self.assertEqual(first, second)

    def test_walk_resumes_after_restore(self):
        for day in range(50):
            self.market.tick(day)
        saved = self.market.snapshot()
        expected = [self.market.tick(day) for day in range(50, 60)]

        restored = MarketModel(self.config)
        restored.load_state(saved)
        self.assertEqual([restored.tick(day) for day in range(50, 60)], expected)

    def test_price(self):
        # quality 100, neutral brand (boost 1.1), neutral index
        self.assertEqual(self.market.price_for(100.0, "Chardonnay", False), 132)
        self.assertEqual(self.market.price_for(100.0, "Pinot Noir", True), 152)
        self.assertEqual(self.market.price_for(0.0, "Chardonnay", False), 6)

    def test_price_follows_index_and_brand(self):
        low = self.market.price_for(70.0, "Chardonnay", False)
        self.market.state.market_index = 1.2
        high_index = self.market.price_for(70.0, "Chardonnay", False)
        self.market.state.brand_level = 2.0
        high_brand = self.market.price_for(70.0, "Chardonnay", False)
        self.assertLess(low, high_index)
        self.assertLess(high_index, high_brand)

    def test_review_nudges_brand(self):
        self.assertAlmostEqual(self.market.apply_review(95), 1.025)
        self.assertAlmostEqual(self.market.apply_review(20), 1.005)
        self.assertAlmostEqual(self.market.apply_review(70), 1.005)

    def test_brand_is_clamped(self):
        self.market.load_state(MarketState(cash=0, market_index=1.0, brand_level=1.99))
        self.assertAlmostEqual(self.market.apply_review(100), 2.0)
        self.market.load_state(MarketState(cash=0, market_index=1.0, brand_level=0.51))
        self.assertAlmostEqual(self.market.apply_review(0), 0.5)

    def test_wholesale_value(self):
        self.assertEqual(self.market.wholesale_value(1000), 1200)
        self.assertEqual(self.market.wholesale_value(2000), 2400)
        self.assertEqual(self.market.wholesale_value(10, price_per_kg=2.5), 25)

    def test_snapshot_is_a_copy(self):
        snapshot = self.market.snapshot()
        snapshot.cash = 1
        self.assertEqual(self.market.cash, 50000)


if __name__ == "__main__":
    unittest.main()
