"""Market index, brand level, cash and wine pricing."""

import logging
from dataclasses import replace
from typing import Optional

import numpy as np

from .config import GameConfig
from .curves import clamp01, lerp
from .models import MarketState

DAY_SALT = 2654435761
SEED_MASK = 0xFFFFFFFF


class MarketModel:
    """Owns cash, the bounded market index random walk and brand level.

    Each day's step draws from a generator derived from ``(seed, day)`` only,
    so a reloaded game continues the exact same walk.
    """

    def __init__(self, config: GameConfig):
        self.config = config
        self.logger = logging.getLogger("winesim.market")
        self.state = MarketState(cash=0, market_index=1.0, brand_level=1.0)
        self.new_game()

    @property
    def cash(self) -> int:
        return self.state.cash

    @property
    def market_index(self) -> float:
        return self.state.market_index

    @property
    def brand_level(self) -> float:
        return self.state.brand_level

    def new_game(self) -> None:
        market = self.config.market
        self.state = MarketState(
            cash=int(self.config.economy.starting_cash),
            market_index=(market.index_min + market.index_max) / 2.0,
            brand_level=float(market.brand_start),
        )

    def snapshot(self) -> MarketState:
        return replace(self.state)

    def load_state(self, state: MarketState) -> None:
        self.state = replace(state)

    # Cash

    def try_spend(self, amount: int) -> bool:
        """Deduct ``amount`` if affordable; never goes negative."""
        if amount < 0:
            return False
        if self.state.cash < amount:
            self.logger.warning(f"Insufficient funds: need {amount}, have {self.state.cash}")
            return False
        self.state.cash -= int(amount)
        return True

    def earn(self, amount: int) -> None:
        if amount > 0:
            self.state.cash += int(amount)

    # Daily walk

    def tick(self, day: int) -> float:
        """Advance the market index by one bounded random step."""
        market = self.config.market
        rng = np.random.RandomState((int(market.seed) ^ (int(day) * DAY_SALT)) & SEED_MASK)
        step = rng.uniform(-1.0, 1.0) * market.step_max
        self.state.market_index = float(
            np.clip(self.state.market_index + step, market.index_min, market.index_max)
        )
        return self.state.market_index

    # Pricing

    def price_for(self, quality: float, variety: str, is_red: bool) -> int:
        """Unit price in whole euros for a bottle of the given wine."""
        market = self.config.market
        base = lerp(market.price_low, market.price_high, quality / 100.0)
        brand_boost = lerp(0.9, 1.3, clamp01(self.state.brand_level - 0.5))
        price = base * self.state.market_index * brand_boost
        if variety in market.premium_varieties:
            price *= market.premium_multiplier
        if is_red:
            price *= market.red_multiplier
        return max(0, int(round(price)))

    def apply_review(self, score: int) -> float:
        """Nudge brand level by a review relative to the neutral score."""
        market = self.config.market
        nudge = float(np.clip((score - market.neutral_review_score) / 1000.0,
                              market.review_step_min, market.review_step_max))
        self.state.brand_level = float(
            np.clip(self.state.brand_level + nudge, market.brand_min, market.brand_max)
        )
        self.logger.info(f"Review {score} moved brand level to {self.state.brand_level:.3f}")
        return self.state.brand_level

    def wholesale_value(self, kg: int, price_per_kg: Optional[float] = None) -> int:
        """Value of grapes sold off the vine."""
        if price_per_kg is None:
            price_per_kg = self.config.economy.grape_wholesale_per_kg
        return max(0, int(round(kg * price_per_kg)))
