"""Finished-bottle stock keyed by (variety, vintage)."""

import logging
from dataclasses import replace
from typing import Dict, List, Optional

import numpy as np

from .config import GameConfig
from .curves import lerp
from .market import MarketModel
from .models import (
    BottledWine, BottleStockEntry, SaleResult, StockKey, parse_stock_id
)


def merge_quality(old_quality: float, old_count: int,
                  new_quality: float, new_count: int) -> float:
    """Bottle-count weighted quality of two lots, clamped to [0, 100].

    An empty total divides by one.
    """
    total = old_count + new_count
    if total <= 0:
        total = 1
    merged = (old_quality * old_count + new_quality * new_count) / total
    return float(np.clip(merged, 0.0, 100.0))


def review_score_for(quality: float) -> int:
    """Critic score awarded on a wine's first sale."""
    return int(round(lerp(60.0, 95.0, quality / 100.0)))


class InventoryLedger:
    """Bottle stock with in-bottle quality drift and sales."""

    def __init__(self, config: GameConfig, market: MarketModel):
        self.config = config
        self.market = market
        self.logger = logging.getLogger("winesim.inventory")
        self._stock: Dict[StockKey, BottleStockEntry] = {}

    def new_game(self) -> None:
        self._stock = {}

    def load_entries(self, entries: List[BottleStockEntry]) -> None:
        self._stock = {}
        for entry in entries:
            existing = self._stock.get(entry.key)
            if existing is not None:
                # Two legacy ids can collapse onto one key
                existing.quality = merge_quality(existing.quality, existing.bottles,
                                                 entry.quality, entry.bottles)
                existing.bottles += entry.bottles
                continue
            self._stock[entry.key] = replace(entry)

    # Views

    def __len__(self) -> int:
        return len(self._stock)

    def __contains__(self, key: StockKey) -> bool:
        return key in self._stock

    def entry(self, variety: str, vintage_year: int) -> Optional[BottleStockEntry]:
        entry = self._stock.get((variety, vintage_year))
        return replace(entry) if entry is not None else None

    def entries(self) -> List[BottleStockEntry]:
        return [replace(entry) for entry in self._stock.values()]

    def count(self, variety: str, vintage_year: int) -> int:
        entry = self._stock.get((variety, vintage_year))
        return entry.bottles if entry is not None else 0

    @property
    def total_bottles(self) -> int:
        return sum(entry.bottles for entry in self._stock.values())

    # Stock changes

    def add_bottles(self, wine: BottledWine) -> Optional[BottleStockEntry]:
        """Merge a bottling run into stock."""
        if not wine.variety or wine.bottles <= 0:
            return None

        key = (wine.variety, wine.vintage_year)
        entry = self._stock.get(key)
        if entry is None:
            entry = BottleStockEntry(
                variety=wine.variety,
                vintage_year=wine.vintage_year,
                is_red=wine.is_red,
                bottles=0,
                quality=wine.initial_quality,
                bottled_day=wine.bottled_day,
            )
            self._stock[key] = entry

        entry.quality = merge_quality(entry.quality, entry.bottles, wine.initial_quality, wine.bottles)
        entry.bottles += wine.bottles
        self.logger.info(f"Stocked {wine.bottles} bottles of {entry.id}, now {entry.bottles}")
        return replace(entry)

    def tick(self, day: int) -> None:
        """Reds improve until their window closes, whites fade after theirs opens."""
        bottling = self.config.bottling
        for entry in self._stock.values():
            variety = self.config.get_variety(entry.variety)
            if variety is None:
                continue
            age = day - entry.bottled_day
            if entry.is_red:
                if age < variety.bottle_improve_days:
                    entry.quality += bottling.bottle_improvement_per_day
            elif age > variety.bottle_white_degrade_start:
                entry.quality -= bottling.bottle_white_degrade_per_day
            entry.quality = float(np.clip(entry.quality, 0.0, 100.0))

    def sell(self, variety: str, vintage_year: int, quantity: int) -> SaleResult:
        """Sell bottles at the market price.

        Fails with an empty result, leaving stock untouched, when the key is
        unknown or the quantity is not within (0, stock].
        """
        entry = self._stock.get((variety, vintage_year))
        if entry is None:
            self.logger.warning(f"No stock of {variety} {vintage_year}")
            return SaleResult()
        if isinstance(quantity, bool) or not isinstance(quantity, (int, np.integer)):
            self.logger.warning(f"Bottle quantity must be a whole number, got {quantity!r}")
            return SaleResult()
        if quantity <= 0 or quantity > entry.bottles:
            self.logger.warning(
                f"Cannot sell {quantity} of {entry.id}: {entry.bottles} in stock"
            )
            return SaleResult()

        review = None
        if not entry.has_review:
            entry.review_score = review_score_for(entry.quality)
            entry.has_review = True
            review = entry.review_score
            self.market.apply_review(entry.review_score)
            self.logger.info(f"First review for {entry.id}: {entry.review_score}")

        unit_price = self.market.price_for(entry.quality, entry.variety, entry.is_red)
        revenue = quantity * unit_price
        entry.bottles -= quantity
        if entry.bottles <= 0:
            del self._stock[entry.key]
        self.market.earn(revenue)
        self.logger.info(f"Sold {quantity} x {entry.id} at {unit_price} for {revenue}")
        return SaleResult(units_sold=quantity, revenue=revenue, unit_price=unit_price, review_score=review)

    def sell_by_id(self, stock_id: str, quantity: int) -> SaleResult:
        """Sell using a serialized ``Variety|Vintage`` id."""
        parsed = parse_stock_id(stock_id or "")
        if parsed is None:
            self.logger.warning(f"Unrecognised stock id '{stock_id}'")
            return SaleResult()
        return self.sell(parsed[0], parsed[1], quantity)
