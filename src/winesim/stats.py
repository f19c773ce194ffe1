"""Rolling per-day statistics."""

from collections import deque
from typing import Dict, List, Optional

import numpy as np

MAX_DAYS = 370
SERIES = ("cash", "revenue", "expense", "bottles")


class StatsTracker:
    """Records cash, revenue, expense and bottle stock once per day.

    Revenue and expense are the positive and negative parts of the daily
    cash delta.
    """

    def __init__(self, market, inventory=None, max_days: int = MAX_DAYS):
        self.market = market
        self.inventory = inventory
        self.max_days = max_days
        self._series: Dict[str, deque] = {name: deque(maxlen=max_days) for name in SERIES}
        self._last_cash: Optional[int] = None

    def attach(self, events) -> None:
        events.on_day_changed(self.record)

    def detach(self, events) -> None:
        events.off_day_changed(self.record)

    def reset(self) -> None:
        for series in self._series.values():
            series.clear()
        self._last_cash = None

    def record(self) -> None:
        cash = self.market.cash
        delta = 0 if self._last_cash is None else cash - self._last_cash
        self._last_cash = cash
        self._series["cash"].append(cash)
        self._series["revenue"].append(max(0, delta))
        self._series["expense"].append(max(0, -delta))
        self._series["bottles"].append(self.inventory.total_bottles if self.inventory is not None else 0)

    def __len__(self) -> int:
        return len(self._series["cash"])

    def tail(self, series: str, n: int) -> List[int]:
        """Last ``n`` values of a series, oldest first."""
        if series not in self._series:
            raise KeyError(f"Unknown series '{series}', expected one of {SERIES}")
        values = list(self._series[series])
        return values[-n:] if n > 0 else []

    def summary(self) -> Dict[str, Dict[str, float]]:
        result = {}
        for name, values in self._series.items():
            data = np.asarray(values, dtype=float)
            if data.size == 0:
                result[name] = {"last": 0.0, "mean": 0.0, "min": 0.0, "max": 0.0, "total": 0.0}
                continue
            result[name] = {
                "last": float(data[-1]),
                "mean": float(np.mean(data)),
                "min": float(np.min(data)),
                "max": float(np.max(data)),
                "total": float(np.sum(data)),
            }
        return result
