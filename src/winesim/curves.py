"""
Seasonal curve and smooth-noise utilities.

Curves are defined by plain ``(t, value)`` control points over the year
fraction ``t`` in [0, 1] and evaluated with a monotone piecewise-cubic
(Fritsch-Carlson) interpolant, so a curve never overshoots its control points.
"""

import math
from typing import Iterable, Sequence, Tuple, Union

import numpy as np

Number = Union[int, float]


def clamp01(value: float) -> float:
    return float(min(1.0, max(0.0, value)))


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation with ``t`` clamped to [0, 1]."""
    return a + (b - a) * clamp01(t)


def inverse_lerp(a: float, b: float, value: float) -> float:
    """Position of ``value`` between ``a`` and ``b``, clamped to [0, 1]."""
    if a == b:
        return 0.0
    return clamp01((value - a) / (b - a))


class SeasonalCurve:
    """Monotone cubic interpolation over a year fraction."""

    def __init__(self, points: Iterable[Sequence[Number]]):
        ordered = {}
        for t, value in points:
            ordered[float(t)] = float(value)
        if len(ordered) < 2:
            raise ValueError("A seasonal curve needs at least two distinct control points")

        keys = sorted(ordered)
        self._t = np.array(keys, dtype=float)
        self._v = np.array([ordered[k] for k in keys], dtype=float)
        self._m = self._tangents(self._t, self._v)

    @staticmethod
    def _tangents(t: np.ndarray, v: np.ndarray) -> np.ndarray:
        h = np.diff(t)
        delta = np.diff(v) / h
        m = np.empty_like(v)
        m[0] = delta[0]
        m[-1] = delta[-1]
        m[1:-1] = (delta[:-1] + delta[1:]) / 2.0

        # Local extrema get flat tangents
        for k in range(1, len(v) - 1):
            if delta[k - 1] * delta[k] <= 0:
                m[k] = 0.0

        for k in range(len(delta)):
            if delta[k] == 0:
                m[k] = 0.0
                m[k + 1] = 0.0
                continue
            a = m[k] / delta[k]
            b = m[k + 1] / delta[k]
            s = a * a + b * b
            if s > 9.0:
                tau = 3.0 / math.sqrt(s)
                m[k] = tau * a * delta[k]
                m[k + 1] = tau * b * delta[k]
        return m

    @property
    def points(self) -> Tuple[Tuple[float, float], ...]:
        return tuple(zip(self._t.tolist(), self._v.tolist()))

    def __call__(self, t: float) -> float:
        t = float(np.clip(t, self._t[0], self._t[-1]))
        k = int(np.searchsorted(self._t, t, side="right")) - 1
        k = min(max(k, 0), len(self._t) - 2)

        h = self._t[k + 1] - self._t[k]
        s = (t - self._t[k]) / h
        s2 = s * s
        s3 = s2 * s
        h00 = 2 * s3 - 3 * s2 + 1
        h10 = s3 - 2 * s2 + s
        h01 = -2 * s3 + 3 * s2
        h11 = s3 - s2
        return float(
            h00 * self._v[k] + h10 * h * self._m[k]
            + h01 * self._v[k + 1] + h11 * h * self._m[k + 1]
        )

    @classmethod
    def from_monthly(cls, values: Sequence[Number]) -> 'SeasonalCurve':
        """Curve through twelve monthly values anchored at mid-month.

        The year ends are pinned to the December/January average so the
        curve wraps around continuously.
        """
        if len(values) != 12:
            raise ValueError(f"Expected 12 monthly values, got {len(values)}")
        points = [((m + 0.5) / 12.0, values[m]) for m in range(12)]
        edge = 0.5 * (float(values[0]) + float(values[11]))
        points.append((0.0, edge))
        points.append((1.0, edge))
        return cls(points)

    @classmethod
    def sine(cls, minimum: float, maximum: float) -> 'SeasonalCurve':
        """Five-key sine-like year: trough at New Year, peak at mid-year."""
        mid = 0.5 * (minimum + maximum)
        return cls([(0.0, minimum), (0.25, mid), (0.5, maximum), (0.75, mid), (1.0, minimum)])

    @classmethod
    def flat(cls, value: float) -> 'SeasonalCurve':
        return cls([(0.0, value), (1.0, value)])


def _lattice_gradient(i: int, salt: int) -> float:
    h = (i * 374761393 + salt * 668265263) & 0xFFFFFFFF
    h = ((h ^ (h >> 13)) * 1274126177) & 0xFFFFFFFF
    h ^= h >> 16
    return (h / 0xFFFFFFFF) * 2.0 - 1.0


def smooth_noise(x: float, salt: int = 0) -> float:
    """Deterministic 1-D gradient noise in [-0.5, 0.5]."""
    i0 = math.floor(x)
    f = x - i0
    n0 = _lattice_gradient(i0, salt) * f
    n1 = _lattice_gradient(i0 + 1, salt) * (f - 1.0)
    u = f * f * f * (f * (f * 6.0 - 15.0) + 10.0)
    return float(n0 + u * (n1 - n0))
