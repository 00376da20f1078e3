"""Session VWAP (Volume Weighted Average Price) with standard deviation bands.

VWAP  = sum(price * volume) / sum(volume)
sigma = sqrt(sum(price^2 * volume) / sum(volume) - VWAP^2)

The accumulator keeps three running sums, so each update is O(1) in time
and space. It is reset at the start of every session.
"""

import math
from enum import Enum
from typing import Tuple

import numpy as np
import pandas as pd

from vwap_bands.stream.session import mark_session_starts

# Smallest positive double. sum_v at or below this is treated as no volume.
VOLUME_EPSILON = float(np.finfo(np.float64).smallest_subnormal)


class AccumulatorState(Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"


def bar_price(high: float, low: float, close: float, use_typical_price: bool = True) -> float:
    """Price fed to the accumulator: typical price (H+L+C)/3 or close only."""
    if use_typical_price:
        return (high + low + close) / 3.0
    return close


class SessionAccumulator:
    """Running volume-weighted moments of price for one session.

    Holds sum(p*v), sum(p^2*v) and sum(v) since the last reset, plus the
    VWAP and sigma derived from them on the most recent update.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Clear all sums. VWAP and sigma become undefined (NaN)."""
        self.sum_pv = 0.0
        self.sum_pv2 = 0.0
        self.sum_v = 0.0
        self.vwap = math.nan
        self.sigma = math.nan
        self.bar_count = 0

    def on_bar(self, price: float, volume: float) -> None:
        """Accumulate one bar and refresh VWAP / sigma.

        Args:
            price: Bar price (typical price or close).
            volume: Bar volume. Negative or NaN values are clamped to 0.
        """
        vol = volume if volume > 0.0 else 0.0

        self.sum_pv += price * vol
        self.sum_pv2 += price * price * vol
        self.sum_v += vol
        self.bar_count += 1

        if self.sum_v <= VOLUME_EPSILON:
            # Not enough volume yet
            self.vwap = price
            self.sigma = 0.0
            return

        self.vwap = self.sum_pv / self.sum_v
        variance = self.sum_pv2 / self.sum_v - self.vwap * self.vwap
        if variance < 0.0:
            variance = 0.0
        self.sigma = math.sqrt(variance)

    def band_values(self, deviations: float, enabled: bool = True) -> Tuple[float, float]:
        """Upper and lower band at `deviations` sigmas from VWAP.

        Returns (NaN, NaN) when the band is disabled, which the chart layer
        reads as "do not draw, do not autoscale".
        """
        if not enabled:
            return math.nan, math.nan
        offset = deviations * self.sigma
        return self.vwap + offset, self.vwap - offset

    @property
    def is_empty(self) -> bool:
        return self.bar_count == 0

    @property
    def state(self) -> AccumulatorState:
        if self.is_empty:
            return AccumulatorState.EMPTY
        return AccumulatorState.ACCUMULATING

    def current_vwap(self) -> float:
        return self.vwap

    def current_sigma(self) -> float:
        return self.sigma


def compute_session_vwap(
    df: pd.DataFrame,
    session_start_hour_utc: int = 0,
    band_mult: float = 1.0,
    use_typical_price: bool = True,
) -> pd.DataFrame:
    """Compute session-based VWAP with standard deviation bands.

    Sessions are split with mark_session_starts(), so a data gap that skips
    the start hour still opens a new session.

    Args:
        df: DataFrame with columns: time, high, low, close, volume
        session_start_hour_utc: Hour (UTC) at which a new session begins.
        band_mult: Standard deviation multiplier for bands.
        use_typical_price: Use (H+L+C)/3 instead of close.

    Returns:
        DataFrame with columns: vwap, vwap_upper, vwap_lower, vwap_sigma
    """
    n = len(df)
    starts = mark_session_starts(df["time"], session_start_hour_utc, "UTC")
    high = df["high"].values.astype(float)
    low = df["low"].values.astype(float)
    close = df["close"].values.astype(float)
    volume = df["volume"].values.astype(float)

    vwap = np.full(n, np.nan)
    vwap_upper = np.full(n, np.nan)
    vwap_lower = np.full(n, np.nan)
    vwap_sigma = np.full(n, np.nan)

    acc = SessionAccumulator()

    for i in range(n):
        if starts[i]:
            acc.reset()

        acc.on_bar(bar_price(high[i], low[i], close[i], use_typical_price), volume[i])

        vwap[i] = acc.vwap
        vwap_sigma[i] = acc.sigma
        vwap_upper[i], vwap_lower[i] = acc.band_values(band_mult)

    return pd.DataFrame({
        "vwap": vwap,
        "vwap_upper": vwap_upper,
        "vwap_lower": vwap_lower,
        "vwap_sigma": vwap_sigma,
    })
