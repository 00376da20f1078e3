"""Per-bar VWAP band indicator driven by a bar stream.

Each call to on_bar():
1. Skip warm-up bars (negative bar index)
2. Reset at the first tick of the first bar of a session
3. Accumulate the bar price and volume
4. Emit VWAP, inner/outer bands and the close-vs-VWAP state
"""

import logging
import math
from typing import List, Optional

from vwap_bands.config import VWAPBandsConfig
from vwap_bands.indicators.session_vwap import SessionAccumulator, bar_price
from vwap_bands.indicators.vwap_state import classify_vwap_state
from vwap_bands.stream.bar_event import BandOutputs, BarEvent

logger = logging.getLogger(__name__)


class VWAPBandsIndicator:
    """Session VWAP with +/-k1 and +/-k2 sigma bands for one instrument."""

    def __init__(self, config: Optional[VWAPBandsConfig] = None):
        self.config = config or VWAPBandsConfig()
        self.accumulator = SessionAccumulator()
        self.vwap_series: List[float] = []
        self.outputs = BandOutputs.undefined()
        self.session_count = 0

    def update_config(self, config: VWAPBandsConfig) -> None:
        """Swap parameters mid-stream. Takes effect from the next bar."""
        self.config = config

    def reset(self) -> BandOutputs:
        """Clear the session sums and mark the current bar's outputs undefined."""
        self.accumulator.reset()
        self.outputs = BandOutputs.undefined()
        return self.outputs

    def on_bar(self, event: BarEvent) -> BandOutputs:
        """Process a single bar update.

        Args:
            event: Bar data plus session/tick flags and bar index.

        Returns:
            BandOutputs for this bar. All NaN during warm-up.
        """
        if event.bar_index < 0:
            self.outputs = BandOutputs.undefined()
            self._record_vwap(event, math.nan)
            return self.outputs

        cfg = self.config

        if cfg.reset_on_new_session and event.is_first_bar_of_session and event.is_first_tick_of_bar:
            self.reset()
            self.session_count += 1
            logger.debug(f"Session reset at bar {event.bar_index} ({event.time})")

        if not event.volume >= 0:
            logger.warning(f"Invalid volume {event.volume} at bar {event.bar_index}, clamped to 0")

        price = bar_price(event.high, event.low, event.close, cfg.use_typical_price)
        self.accumulator.on_bar(price, event.volume)

        acc = self.accumulator
        upper1, lower1 = acc.band_values(cfg.deviations1, cfg.show_inner_band)
        upper2, lower2 = acc.band_values(cfg.deviations2, cfg.show_outer_band)

        self.outputs = BandOutputs(
            vwap=acc.vwap,
            upper1=upper1,
            lower1=lower1,
            upper2=upper2,
            lower2=lower2,
            state=classify_vwap_state(event.close, acc.vwap),
        )
        self._record_vwap(event, acc.vwap)
        return self.outputs

    def _record_vwap(self, event: BarEvent, value: float) -> None:
        # One entry per bar; later ticks of the same bar overwrite it
        if event.is_first_tick_of_bar or not self.vwap_series:
            self.vwap_series.append(value)
        else:
            self.vwap_series[-1] = value

    @property
    def vwap(self) -> float:
        return self.accumulator.vwap

    @property
    def sigma(self) -> float:
        return self.accumulator.sigma
