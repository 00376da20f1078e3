"""Bar-by-bar replay of historical data through the VWAP band indicator.

Processes each bar:
1. Flag session starts from the bar timestamps
2. Build a BarEvent (bar-close mode: one tick per bar)
3. Run the indicator
4. Collect outputs into a DataFrame
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from vwap_bands.config import SessionConfig, VWAPBandsConfig
from vwap_bands.data.loader import check_columns
from vwap_bands.stream.bar_event import BarEvent
from vwap_bands.stream.indicator import VWAPBandsIndicator
from vwap_bands.stream.session import mark_session_starts
from vwap_bands.utils.timezone_utils import ensure_utc

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = ["time", "vwap", "upper1", "lower1", "upper2", "lower2", "vwap_state"]


class ReplayEngine:
    """Drives a VWAPBandsIndicator over a DataFrame of bars."""

    def __init__(
        self,
        config: Optional[VWAPBandsConfig] = None,
        session_config: Optional[SessionConfig] = None,
        warmup_bars: int = 0,
    ):
        self.config = config or VWAPBandsConfig()
        self.session_config = session_config or SessionConfig()
        self.warmup_bars = warmup_bars
        self.indicator = VWAPBandsIndicator(self.config)
        self.session_starts = np.zeros(0, dtype=bool)

    def events(self, df: pd.DataFrame):
        """Yield one BarEvent per row.

        The first `warmup_bars` rows get a negative bar index so the
        indicator treats them as pre-stream bars.
        """
        check_columns(df)
        starts = mark_session_starts(
            df["time"], self.session_config.start_hour, self.session_config.timezone
        )
        self.session_starts = starts
        times = list(ensure_utc(df["time"]))
        high = df["high"].values
        low = df["low"].values
        close = df["close"].values
        volume = df["volume"].values

        for i in range(len(df)):
            yield BarEvent(
                high=float(high[i]),
                low=float(low[i]),
                close=float(close[i]),
                volume=float(volume[i]),
                is_first_bar_of_session=bool(starts[i]),
                is_first_tick_of_bar=True,
                bar_index=i - self.warmup_bars,
                time=times[i],
            )

    def run(self, df: pd.DataFrame) -> pd.DataFrame:
        """Run the indicator over all bars.

        Args:
            df: DataFrame with columns: time, high, low, close, volume

        Returns:
            DataFrame with columns: time, vwap, upper1, lower1, upper2, lower2, vwap_state
        """
        # Each run starts from an empty accumulator
        self.indicator = VWAPBandsIndicator(self.config)
        rows = []
        for event in self.events(df):
            outputs = self.indicator.on_bar(event)
            row = outputs.as_dict()
            row["time"] = event.time
            rows.append(row)

        logger.info(
            f"Replayed {len(rows)} bars across {self.indicator.session_count} session(s)"
        )
        return pd.DataFrame(rows, columns=OUTPUT_COLUMNS)
