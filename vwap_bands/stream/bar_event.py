"""Per-bar inbound event and outbound band values."""

import math
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from vwap_bands.indicators.vwap_state import VWAPState


@dataclass
class BarEvent:
    """One bar update delivered by the bar stream."""

    high: float
    low: float
    close: float
    volume: float
    is_first_bar_of_session: bool = False
    is_first_tick_of_bar: bool = True
    bar_index: int = 0
    time: Optional[pd.Timestamp] = None


@dataclass
class BandOutputs:
    """VWAP and band values for one bar. NaN means undefined (not drawn)."""

    vwap: float = math.nan
    upper1: float = math.nan
    lower1: float = math.nan
    upper2: float = math.nan
    lower2: float = math.nan
    state: Optional[VWAPState] = None

    @classmethod
    def undefined(cls) -> "BandOutputs":
        return cls()

    @property
    def is_defined(self) -> bool:
        return not math.isnan(self.vwap)

    def as_dict(self) -> dict:
        return {
            "vwap": self.vwap,
            "upper1": self.upper1,
            "lower1": self.lower1,
            "upper2": self.upper2,
            "lower2": self.lower2,
            "vwap_state": self.state.value if self.state is not None else None,
        }
