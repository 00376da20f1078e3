"""Close-vs-VWAP classification used to color the VWAP line.

Three-way, no hysteresis, re-evaluated every bar.
"""

from enum import Enum


class VWAPState(Enum):
    ABOVE = "above"
    BELOW = "below"
    EQUAL = "equal"


STATE_COLORS = {
    VWAPState.ABOVE: "LimeGreen",
    VWAPState.BELOW: "Red",
    VWAPState.EQUAL: "Gray",
}


def classify_vwap_state(close: float, vwap: float) -> VWAPState:
    """Classify close relative to VWAP.

    A NaN VWAP compares false both ways and falls through to EQUAL.
    """
    if close > vwap:
        return VWAPState.ABOVE
    if close < vwap:
        return VWAPState.BELOW
    return VWAPState.EQUAL
