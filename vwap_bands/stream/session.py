"""Session-start detection for replayed bars.

A session runs from `start_hour` local time to `start_hour` the next day.
Each bar is keyed by the local date of its session; a new key means the
bar is the first bar of a session.
"""

import numpy as np
import pandas as pd

from vwap_bands.utils.timezone_utils import utc_to_local_series


def session_dates(times: pd.Series, start_hour: int = 0, tz_name: str = "UTC") -> pd.Series:
    """Map each timestamp to the date of the session it belongs to.

    Bars before `start_hour` local time belong to the previous day's session.
    """
    local = utc_to_local_series(times, tz_name)
    shifted = local - pd.Timedelta(hours=start_hour)
    return shifted.dt.date


def mark_session_starts(times: pd.Series, start_hour: int = 0, tz_name: str = "UTC") -> np.ndarray:
    """Flag the first bar of every session.

    Args:
        times: Series of bar timestamps (naive = UTC).
        start_hour: Local hour at which a session begins.
        tz_name: Session timezone.

    Returns:
        Boolean array, True where a new session starts. The first bar is
        always a session start.
    """
    n = len(times)
    if n == 0:
        return np.zeros(0, dtype=bool)

    keys = session_dates(times, start_hour, tz_name).values
    starts = np.ones(n, dtype=bool)
    starts[1:] = keys[1:] != keys[:-1]
    return starts
