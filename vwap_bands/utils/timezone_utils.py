"""Timezone helpers for session boundaries."""

import pandas as pd
import pytz


def get_timezone(name: str):
    """Resolve a timezone name, e.g. "America/New_York"."""
    return pytz.timezone(name)


def ensure_utc(times: pd.Series) -> pd.Series:
    """Return timestamps as tz-aware UTC. Naive input is assumed UTC."""
    times = pd.to_datetime(times)
    if times.dt.tz is None:
        return times.dt.tz_localize("UTC")
    return times.dt.tz_convert("UTC")


def utc_to_local_series(times: pd.Series, tz_name: str) -> pd.Series:
    """Convert a Series of UTC timestamps to the given timezone."""
    return ensure_utc(times).dt.tz_convert(get_timezone(tz_name))
