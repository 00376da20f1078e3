"""Load OHLCV bars from CSV."""

import logging
from pathlib import Path

import pandas as pd

from vwap_bands.utils.timezone_utils import ensure_utc

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("time", "high", "low", "close", "volume")


def check_columns(df: pd.DataFrame) -> None:
    """Raise ValueError if any required bar column is missing."""
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Bar data missing column(s): {missing}")


def load_bars(path) -> pd.DataFrame:
    """Load bars from a CSV file.

    Args:
        path: CSV with at least: time, high, low, close, volume

    Returns:
        DataFrame sorted by time, with tz-aware UTC `time` and float prices.
    """
    path = Path(path)
    df = pd.read_csv(path)
    check_columns(df)

    df["time"] = ensure_utc(df["time"])
    for col in ("high", "low", "close", "volume"):
        df[col] = df[col].astype(float)

    df = df.sort_values("time").reset_index(drop=True)
    logger.info(f"Loaded {len(df)} bars from {path}")
    return df
