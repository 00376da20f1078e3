"""Replay reporting: per-bar CSV export and per-session summary."""

import logging
from pathlib import Path

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

RESULTS_DIR = Path(__file__).resolve().parent.parent / "results"


def summarize_sessions(outputs: pd.DataFrame, session_starts: np.ndarray) -> pd.DataFrame:
    """One row per session: bar count, closing VWAP and band width, state mix.

    Args:
        outputs: ReplayEngine.run() result
        session_starts: Boolean array from mark_session_starts(), same length

    Returns:
        DataFrame with columns: session, start_time, bars, final_vwap,
        final_upper1, final_lower1, pct_above, pct_below
    """
    if len(outputs) != len(session_starts):
        raise ValueError(
            f"outputs has {len(outputs)} rows but session_starts has {len(session_starts)}"
        )
    if len(outputs) == 0:
        return pd.DataFrame(columns=[
            "session", "start_time", "bars", "final_vwap",
            "final_upper1", "final_lower1", "pct_above", "pct_below",
        ])

    session_id = np.cumsum(session_starts) - 1
    frame = outputs.assign(session=session_id)

    rows = []
    for sid, grp in frame.groupby("session", sort=True):
        defined = grp[~grp["vwap"].isna()]
        n_defined = len(defined)
        last = grp.iloc[-1]
        rows.append({
            "session": int(sid),
            "start_time": grp["time"].iloc[0],
            "bars": len(grp),
            "final_vwap": last["vwap"],
            "final_upper1": last["upper1"],
            "final_lower1": last["lower1"],
            "pct_above": (defined["vwap_state"] == "above").sum() / n_defined * 100 if n_defined else np.nan,
            "pct_below": (defined["vwap_state"] == "below").sum() / n_defined * 100 if n_defined else np.nan,
        })
    return pd.DataFrame(rows)


def generate_report(
    outputs: pd.DataFrame,
    session_starts: np.ndarray,
    label: str = "vwap_bands",
    results_dir=None,
) -> dict:
    """Write per-bar outputs and session summary CSVs.

    Args:
        outputs: ReplayEngine.run() result
        session_starts: Boolean array of session starts
        label: Name prefix for output files
        results_dir: Output directory. Defaults to results/

    Returns:
        Dict with summary DataFrame and file paths
    """
    out_dir = Path(results_dir) if results_dir is not None else RESULTS_DIR
    out_dir.mkdir(parents=True, exist_ok=True)

    bars_path = out_dir / f"{label}_bars.csv"
    outputs.to_csv(bars_path, index=False)

    summary = summarize_sessions(outputs, session_starts)
    summary_path = out_dir / f"{label}_sessions.csv"
    summary.to_csv(summary_path, index=False)

    logger.info(f"Wrote {len(outputs)} bars, {len(summary)} sessions to {out_dir}")
    return {
        "summary": summary,
        "files": {
            "bars": str(bars_path),
            "sessions": str(summary_path),
        },
    }
