#!/usr/bin/env python3
"""Replay bars from CSV through the session VWAP band indicator.

Usage:
    python -m scripts.run_vwap_bands --bars data/bars.csv
    python -m scripts.run_vwap_bands --config config/default.yaml --dev1 1.5 --dev2 3.0
    python -m scripts.run_vwap_bands --bars data/es_1m.csv --timezone America/New_York --session-start 18
"""

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from vwap_bands.config import SessionConfig, VWAPBandsConfig, parse_config, read_config
from vwap_bands.data.loader import load_bars
from vwap_bands.report import generate_report
from vwap_bands.stream.replay import ReplayEngine


def setup_logging(logs_dir: str = None, verbose: bool = False) -> None:
    """Configure logging to console and, optionally, file."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Console handler
    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root_logger.addHandler(console)

    # File handler — DEBUG level
    if logs_dir:
        os.makedirs(logs_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(logs_dir, "vwap_bands.log"))
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        root_logger.addHandler(file_handler)


def apply_overrides(bands: VWAPBandsConfig, session: SessionConfig, args):
    """CLI flags override config file values."""
    band_overrides = {}
    if args.dev1 is not None:
        band_overrides["deviations1"] = args.dev1
    if args.dev2 is not None:
        band_overrides["deviations2"] = args.dev2
    if args.hide_inner:
        band_overrides["show_inner_band"] = False
    if args.hide_outer:
        band_overrides["show_outer_band"] = False
    if args.no_session_reset:
        band_overrides["reset_on_new_session"] = False
    if args.close_only:
        band_overrides["use_typical_price"] = False

    session_overrides = {}
    if args.session_start is not None:
        session_overrides["start_hour"] = args.session_start
    if args.timezone is not None:
        session_overrides["timezone"] = args.timezone

    bands = replace(bands, **band_overrides)
    session = replace(session, **session_overrides)
    bands.validate()
    session.validate()
    return bands, session


def main():
    parser = argparse.ArgumentParser(description="Session VWAP with sigma bands")
    parser.add_argument("--config", default="config/default.yaml", help="Config file path")
    parser.add_argument("--bars", default=None, help="Bars CSV (time, high, low, close, volume)")
    parser.add_argument("--dev1", type=float, default=None, help="Override inner band multiplier")
    parser.add_argument("--dev2", type=float, default=None, help="Override outer band multiplier")
    parser.add_argument("--hide-inner", action="store_true", help="Disable inner band")
    parser.add_argument("--hide-outer", action="store_true", help="Disable outer band")
    parser.add_argument("--no-session-reset", action="store_true", help="Never reset at session start")
    parser.add_argument("--close-only", action="store_true", help="Use close instead of typical price")
    parser.add_argument("--session-start", type=int, default=None, help="Override session start hour")
    parser.add_argument("--timezone", default=None, help="Override session timezone")
    parser.add_argument("--warmup", type=int, default=None, help="Warm-up bars with no output")
    parser.add_argument("--label", default="vwap_bands", help="Result file prefix")
    parser.add_argument("--logs-dir", default=None, help="Also log to this directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on console")
    args = parser.parse_args()

    setup_logging(args.logs_dir, args.verbose)
    logger = logging.getLogger(__name__)

    try:
        # Load config
        config_path = Path(args.config)
        config = read_config(config_path)
        bands, session = parse_config(config)
        data_cfg = config.get("data") or {}

        bands, session = apply_overrides(bands, session, args)
        bars_path = args.bars or data_cfg.get("bars_csv", "data/bars.csv")
        warmup = args.warmup if args.warmup is not None else data_cfg.get("warmup_bars", 0)

        logger.info(
            f"Bands: ±{bands.deviations1}σ ({'on' if bands.show_inner_band else 'off'}), "
            f"±{bands.deviations2}σ ({'on' if bands.show_outer_band else 'off'})"
        )
        logger.info(f"Session: {session.start_hour:02d}:00 {session.timezone}, reset={bands.reset_on_new_session}")

        df = load_bars(bars_path)
        engine = ReplayEngine(bands, session, warmup_bars=warmup)
        outputs = engine.run(df)

        report = generate_report(
            outputs,
            engine.session_starts,
            label=args.label,
            results_dir=data_cfg.get("output_dir"),
        )
    except Exception as e:
        logger.error(f"VWAP band replay failed: {e}", exc_info=True)
        sys.exit(1)

    print(f"\nFiles saved:")
    for name, path in report["files"].items():
        print(f"  {name}: {path}")


if __name__ == "__main__":
    main()
