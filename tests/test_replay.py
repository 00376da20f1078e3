"""Tests for session detection, bar replay, CSV loading and reporting."""

import math

import numpy as np
import pandas as pd
import pytest

from vwap_bands.config import SessionConfig, VWAPBandsConfig
from vwap_bands.data.loader import load_bars
from vwap_bands.report import generate_report, summarize_sessions
from vwap_bands.stream.replay import OUTPUT_COLUMNS, ReplayEngine
from vwap_bands.stream.session import mark_session_starts


def make_bars(times, prices, volumes) -> pd.DataFrame:
    """Flat bars: high == low == close == price."""
    return pd.DataFrame({
        "time": pd.to_datetime(times, utc=True),
        "high": prices,
        "low": prices,
        "close": prices,
        "volume": volumes,
    })


class TestSessionStarts:
    def test_utc_midnight(self):
        times = pd.Series(pd.to_datetime([
            "2025-01-06 22:00", "2025-01-06 23:00",
            "2025-01-07 00:00", "2025-01-07 01:00",
        ], utc=True))
        starts = mark_session_starts(times)
        assert list(starts) == [True, False, True, False]

    def test_start_hour_in_exchange_timezone(self):
        """18:00 New York session open (23:00 UTC in winter)."""
        times = pd.Series(pd.to_datetime([
            "2025-01-06 22:00",  # 17:00 ET, previous session
            "2025-01-06 23:00",  # 18:00 ET, new session
            "2025-01-07 00:00",  # 19:00 ET
            "2025-01-07 14:30",  # 09:30 ET, same session
        ], utc=True))
        starts = mark_session_starts(times, start_hour=18, tz_name="America/New_York")
        assert list(starts) == [True, True, False, False]

    def test_naive_times_assumed_utc(self):
        times = pd.Series(pd.to_datetime(["2025-01-06 23:55", "2025-01-07 00:05"]))
        assert list(mark_session_starts(times)) == [True, True]

    def test_empty(self):
        starts = mark_session_starts(pd.Series(pd.to_datetime([], utc=True)))
        assert len(starts) == 0


class TestReplayEngine:
    def test_output_columns_and_length(self):
        df = make_bars(
            pd.date_range("2025-03-03 09:00", periods=10, freq="5min"),
            np.linspace(100, 101, 10),
            np.full(10, 100.0),
        )
        result = ReplayEngine().run(df)
        assert list(result.columns) == OUTPUT_COLUMNS
        assert len(result) == 10

    def test_session_reset_across_days(self):
        df = make_bars(
            ["2025-03-03 23:50", "2025-03-03 23:55", "2025-03-04 00:00", "2025-03-04 00:05"],
            [100.0, 102.0, 90.0, 92.0],
            [10.0, 10.0, 10.0, 30.0],
        )
        result = ReplayEngine().run(df)
        assert result["vwap"].iloc[1] == pytest.approx(101.0)
        # New session: first bar's VWAP is its own price
        assert result["vwap"].iloc[2] == pytest.approx(90.0)
        assert result["upper1"].iloc[2] == pytest.approx(90.0)
        assert result["vwap"].iloc[3] == pytest.approx((900.0 + 2760.0) / 40.0)

    def test_no_reset_when_disabled(self):
        df = make_bars(
            ["2025-03-03 23:55", "2025-03-04 00:00"],
            [100.0, 90.0],
            [10.0, 10.0],
        )
        result = ReplayEngine(VWAPBandsConfig(reset_on_new_session=False)).run(df)
        assert result["vwap"].iloc[1] == pytest.approx(95.0)

    def test_warmup_bars_undefined(self):
        df = make_bars(
            pd.date_range("2025-03-03 09:00", periods=5, freq="1min"),
            [100.0, 101.0, 102.0, 103.0, 104.0],
            [10.0] * 5,
        )
        result = ReplayEngine(warmup_bars=2).run(df)
        assert result["vwap"].iloc[:2].isna().all()
        assert result["vwap_state"].iloc[:2].isna().all()
        # Accumulation starts at the first non-warm-up bar
        assert result["vwap"].iloc[2] == pytest.approx(102.0)
        assert result["vwap"].iloc[4] == pytest.approx(103.0)

    def test_session_timezone(self):
        df = make_bars(
            ["2025-01-06 22:55", "2025-01-06 23:00"],
            [100.0, 90.0],
            [10.0, 10.0],
        )
        engine = ReplayEngine(session_config=SessionConfig(start_hour=18, timezone="America/New_York"))
        result = engine.run(df)
        assert result["vwap"].iloc[1] == pytest.approx(90.0)

    def test_states(self):
        df = pd.DataFrame({
            "time": pd.date_range("2025-03-03 09:00", periods=3, freq="1min", tz="UTC"),
            "high": [101.0, 103.0, 101.0],
            "low": [99.0, 101.0, 97.0],
            "close": [100.0, 103.0, 97.0],
            "volume": [10.0, 10.0, 10.0],
        })
        result = ReplayEngine(VWAPBandsConfig(use_typical_price=False)).run(df)
        assert list(result["vwap_state"]) == ["equal", "above", "below"]

    def test_second_run_starts_fresh(self):
        """Running the same frame twice gives identical outputs."""
        df = make_bars(
            ["2025-03-03 09:00", "2025-03-03 09:01"],
            [100.0, 110.0],
            [10.0, 10.0],
        )
        engine = ReplayEngine(VWAPBandsConfig(reset_on_new_session=False))
        first = engine.run(df)
        second = engine.run(df)
        assert first["vwap"].tolist() == pytest.approx([100.0, 105.0])
        assert second["vwap"].tolist() == pytest.approx([100.0, 105.0])
        assert len(engine.indicator.vwap_series) == 2

    def test_second_run_after_warmup(self):
        df = make_bars(
            pd.date_range("2025-03-03 09:00", periods=3, freq="1min"),
            [100.0, 102.0, 104.0],
            [10.0] * 3,
        )
        engine = ReplayEngine(warmup_bars=1)
        first = engine.run(df)
        second = engine.run(df)
        pd.testing.assert_frame_equal(first, second)

    def test_session_starts_exposed(self):
        df = make_bars(
            ["2025-03-03 23:55", "2025-03-04 00:00", "2025-03-04 00:05"],
            [100.0, 90.0, 91.0],
            [10.0, 10.0, 10.0],
        )
        engine = ReplayEngine()
        engine.run(df)
        assert list(engine.session_starts) == [True, True, False]

    def test_blank_volume_in_csv(self, tmp_path):
        """A missing volume cell is treated as zero volume."""
        path = tmp_path / "bars.csv"
        path.write_text(
            "time,high,low,close,volume\n"
            "2025-03-03 09:00,100,100,100,10\n"
            "2025-03-03 09:01,104,104,104,\n"
            "2025-03-03 09:02,102,102,102,10\n"
        )
        result = ReplayEngine().run(load_bars(path))
        assert result["vwap"].tolist() == pytest.approx([100.0, 100.0, 101.0])
        assert result["upper2"].notna().all()

    def test_missing_column(self):
        df = pd.DataFrame({"time": [], "close": [], "volume": []})
        with pytest.raises(ValueError, match="high"):
            ReplayEngine().run(df)


class TestLoadBars:
    def test_load_sorted_utc(self, tmp_path):
        path = tmp_path / "bars.csv"
        pd.DataFrame({
            "time": ["2025-03-03 09:05", "2025-03-03 09:00"],
            "open": [1, 1],
            "high": [101, 100],
            "low": [99, 98],
            "close": [100, 99],
            "volume": [5, 7],
        }).to_csv(path, index=False)

        df = load_bars(path)
        assert str(df["time"].dt.tz) == "UTC"
        assert df["close"].tolist() == [99.0, 100.0]
        assert df["volume"].dtype == float

    def test_missing_volume(self, tmp_path):
        path = tmp_path / "bars.csv"
        pd.DataFrame({"time": ["2025-03-03"], "high": [1], "low": [1], "close": [1]}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="volume"):
            load_bars(path)


class TestReport:
    def _replay(self):
        df = make_bars(
            ["2025-03-03 23:50", "2025-03-03 23:55", "2025-03-04 00:00", "2025-03-04 00:05"],
            [100.0, 102.0, 90.0, 88.0],
            [10.0, 10.0, 10.0, 10.0],
        )
        outputs = ReplayEngine().run(df)
        starts = mark_session_starts(df["time"])
        return outputs, starts

    def test_summarize_sessions(self):
        outputs, starts = self._replay()
        summary = summarize_sessions(outputs, starts)
        assert len(summary) == 2
        assert summary["bars"].tolist() == [2, 2]
        assert summary["final_vwap"].iloc[0] == pytest.approx(101.0)
        assert summary["final_vwap"].iloc[1] == pytest.approx(89.0)
        # Session 0: equal then above; session 1: equal then below
        assert summary["pct_above"].iloc[0] == pytest.approx(50.0)
        assert summary["pct_below"].iloc[1] == pytest.approx(50.0)

    def test_length_mismatch(self):
        outputs, starts = self._replay()
        with pytest.raises(ValueError):
            summarize_sessions(outputs, starts[:-1])

    def test_generate_report_writes_files(self, tmp_path):
        outputs, starts = self._replay()
        report = generate_report(outputs, starts, label="test", results_dir=tmp_path)
        bars = pd.read_csv(report["files"]["bars"])
        sessions = pd.read_csv(report["files"]["sessions"])
        assert len(bars) == 4
        assert len(sessions) == 2
        assert not math.isnan(bars["vwap"].iloc[0])
