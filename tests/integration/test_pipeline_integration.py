"""End-to-end runs of the CLI against fake venue websites on a temp data dir."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from venuewatch.config.settings import Settings
from venuewatch.documents.merger import Merger
from venuewatch.documents.trimmer import Trimmer
from venuewatch.main import main
from venuewatch.pipeline.state import RunState, RunStatus
from venuewatch.storage.layout import DataLayout

Environment = Callable[[int], tuple[Settings, Any]]

_HAPPY_HOUR = "Happy Hour Mon-Fri 4pm-6pm: $5 drafts."


def _run(args: list[str], settings: Settings, sites: Any, extractor: Any) -> int:
    return main(args, settings=settings, transport=sites.transport(), extractor=extractor)


def _snapshot_dir(directory: Path) -> dict[str, bytes]:
    return {p.name: p.read_bytes() for p in sorted(directory.glob("*.json"))}


def _record(layout: DataLayout, venue_id: str) -> dict[str, Any]:
    return json.loads((layout.extractions_dir / f"{venue_id}.json").read_text())


def _state(layout: DataLayout) -> RunState:
    return RunState.model_validate_json(layout.run_state_path.read_bytes())


class TestFullAndIncremental:
    def test_incremental_requires_full_run(
        self, make_environment: Environment, extractor: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        settings, sites = make_environment(2)
        assert _run(["--incremental"], settings, sites, extractor) == 1
        err = capsys.readouterr().err
        assert "Pipeline aborted at stage startup" in err
        assert "--full" in err
        assert sites.calls == []

    def test_full_run_extracts_every_venue(
        self, make_environment: Environment, extractor: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        settings, sites = make_environment(3)
        assert _run(["--full"], settings, sites, extractor) == 0
        layout = DataLayout(settings.data_dir)
        assert sorted(extractor.calls) == ["v01", "v02", "v03"]
        assert layout.full_run_marker_path.is_file()
        record = _record(layout, "v01")
        assert record["result"]["found"] is False
        assert record["model"] == "keyword-test"
        assert len(record["normalized_source_hash"]) == 64
        out = capsys.readouterr().out
        assert "[fetch] 3 venue(s), 6 downloaded" in out
        assert "3 extracted" in out

    def test_same_day_rerun_is_idempotent(self, make_environment: Environment, extractor: Any) -> None:
        settings, sites = make_environment(3)
        assert _run(["--full"], settings, sites, extractor) == 0
        layout = DataLayout(settings.data_dir)
        merged = _snapshot_dir(layout.merged_dir)
        trimmed = _snapshot_dir(layout.trimmed_dir)
        records = _snapshot_dir(layout.extractions_dir)
        sites.calls.clear()
        extractor.calls.clear()

        assert _run(["--incremental"], settings, sites, extractor) == 0

        assert sites.calls == []
        assert extractor.calls == []
        assert _snapshot_dir(layout.merged_dir) == merged
        assert _snapshot_dir(layout.trimmed_dir) == trimmed
        assert _snapshot_dir(layout.extractions_dir) == records
        state = _state(layout)
        assert state.status is RunStatus.DONE
        assert state.counts is not None
        assert state.counts.candidates == 0


class TestDayOverDay:
    def test_happy_hour_appears_then_holds(self, make_environment: Environment, extractor: Any) -> None:
        settings, sites = make_environment(2)
        layout = DataLayout(settings.data_dir)

        assert _run(["--full", "--run-date", "2025-03-01"], settings, sites, extractor) == 0
        assert _record(layout, "v01")["result"]["found"] is False

        sites.specials["v01"] = _HAPPY_HOUR
        extractor.calls.clear()
        assert _run(["--run-date", "2025-03-02"], settings, sites, extractor) == 0
        assert extractor.calls == ["v01"]
        day_two = _record(layout, "v01")
        assert day_two["result"]["found"] is True
        assert day_two["result"]["entries"][0]["source"] == "https://v01.test/specials"
        counts = _state(layout).counts
        assert counts is not None
        assert (counts.changed, counts.unchanged, counts.extracted) == (1, 1, 1)

        extractor.calls.clear()
        assert _run(["--run-date", "2025-03-03"], settings, sites, extractor) == 0
        assert extractor.calls == []
        assert _record(layout, "v01") == day_two
        counts = _state(layout).counts
        assert counts is not None
        assert (counts.unchanged, counts.candidates) == (2, 0)

    def test_cosmetic_change_is_not_extracted(self, make_environment: Environment, extractor: Any) -> None:
        settings, sites = make_environment(2)
        assert _run(["--full", "--run-date", "2025-03-01"], settings, sites, extractor) == 0

        sites.footer_year["v02"] = 2025
        extractor.calls.clear()
        assert _run(["--run-date", "2025-03-02"], settings, sites, extractor) == 0
        counts = _state(DataLayout(settings.data_dir)).counts
        assert counts is not None
        assert counts.changed == 1
        assert counts.candidates == 0
        assert extractor.calls == []

    def test_unreachable_venue_keeps_its_record(self, make_environment: Environment, extractor: Any) -> None:
        settings, sites = make_environment(2)
        layout = DataLayout(settings.data_dir)
        assert _run(["--full", "--run-date", "2025-03-01"], settings, sites, extractor) == 0
        before = _record(layout, "v02")

        sites.offline.add("v02")
        assert _run(["--run-date", "2025-03-02"], settings, sites, extractor) == 0
        counts = _state(layout).counts
        assert counts is not None
        assert counts.unreachable == 1
        assert _record(layout, "v02") == before

    def test_venue_filter_limits_run(self, make_environment: Environment, extractor: Any) -> None:
        settings, sites = make_environment(3)
        assert _run(["--full", "--venue", "v02"], settings, sites, extractor) == 0
        assert extractor.calls == ["v02"]
        assert all("v02.test" in url for url in sites.calls)
        assert not DataLayout(settings.data_dir).full_run_marker_path.exists()


class TestCostFailSafe:
    def _change_all(self, sites: Any, count: int) -> None:
        for venue_id in list(sites.specials)[:count]:
            sites.specials[venue_id] = _HAPPY_HOUR

    def test_fifteen_candidates_proceed(self, make_environment: Environment, extractor: Any) -> None:
        settings, sites = make_environment(16)
        assert _run(["--full", "--run-date", "2025-03-01"], settings, sites, extractor) == 0
        self._change_all(sites, 15)
        extractor.calls.clear()
        assert _run(["--run-date", "2025-03-02"], settings, sites, extractor) == 0
        assert len(extractor.calls) == 15

    def test_sixteen_candidates_abort(
        self, make_environment: Environment, extractor: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        settings, sites = make_environment(16)
        layout = DataLayout(settings.data_dir)
        assert _run(["--full", "--run-date", "2025-03-01"], settings, sites, extractor) == 0
        self._change_all(sites, 16)
        extractor.calls.clear()
        capsys.readouterr()

        assert _run(["--run-date", "2025-03-02"], settings, sites, extractor) == 1

        assert extractor.calls == []
        err = capsys.readouterr().err
        assert "Pipeline aborted at stage cost_check" in err
        assert "16 extraction candidates exceed the ceiling of 15" in err
        assert _state(layout).label == "failed-at-cost_check"
        assert _record(layout, "v01")["result"]["found"] is False

    def test_override_lets_large_change_through(self, make_environment: Environment, extractor: Any) -> None:
        settings, sites = make_environment(16)
        assert _run(["--full", "--run-date", "2025-03-01"], settings, sites, extractor) == 0
        self._change_all(sites, 16)
        extractor.calls.clear()
        assert _run(["--run-date", "2025-03-02", "--max-candidates", "-1"], settings, sites, extractor) == 0
        assert len(extractor.calls) == 16


class TestCrashRecovery:
    def test_resume_after_crash_does_not_refetch(
        self, make_environment: Environment, extractor: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        settings, sites = make_environment(2)
        layout = DataLayout(settings.data_dir)
        with patch.object(Trimmer, "trim", side_effect=RuntimeError("killed")):
            assert _run(["--full", "--run-date", "2025-03-01"], settings, sites, extractor) == 1
        assert "Pipeline aborted at stage trim: killed" in capsys.readouterr().err
        assert _state(layout).label == "failed-at-trim"
        assert not layout.full_run_marker_path.exists()
        assert not layout.lock_path.exists()

        sites.calls.clear()
        assert _run(["--full", "--run-date", "2025-03-01"], settings, sites, extractor) == 0

        out = capsys.readouterr().out
        assert "[fetch] already completed, skipped" in out
        assert sites.calls == []
        assert sorted(extractor.calls) == ["v01", "v02"]
        assert layout.full_run_marker_path.is_file()

    def test_change_survives_crash_and_day_rollover(
        self, make_environment: Environment, extractor: Any
    ) -> None:
        settings, sites = make_environment(2)
        layout = DataLayout(settings.data_dir)
        assert _run(["--full", "--run-date", "2025-03-01"], settings, sites, extractor) == 0

        sites.specials["v01"] = _HAPPY_HOUR
        with patch.object(Merger, "merge", side_effect=RuntimeError("killed")):
            assert _run(["--run-date", "2025-03-02"], settings, sites, extractor) == 1
        assert _state(layout).label == "failed-at-merge"

        extractor.calls.clear()
        assert _run(["--run-date", "2025-03-03"], settings, sites, extractor) == 0
        assert extractor.calls == ["v01"]
        assert _record(layout, "v01")["result"]["found"] is True
        counts = _state(layout).counts
        assert counts is not None
        assert counts.changed == 0

    def test_locked_data_dir_is_rejected(
        self, make_environment: Environment, extractor: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        settings, sites = make_environment(1)
        layout = DataLayout(settings.data_dir)
        layout.ensure()
        layout.lock_path.write_text(
            json.dumps({"pid": 1, "holder": "other", "acquired_at": "2999-01-01T00:00:00"})
        )
        assert _run(["--full"], settings, sites, extractor) == 1
        assert "locked by pid 1" in capsys.readouterr().err
        assert sites.calls == []
