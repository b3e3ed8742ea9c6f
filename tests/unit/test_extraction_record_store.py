from datetime import date, datetime
from pathlib import Path

from venuewatch.extraction.models import ExtractionResult, HappyHourEntry
from venuewatch.extraction.record_store import (
    ExtractionRecord,
    ExtractionRecordStore,
    FailedExtraction,
)
from venuewatch.storage.layout import DataLayout

_HASH_A = "a" * 64
_HASH_B = "b" * 64
_NOW = datetime(2025, 3, 1, 10, 0, 0)


def _make_store(layout: DataLayout) -> ExtractionRecordStore:
    return ExtractionRecordStore(
        layout.extractions_dir,
        layout.failed_extractions_dir,
        layout.full_run_marker_path,
        layout.quarantine_dir,
    )


def _make_record(venue_id: str = "v1", normalized_hash: str = _HASH_A) -> ExtractionRecord:
    result = ExtractionResult(
        found=True,
        entries=[HappyHourEntry(days="Mon-Fri", times="4-6pm", specials=["$5 wine"], confidence=80)],
    )
    return ExtractionRecord.from_result(
        venue_id=venue_id,
        venue_name="Venue",
        result=result,
        source_hash=_HASH_B,
        normalized_source_hash=normalized_hash,
        processed_at=_NOW,
        model="gpt-4o-mini",
    )


def _make_failure(venue_id: str = "v1") -> FailedExtraction:
    return FailedExtraction(
        venue_id=venue_id,
        venue_name="Venue",
        error="AI provider network error",
        error_type="ExtractionNetworkError",
        attempts=1,
        source_hash=_HASH_B,
        normalized_source_hash=_HASH_B,
        failed_at=_NOW,
    )


def _stored(directory: Path) -> list[str]:
    return sorted(p.stem for p in directory.glob("*.json"))


class TestExtractionRecord:
    def test_from_result_stores_plain_result(self) -> None:
        record = _make_record()
        assert record.result["found"] is True
        assert record.result["entries"][0]["specials"] == ["$5 wine"]
        assert record.result["entries"][0]["confidence"] == 80


class TestExtractionRecordStore:
    def test_save_and_previous_hash(self, layout: DataLayout) -> None:
        store = _make_store(layout)
        store.save(_make_record())
        assert store.previous_normalized_hash("v1") == _HASH_A
        assert _stored(layout.extractions_dir) == ["v1"]

    def test_previous_hash_none_without_record(self, layout: DataLayout) -> None:
        assert _make_store(layout).previous_normalized_hash("v1") is None

    def test_failure_leaves_successful_record(self, layout: DataLayout) -> None:
        store = _make_store(layout)
        store.save(_make_record())
        store.save_failure(_make_failure())
        assert store.previous_normalized_hash("v1") == _HASH_A
        assert _stored(layout.failed_extractions_dir) == ["v1"]
        assert _stored(layout.extractions_dir) == ["v1"]

    def test_success_clears_failure(self, layout: DataLayout) -> None:
        store = _make_store(layout)
        store.save_failure(_make_failure())
        store.save(_make_record())
        assert _stored(layout.failed_extractions_dir) == []

    def test_failed_dir_not_listed_as_record(self, layout: DataLayout) -> None:
        store = _make_store(layout)
        store.save_failure(_make_failure("v2"))
        assert store.load("v2") is None
        assert _stored(layout.extractions_dir) == []

    def test_corrupt_record_is_quarantined(self, layout: DataLayout) -> None:
        store = _make_store(layout)
        (layout.extractions_dir / "v1.json").write_text('{"venue_id": "v1"}')
        assert store.load("v1") is None
        assert not (layout.extractions_dir / "v1.json").exists()
        assert any(layout.quarantine_dir.iterdir())

    def test_full_run_marker(self, layout: DataLayout) -> None:
        store = _make_store(layout)
        assert not store.full_run_complete()
        store.mark_full_run_complete(date(2025, 3, 1), _NOW)
        assert store.full_run_complete()
        assert _stored(layout.extractions_dir) == []
