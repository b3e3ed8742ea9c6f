from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from venuewatch.extraction.models import ExtractionResult
from venuewatch.storage.atomic import atomic_write_json
from venuewatch.storage.record_store import JsonRecordStore


class ExtractionRecord(BaseModel):
    """Last successful extraction for a venue; its hashes decide future skips."""

    venue_id: str = Field(min_length=1)
    venue_name: str
    result: dict[str, Any]
    source_hash: str = Field(min_length=64, max_length=64)
    normalized_source_hash: str = Field(min_length=64, max_length=64)
    processed_at: datetime
    model: str = ""

    @classmethod
    def from_result(
        cls,
        *,
        venue_id: str,
        venue_name: str,
        result: ExtractionResult,
        source_hash: str,
        normalized_source_hash: str,
        processed_at: datetime,
        model: str,
    ) -> "ExtractionRecord":
        return cls(
            venue_id=venue_id,
            venue_name=venue_name,
            result=asdict(result),
            source_hash=source_hash,
            normalized_source_hash=normalized_source_hash,
            processed_at=processed_at,
            model=model,
        )


class FailedExtraction(BaseModel):
    venue_id: str = Field(min_length=1)
    venue_name: str
    error: str
    error_type: str
    attempts: int = Field(ge=1)
    source_hash: str
    normalized_source_hash: str
    failed_at: datetime


class FullRunMarker(BaseModel):
    run_date: date
    completed_at: datetime


class ExtractionRecordStore:
    """Successful records in extractions/, failures in extractions/failed/.

    A failure never touches the venue's successful record, so the venue keeps
    comparing against the last good hash and stays a candidate.
    """

    def __init__(
        self,
        records_dir: Path,
        failed_dir: Path,
        full_run_marker_path: Path,
        quarantine_dir: Path,
    ) -> None:
        self._records = JsonRecordStore(records_dir, ExtractionRecord, quarantine_dir)
        self._failures = JsonRecordStore(failed_dir, FailedExtraction, quarantine_dir)
        self._marker_path = full_run_marker_path

    def load(self, venue_id: str) -> ExtractionRecord | None:
        return self._records.load(venue_id)

    def previous_normalized_hash(self, venue_id: str) -> str | None:
        record = self.load(venue_id)
        return record.normalized_source_hash if record is not None else None

    def save(self, record: ExtractionRecord) -> None:
        self._records.write(record.venue_id, record)
        self._failures.delete(record.venue_id)

    def save_failure(self, failure: FailedExtraction) -> None:
        self._failures.write(failure.venue_id, failure)

    def full_run_complete(self) -> bool:
        return self._marker_path.is_file()

    def mark_full_run_complete(self, run_date: date, completed_at: datetime) -> None:
        marker = FullRunMarker(run_date=run_date, completed_at=completed_at)
        atomic_write_json(self._marker_path, marker.model_dump(mode="json"))
