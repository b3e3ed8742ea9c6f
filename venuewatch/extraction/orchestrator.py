from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from venuewatch.documents.models import TrimmedDocument
from venuewatch.extraction.base import BaseExtractor
from venuewatch.extraction.exceptions import ExtractionError, ExtractionRateLimitError
from venuewatch.extraction.record_store import (
    ExtractionRecord,
    ExtractionRecordStore,
    FailedExtraction,
)
from venuewatch.logging.logger import Log
from venuewatch.throttling.rate_limiter import RateLimiter


@dataclass(frozen=True)
class ExtractionCandidate:
    document: TrimmedDocument
    normalized_source_hash: str

    @property
    def venue_id(self) -> str:
        return self.document.venue_id


@dataclass
class ExtractionSummary:
    extracted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class ExtractionOrchestrator:
    """Sends candidates to the extractor one at a time and records the outcome.

    Calls are spaced by the rate limiter. Rate-limit rejections are retried with
    exponential backoff; any other failure is recorded for that venue only.
    """

    def __init__(
        self,
        *,
        extractor: BaseExtractor,
        records: ExtractionRecordStore,
        rate_limiter: RateLimiter,
        max_attempts: int = 3,
        backoff_seconds: float = 2.0,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._extractor = extractor
        self._records = records
        self._rate_limiter = rate_limiter
        self._max_attempts = max(1, max_attempts)
        self._backoff_seconds = backoff_seconds
        self._now = now

    def run(self, candidates: list[ExtractionCandidate], force: bool = False) -> ExtractionSummary:
        summary = ExtractionSummary()
        total = len(candidates)
        for index, candidate in enumerate(candidates, start=1):
            document = candidate.document
            if not force and self._already_extracted(candidate):
                Log.info(
                    f"[{index}/{total}] Skipping {document.venue_name} ({document.venue_id}): "
                    "normalized content matches last extraction"
                )
                summary.skipped.append(document.venue_id)
                continue

            Log.info(f"[{index}/{total}] Extracting {document.venue_name} ({document.venue_id})")
            if self._process(candidate):
                summary.extracted.append(document.venue_id)
            else:
                summary.failed.append(document.venue_id)

        Log.info(
            f"Extraction finished: {len(summary.extracted)} extracted, "
            f"{len(summary.skipped)} skipped, {len(summary.failed)} failed"
        )
        return summary

    def _already_extracted(self, candidate: ExtractionCandidate) -> bool:
        previous = self._records.previous_normalized_hash(candidate.venue_id)
        return previous == candidate.normalized_source_hash

    def _process(self, candidate: ExtractionCandidate) -> bool:
        document = candidate.document
        attempt = 0
        while True:
            attempt += 1
            self._rate_limiter.wait()
            try:
                result = self._extractor.extract(document)
                break
            except ExtractionRateLimitError as exc:
                if attempt >= self._max_attempts:
                    self._record_failure(candidate, exc, attempt)
                    return False
                delay = self._backoff_seconds * 2 ** (attempt - 1)
                Log.warning(
                    f"Rate limited on {document.venue_id} (attempt {attempt}/{self._max_attempts}), "
                    f"backing off {delay:.1f}s"
                )
                self._rate_limiter.pause(delay)
            except ExtractionError as exc:
                self._record_failure(candidate, exc, attempt)
                return False

        self._records.save(
            ExtractionRecord.from_result(
                venue_id=document.venue_id,
                venue_name=document.venue_name,
                result=result,
                source_hash=document.source_hash(),
                normalized_source_hash=candidate.normalized_source_hash,
                processed_at=self._now(),
                model=self._extractor.model_name,
            )
        )
        return True

    def _record_failure(self, candidate: ExtractionCandidate, exc: ExtractionError, attempts: int) -> None:
        document = candidate.document
        Log.error(f"Extraction failed for {document.venue_id} after {attempts} attempt(s): {exc}")
        self._records.save_failure(
            FailedExtraction(
                venue_id=document.venue_id,
                venue_name=document.venue_name,
                error=str(exc),
                error_type=type(exc).__name__,
                attempts=attempts,
                source_hash=document.source_hash(),
                normalized_source_hash=candidate.normalized_source_hash,
                failed_at=self._now(),
            )
        )
