from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date

from venuewatch.archiving.archiver import ArchiveResult
from venuewatch.delta.models import ChangeRecord, ChangeStatus, NormalizedDelta
from venuewatch.extraction.orchestrator import ExtractionCandidate, ExtractionSummary
from venuewatch.fetching.models import FetchSummary
from venuewatch.pipeline.state import RunMode, Stage
from venuewatch.venues.models import Venue


@dataclass(slots=True)
class PipelineContext:
    run_date: date
    mode: RunMode
    venues: list[Venue]
    filtered: bool = False
    archive_result: ArchiveResult | None = None
    fetch_summary: FetchSummary | None = None
    changes: list[ChangeRecord] = field(default_factory=list)
    merged_ids: list[str] = field(default_factory=list)
    trimmed_ids: list[str] = field(default_factory=list)
    deltas: list[NormalizedDelta] = field(default_factory=list)
    candidates: list[ExtractionCandidate] = field(default_factory=list)
    extraction: ExtractionSummary | None = None

    @property
    def full(self) -> bool:
        return self.mode is RunMode.FULL

    def reachable_ids(self) -> list[str]:
        return [c.venue_id for c in self.changes if c.status is not ChangeStatus.UNREACHABLE]


class PipelineStep(ABC):
    stage: Stage

    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError

    def summarize(self, context: PipelineContext) -> str:
        """One line describing what the step did, printed after it completes."""
        return "done"
