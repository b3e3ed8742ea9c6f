from venuewatch.archiving.archiver import Archiver
from venuewatch.delta.models import DeltaCounts
from venuewatch.delta.normalized_detector import NormalizedDeltaDetector
from venuewatch.delta.raw_detector import RawDeltaDetector
from venuewatch.documents.exceptions import DocumentError
from venuewatch.documents.merger import Merger
from venuewatch.documents.models import MergedDocument, TrimmedDocument
from venuewatch.documents.trimmer import Trimmer
from venuewatch.extraction.orchestrator import ExtractionCandidate, ExtractionOrchestrator
from venuewatch.failsafe.cost_guard import CostFailSafe
from venuewatch.fetching.fetcher import Fetcher
from venuewatch.logging.logger import Log
from venuewatch.pipeline.pipeline import PipelineContext, PipelineStep
from venuewatch.pipeline.state import Stage
from venuewatch.snapshots.store import SnapshotStore
from venuewatch.storage.record_store import JsonRecordStore


class ArchiveStep(PipelineStep):
    stage = Stage.ARCHIVE

    def __init__(self, archiver: Archiver) -> None:
        self._archiver = archiver

    def run(self, context: PipelineContext) -> PipelineContext:
        context.archive_result = self._archiver.run(context.run_date)
        return context

    def summarize(self, context: PipelineContext) -> str:
        result = context.archive_result
        if result is None or not result.new_day:
            return "same day, nothing archived"
        if not result.rolled_over:
            return "new day, nothing to archive"
        return f"archived snapshots from {result.previous_date or 'an unknown date'}"


class FetchStep(PipelineStep):
    stage = Stage.FETCH

    def __init__(self, fetcher: Fetcher) -> None:
        self._fetcher = fetcher

    def run(self, context: PipelineContext) -> PipelineContext:
        context.fetch_summary = self._fetcher.fetch_all(context.venues, context.run_date)
        return context

    def summarize(self, context: PipelineContext) -> str:
        summary = context.fetch_summary
        if summary is None:
            return "skipped"
        return (
            f"{summary.venues} venue(s), {summary.downloaded} downloaded, {summary.cached} cached, "
            f"{summary.failed} failed, {summary.unreachable} unreachable"
        )


class RawDeltaStep(PipelineStep):
    stage = Stage.RAW_DELTA

    def __init__(self, detector: RawDeltaDetector, today: SnapshotStore) -> None:
        self._detector = detector
        self._today = today

    def run(self, context: PipelineContext) -> PipelineContext:
        venue_ids = [venue.id for venue in context.venues]
        if not context.filtered:
            known = set(venue_ids)
            for venue_id in self._today.venue_ids():
                if venue_id not in known:
                    Log.info(f"Venue {venue_id} is no longer in the directory; ignored")
        context.changes = self._detector.detect(venue_ids)
        return context

    def summarize(self, context: PipelineContext) -> str:
        counts = DeltaCounts.from_records(context.changes)
        return (
            f"{counts.new} new, {counts.changed} changed, {counts.unchanged} unchanged, "
            f"{counts.unreachable} unreachable"
        )


class MergeStep(PipelineStep):
    """Rebuilds the merged document of every reachable venue from today's snapshot.

    Output is byte-stable, so venues whose pages did not change rewrite identical files.
    Raw delta status is not used here: after a crashed run rolls over to a new day a
    venue can read as unchanged while its derived files still predate the change.
    """

    stage = Stage.MERGE

    def __init__(
        self,
        merger: Merger,
        today: SnapshotStore,
        merged: JsonRecordStore[MergedDocument],
    ) -> None:
        self._merger = merger
        self._today = today
        self._merged = merged

    def run(self, context: PipelineContext) -> PipelineContext:
        context.merged_ids = []
        for venue_id in context.reachable_ids():
            snapshot = self._today.load(venue_id)
            if snapshot is None:
                Log.warning(f"No snapshot to merge for {venue_id}")
                continue
            try:
                document = self._merger.merge(snapshot)
            except DocumentError as exc:
                Log.warning(f"Skipping merge for {venue_id}: {exc}")
                continue
            self._merged.write(venue_id, document)
            context.merged_ids.append(venue_id)
        Log.info(f"Merged {len(context.merged_ids)} venue(s)")
        return context

    def summarize(self, context: PipelineContext) -> str:
        return f"{len(context.merged_ids)} venue(s) merged"


class TrimStep(PipelineStep):
    stage = Stage.TRIM

    def __init__(
        self,
        trimmer: Trimmer,
        merged: JsonRecordStore[MergedDocument],
        trimmed: JsonRecordStore[TrimmedDocument],
    ) -> None:
        self._trimmer = trimmer
        self._merged = merged
        self._trimmed = trimmed

    def run(self, context: PipelineContext) -> PipelineContext:
        context.trimmed_ids = []
        for venue_id in context.merged_ids:
            document = self._merged.load(venue_id)
            if document is None:
                Log.warning(f"No merged document to trim for {venue_id}")
                continue
            trimmed = self._trimmer.trim(document)
            self._trimmed.write(venue_id, trimmed)
            context.trimmed_ids.append(venue_id)
            Log.debug(f"Trimmed {venue_id}: {trimmed.size_reduction}% smaller")
        Log.info(f"Trimmed {len(context.trimmed_ids)} venue(s)")
        return context

    def summarize(self, context: PipelineContext) -> str:
        return f"{len(context.trimmed_ids)} venue(s) trimmed"


class NormalizedDeltaStep(PipelineStep):
    stage = Stage.NORMALIZED_DELTA

    def __init__(
        self,
        detector: NormalizedDeltaDetector,
        trimmed: JsonRecordStore[TrimmedDocument],
    ) -> None:
        self._detector = detector
        self._trimmed = trimmed

    def run(self, context: PipelineContext) -> PipelineContext:
        context.deltas = []
        context.candidates = []
        for venue_id in context.reachable_ids():
            document = self._trimmed.load(venue_id)
            if document is None:
                Log.warning(f"No trimmed document for {venue_id}; not compared")
                continue
            delta = self._detector.compare(document)
            context.deltas.append(delta)
            if delta.is_candidate:
                reason = "no previous extraction" if delta.previous_hash is None else "content changed"
                Log.info(f"Candidate {document.venue_name} ({venue_id}): {reason}")
            elif context.full:
                Log.info(f"Candidate {document.venue_name} ({venue_id}): full run")
            else:
                continue
            context.candidates.append(
                ExtractionCandidate(document=document, normalized_source_hash=delta.normalized_source_hash)
            )
        return context

    def summarize(self, context: PipelineContext) -> str:
        return f"{len(context.deltas)} compared, {len(context.candidates)} candidate(s)"


class CostCheckStep(PipelineStep):
    stage = Stage.COST_CHECK

    def __init__(self, fail_safe: CostFailSafe) -> None:
        self._fail_safe = fail_safe

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.full:
            Log.info(f"Full run: cost ceiling not applied to {len(context.candidates)} candidate(s)")
            return context
        self._fail_safe.check(len(context.candidates))
        return context

    def summarize(self, context: PipelineContext) -> str:
        ceiling = self._fail_safe.max_candidates
        if context.full or ceiling < 0:
            return f"{len(context.candidates)} candidate(s), no ceiling"
        return f"{len(context.candidates)} candidate(s) within ceiling of {ceiling}"


class ExtractStep(PipelineStep):
    stage = Stage.EXTRACT

    def __init__(self, orchestrator: ExtractionOrchestrator) -> None:
        self._orchestrator = orchestrator

    def run(self, context: PipelineContext) -> PipelineContext:
        context.extraction = self._orchestrator.run(context.candidates, force=context.full)
        return context

    def summarize(self, context: PipelineContext) -> str:
        summary = context.extraction
        if summary is None:
            return "skipped"
        return (
            f"{len(summary.extracted)} extracted, {len(summary.skipped)} skipped, "
            f"{len(summary.failed)} failed"
        )
