import argparse
import sys
from collections.abc import Sequence
from datetime import date, timedelta
from pathlib import Path

import httpx

from venuewatch.archiving.archiver import Archiver
from venuewatch.config.settings import Settings
from venuewatch.delta.normalized_detector import NormalizedDeltaDetector
from venuewatch.delta.raw_detector import RawDeltaDetector
from venuewatch.documents.merger import Merger
from venuewatch.documents.models import MergedDocument, TrimmedDocument
from venuewatch.documents.trimmer import Trimmer
from venuewatch.extraction.base import BaseExtractor
from venuewatch.extraction.factory import ExtractorFactory
from venuewatch.extraction.orchestrator import ExtractionOrchestrator
from venuewatch.extraction.record_store import ExtractionRecordStore
from venuewatch.failsafe.cost_guard import CostFailSafe
from venuewatch.fetching.fetcher import Fetcher
from venuewatch.fetching.http_client import HttpClient
from venuewatch.logging.logger import Log
from venuewatch.pipeline.exceptions import PipelineError, StageFailedError
from venuewatch.pipeline.lock import PipelineLock
from venuewatch.pipeline.pipeline import PipelineContext
from venuewatch.pipeline.runner import PipelineRunner, StageCallback
from venuewatch.pipeline.state import RunMode, RunStateStore, Stage
from venuewatch.pipeline.steps import (
    ArchiveStep,
    CostCheckStep,
    ExtractStep,
    FetchStep,
    MergeStep,
    NormalizedDeltaStep,
    RawDeltaStep,
    TrimStep,
)
from venuewatch.snapshots.store import SnapshotStore
from venuewatch.storage.layout import DataLayout
from venuewatch.storage.record_store import JsonRecordStore
from venuewatch.throttling.rate_limiter import RateLimiter
from venuewatch.throttling.worker_pool import WorkerPool
from venuewatch.venues.directory import VenueDirectory
from venuewatch.venues.exceptions import VenueDirectoryError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="venuewatch",
        description="Fetch venue websites, detect meaningful changes and extract happy hours.",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--incremental",
        dest="mode",
        action="store_const",
        const=RunMode.INCREMENTAL,
        help="Only extract venues whose content changed (default; needs a prior full run)",
    )
    mode.add_argument(
        "--full",
        dest="mode",
        action="store_const",
        const=RunMode.FULL,
        help="Rebuild every venue and extract all of them, ignoring the cost ceiling",
    )
    parser.set_defaults(mode=RunMode.INCREMENTAL)
    parser.add_argument("--area", help="Only process venues in this area")
    parser.add_argument(
        "--venue",
        dest="venue_ids",
        action="append",
        metavar="VENUE_ID",
        help="Only process this venue (repeatable)",
    )
    parser.add_argument(
        "--run-date",
        type=date.fromisoformat,
        help="Calendar day of the run, YYYY-MM-DD (default: today)",
    )
    parser.add_argument(
        "--max-candidates",
        type=int,
        help="Abort before extraction when more venues changed than this (-1 = unlimited)",
    )
    parser.add_argument("--data-dir", type=Path, help="Data directory (default: settings)")
    parser.add_argument("--venues", dest="venues_path", type=Path, help="Venue directory JSON file")
    return parser


def build_runner(
    settings: Settings,
    layout: DataLayout,
    *,
    http_client: HttpClient,
    max_candidates: int,
    extractor: BaseExtractor | None = None,
    config: dict[str, object] | None = None,
    on_stage_complete: StageCallback | None = None,
) -> PipelineRunner:
    """Build a PipelineRunner with every stage wired to the data directory."""
    today = SnapshotStore(layout.raw_today_dir, layout.quarantine_dir)
    previous = SnapshotStore(layout.raw_previous_dir, layout.quarantine_dir)
    merged = JsonRecordStore(layout.merged_dir, MergedDocument, layout.quarantine_dir)
    trimmed = JsonRecordStore(layout.trimmed_dir, TrimmedDocument, layout.quarantine_dir)
    records = ExtractionRecordStore(
        layout.extractions_dir,
        layout.failed_extractions_dir,
        layout.full_run_marker_path,
        layout.quarantine_dir,
    )
    fetcher = Fetcher(
        http_client=http_client,
        store=today,
        pool=WorkerPool(settings.fetch_workers),
        keywords=settings.submenu_keywords,
        max_subpages=settings.max_subpages,
    )
    orchestrator = ExtractionOrchestrator(
        extractor=extractor if extractor is not None else ExtractorFactory.create(settings),
        records=records,
        rate_limiter=RateLimiter(settings.extraction_delay_seconds),
        max_attempts=settings.extraction_max_attempts,
        backoff_seconds=settings.extraction_backoff_seconds,
    )
    steps = [
        ArchiveStep(Archiver(layout)),
        FetchStep(fetcher),
        RawDeltaStep(RawDeltaDetector(today, previous), today),
        MergeStep(Merger(), today, merged),
        TrimStep(Trimmer(), merged, trimmed),
        NormalizedDeltaStep(NormalizedDeltaDetector(records.previous_normalized_hash), trimmed),
        CostCheckStep(CostFailSafe(max_candidates)),
        ExtractStep(orchestrator),
    ]
    return PipelineRunner(
        steps=steps,
        state_store=RunStateStore(layout.run_state_path, layout.quarantine_dir),
        records=records,
        config=config,
        on_stage_complete=on_stage_complete,
    )


def build_http_client(settings: Settings, transport: httpx.BaseTransport | None = None) -> HttpClient:
    return HttpClient(
        rate_limiter=RateLimiter(settings.fetch_delay_seconds),
        timeout_seconds=settings.fetch_timeout_seconds,
        retries=settings.fetch_retries,
        user_agent=settings.user_agent,
        transport=transport,
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
    extractor: BaseExtractor | None = None,
) -> int:
    """Entry point: parse args -> build dependencies -> run the pipeline once."""
    args = build_parser().parse_args(argv)
    settings = settings if settings is not None else Settings()
    Log.configure(settings.log_level, Path(settings.log_dir) if settings.log_dir else None)

    layout = DataLayout(args.data_dir or settings.data_dir)
    layout.ensure()
    run_date = args.run_date or date.today()
    max_candidates = args.max_candidates if args.max_candidates is not None else settings.max_candidates

    try:
        venues = VenueDirectory(args.venues_path or settings.venues_path).load(
            area=args.area, venue_ids=args.venue_ids
        )
    except VenueDirectoryError as exc:
        print(f"Pipeline aborted at stage startup: {exc}", file=sys.stderr)
        return 1

    Log.info(f"Run {run_date} ({args.mode.value}) over {len(venues)} venue(s) in {layout.root}")
    context = PipelineContext(
        run_date=run_date,
        mode=args.mode,
        venues=venues,
        filtered=bool(args.area or args.venue_ids),
    )
    config = {
        "max_candidates": max_candidates,
        "max_subpages": settings.max_subpages,
        "fetch_workers": settings.fetch_workers,
        "submenu_keywords": settings.submenu_keywords,
        "extraction_provider": settings.extraction_provider,
        "area": args.area,
        "venue_ids": args.venue_ids or [],
    }

    http_client = build_http_client(settings, transport)
    try:
        runner = build_runner(
            settings,
            layout,
            http_client=http_client,
            max_candidates=max_candidates,
            extractor=extractor,
            config=config,
            on_stage_complete=_print_stage,
        )
        with PipelineLock(layout.lock_path, timedelta(minutes=settings.lock_stale_minutes)):
            state = runner.run(context)
    except StageFailedError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except (PipelineError, ValueError) as exc:
        # raised before any stage ran: lock held, missing full run, bad provider
        print(f"Pipeline aborted at stage startup: {exc}", file=sys.stderr)
        return 1
    finally:
        http_client.close()

    counts = state.counts
    if counts is not None:
        print(
            f"Run {run_date} done: {counts.new} new, {counts.changed} changed, "
            f"{counts.unchanged} unchanged, {counts.unreachable} unreachable, "
            f"{counts.candidates} candidate(s), {counts.extracted} extracted, "
            f"{counts.skipped} skipped, {counts.failed} failed"
        )
    return 0


def _print_stage(stage: Stage, line: str) -> None:
    print(f"[{stage.value}] {line}")


if __name__ == "__main__":
    sys.exit(main())
