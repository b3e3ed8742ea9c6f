from collections.abc import Callable
from datetime import datetime
from typing import Any

from venuewatch.delta.models import DeltaCounts
from venuewatch.extraction.record_store import ExtractionRecordStore
from venuewatch.logging.logger import Log
from venuewatch.pipeline.exceptions import MissingPrerequisiteError, StageFailedError
from venuewatch.pipeline.pipeline import PipelineContext, PipelineStep
from venuewatch.pipeline.state import (
    RunCounts,
    RunMode,
    RunState,
    RunStateStore,
    RunStatus,
    Stage,
)

# Acquisition stages are not repeated when resuming a run for the same date.
# Everything after them is cheap and rebuilt from disk.
SKIPPED_ON_RESUME = frozenset({Stage.ARCHIVE, Stage.FETCH})

StageCallback = Callable[[Stage, str], None]


class PipelineRunner:
    """Runs the steps in order and persists run state around each one."""

    def __init__(
        self,
        *,
        steps: list[PipelineStep],
        state_store: RunStateStore,
        records: ExtractionRecordStore,
        config: dict[str, Any] | None = None,
        on_stage_complete: StageCallback | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._steps = steps
        self._state_store = state_store
        self._records = records
        self._config = config or {}
        self._on_stage_complete = on_stage_complete
        self._now = now

    def run(self, context: PipelineContext) -> RunState:
        """Execute one run.

        Raises:
            MissingPrerequisiteError: incremental mode before any full run completed.
            StageFailedError: a step raised; run state records failed-at-<stage>.
        """
        if context.mode is RunMode.INCREMENTAL and not self._records.full_run_complete():
            raise MissingPrerequisiteError(
                "Incremental mode needs a completed full run; run with --full first"
            )

        completed = self._resume_point(context)
        kept = [s.stage for s in self._steps if s.stage in completed and s.stage in SKIPPED_ON_RESUME]
        pending = [s.stage for s in self._steps if s.stage not in kept]
        started = self._now()
        state = RunState(
            run_date=context.run_date,
            mode=context.mode,
            status=RunStatus.RUNNING,
            stage=pending[0] if pending else None,
            last_completed_stage=kept[-1] if kept else None,
            started_at=started,
            updated_at=started,
            config=self._config,
        )
        self._save(state)

        for index, step in enumerate(self._steps):
            stage = step.stage
            if stage in kept:
                Log.info(f"Stage {stage.value} already completed for {context.run_date}; skipping")
                self._report(stage, "already completed, skipped")
                continue

            state.stage = stage
            self._save(state)
            Log.info(f"Stage {stage.value} started")
            try:
                context = step.run(context)
            except Exception as exc:
                state.status = RunStatus.FAILED
                state.error = f"{type(exc).__name__}: {exc}"
                self._save(state)
                Log.error(f"Stage {stage.value} failed: {exc}")
                raise StageFailedError(stage.value, str(exc)) from exc

            state.last_completed_stage = stage
            next_step = self._steps[index + 1] if index + 1 < len(self._steps) else None
            state.stage = next_step.stage if next_step is not None else None
            self._save(state)
            self._report(stage, step.summarize(context))

        state.status = RunStatus.DONE
        state.stage = None
        state.counts = self._counts(context)
        self._save(state)

        if context.mode is RunMode.FULL and context.filtered:
            Log.info("Filtered full run: full-run marker not written")
        elif context.mode is RunMode.FULL:
            self._records.mark_full_run_complete(context.run_date, self._now())
        Log.info(f"Run for {context.run_date} completed: {state.counts.model_dump()}")
        return state

    def _resume_point(self, context: PipelineContext) -> set[Stage]:
        prior = self._state_store.load()
        if prior is None:
            return set()
        if prior.run_date != context.run_date or prior.mode is not context.mode:
            Log.info(f"Previous run ({prior.run_date}, {prior.label}) does not match; starting fresh")
            return set()
        if prior.status is RunStatus.RUNNING:
            Log.warning(
                f"Previous run for {prior.run_date} stopped while {prior.label}; "
                f"treating it as failed-at-{prior.stage.value if prior.stage else 'unknown'}"
            )
        elif prior.status is not RunStatus.FAILED:
            return set()
        completed = prior.completed_stages()
        Log.info(
            f"Resuming run for {prior.run_date} after {prior.label}; "
            f"completed stages: {sorted(stage.value for stage in completed) or 'none'}"
        )
        return completed

    def _counts(self, context: PipelineContext) -> RunCounts:
        delta = DeltaCounts.from_records(context.changes)
        extraction = context.extraction
        return RunCounts(
            new=delta.new,
            changed=delta.changed,
            unchanged=delta.unchanged,
            unreachable=delta.unreachable,
            candidates=len(context.candidates),
            extracted=len(extraction.extracted) if extraction else 0,
            skipped=len(extraction.skipped) if extraction else 0,
            failed=len(extraction.failed) if extraction else 0,
        )

    def _save(self, state: RunState) -> None:
        state.updated_at = self._now()
        self._state_store.save(state)

    def _report(self, stage: Stage, line: str) -> None:
        if self._on_stage_complete is not None:
            self._on_stage_complete(stage, line)
