from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from venuewatch.logging.logger import Log
from venuewatch.storage.atomic import atomic_write_json
from venuewatch.storage.quarantine import quarantine_file


class Stage(str, Enum):
    ARCHIVE = "archive"
    FETCH = "fetch"
    RAW_DELTA = "raw_delta"
    MERGE = "merge"
    TRIM = "trim"
    NORMALIZED_DELTA = "normalized_delta"
    COST_CHECK = "cost_check"
    EXTRACT = "extract"


STAGE_ORDER: list[Stage] = list(Stage)


class RunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FAILED = "failed"
    DONE = "done"


class RunMode(str, Enum):
    INCREMENTAL = "incremental"
    FULL = "full"


class RunCounts(BaseModel):
    new: int = 0
    changed: int = 0
    unchanged: int = 0
    unreachable: int = 0
    candidates: int = 0
    extracted: int = 0
    skipped: int = 0
    failed: int = 0


class RunState(BaseModel):
    """The single persisted record of where the current run stands."""

    run_date: date
    mode: RunMode = RunMode.INCREMENTAL
    status: RunStatus = RunStatus.IDLE
    stage: Stage | None = None
    last_completed_stage: Stage | None = None
    error: str | None = None
    started_at: datetime
    updated_at: datetime
    config: dict[str, Any] = Field(default_factory=dict)
    counts: RunCounts | None = None

    @property
    def label(self) -> str:
        if self.status is RunStatus.FAILED and self.stage is not None:
            return f"failed-at-{self.stage.value}"
        if self.status is RunStatus.RUNNING and self.stage is not None:
            return f"running({self.stage.value})"
        return self.status.value

    def completed_stages(self) -> set[Stage]:
        if self.last_completed_stage is None:
            return set()
        return set(STAGE_ORDER[: STAGE_ORDER.index(self.last_completed_stage) + 1])


class RunStateStore:
    """The only reader and writer of run_state.json. Writes replace it atomically."""

    def __init__(self, path: Path, quarantine_dir: Path) -> None:
        self._path = path
        self._quarantine_dir = quarantine_dir

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> RunState | None:
        """Return the persisted state, or None when absent or unreadable."""
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return None
        try:
            return RunState.model_validate_json(raw)
        except ValidationError as exc:
            Log.warning(f"Run state is corrupt, starting fresh: {exc.error_count()} error(s)")
            quarantine_file(self._path, self._quarantine_dir, "corrupt run state")
            return None

    def save(self, state: RunState) -> None:
        atomic_write_json(self._path, state.model_dump(mode="json"))
