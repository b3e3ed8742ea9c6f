import json
import os
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from types import TracebackType

from venuewatch.logging.logger import Log
from venuewatch.pipeline.exceptions import PipelineLockedError


class PipelineLock:
    """PID lock file that keeps two runs from sharing the data directory.

    Locks older than `stale_after` are assumed to belong to a crashed process
    and are replaced.
    """

    def __init__(
        self,
        path: Path,
        stale_after: timedelta,
        *,
        holder: str = "venuewatch",
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._path = path
        self._stale_after = stale_after
        self._holder = holder
        self._now = now
        self._held = False

    def acquire(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if self._try_create():
            return
        existing = self._read()
        acquired_at = self._acquired_at(existing)
        if acquired_at is not None and self._now() - acquired_at < self._stale_after:
            raise PipelineLockedError(
                f"Pipeline is locked by pid {existing.get('pid')} ({existing.get('holder')}) "
                f"since {acquired_at:%Y-%m-%d %H:%M:%S}"
            )
        Log.warning(f"Replacing stale pipeline lock {self._path}")
        self._path.unlink(missing_ok=True)
        if not self._try_create():
            raise PipelineLockedError(f"Pipeline lock {self._path} was taken by another run")

    def release(self) -> None:
        if self._held:
            self._path.unlink(missing_ok=True)
            self._held = False

    def __enter__(self) -> "PipelineLock":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def _try_create(self) -> bool:
        try:
            fd = os.open(self._path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        payload = {"pid": os.getpid(), "holder": self._holder, "acquired_at": self._now().isoformat()}
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle)
            handle.write("\n")
        self._held = True
        return True

    def _read(self) -> dict[str, object]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _acquired_at(lock: dict[str, object]) -> datetime | None:
        value = lock.get("acquired_at")
        if not isinstance(value, str):
            return None
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
