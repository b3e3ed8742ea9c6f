import os
import shutil
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from venuewatch.archiving.exceptions import ArchiveError
from venuewatch.logging.logger import Log
from venuewatch.storage.atomic import atomic_write_text
from venuewatch.storage.layout import DataLayout

_TRASH_PREFIX = ".trash-"


@dataclass(frozen=True)
class ArchiveResult:
    new_day: bool
    rolled_over: bool
    previous_date: date | None


class Archiver:
    """Moves yesterday's snapshot set to raw/previous when a new day starts.

    Every move is a directory rename, so a crash leaves one of a few recognisable
    states that the next invocation completes:
      - previous renamed to trash, today intact: today is moved on retry
      - today already moved: only today/ and the date marker are recreated
    An empty today/ is never archived, so a retry cannot replace a real previous set.
    """

    def __init__(self, layout: DataLayout) -> None:
        self._layout = layout

    def last_fetch_date(self) -> date | None:
        path = self._layout.last_fetch_date_path
        try:
            return date.fromisoformat(path.read_text(encoding="utf-8").strip())
        except FileNotFoundError:
            return None
        except ValueError:
            Log.warning(f"Unreadable last fetch date in {path}; treating as new day")
            return None

    def mark_fetched(self, run_date: date) -> None:
        atomic_write_text(self._layout.last_fetch_date_path, run_date.isoformat())

    def run(self, run_date: date) -> ArchiveResult:
        """Archive if run_date differs from the last fetch date.

        Raises:
            ArchiveError: if a relocation step fails.
        """
        last = self.last_fetch_date()
        if last == run_date:
            Log.info(f"Same day as last fetch ({run_date}); archive not needed")
            return ArchiveResult(new_day=False, rolled_over=False, previous_date=last)

        Log.info(f"New day detected ({run_date} vs {last or 'never'}); rolling snapshots over")
        today = self._layout.raw_today_dir
        previous = self._layout.raw_previous_dir
        rolled_over = _has_entries(today)
        try:
            if rolled_over:
                if previous.exists():
                    os.rename(previous, self._trash_path())
                os.rename(today, previous)
                Log.info(f"Archived {today} -> {previous}")
            else:
                Log.info("Nothing to archive: today's snapshot set is empty")
            today.mkdir(parents=True, exist_ok=True)
            self.mark_fetched(run_date)
        except OSError as exc:
            raise ArchiveError(f"Snapshot rollover failed: {exc}") from exc

        self._purge_trash()
        return ArchiveResult(new_day=True, rolled_over=rolled_over, previous_date=last)

    def _trash_path(self) -> Path:
        raw = self._layout.raw_dir
        index = 0
        while (candidate := raw / f"{_TRASH_PREFIX}{os.getpid()}-{index}").exists():
            index += 1
        return candidate

    def _purge_trash(self) -> None:
        raw = self._layout.raw_dir
        if not raw.is_dir():
            return
        for entry in raw.iterdir():
            if entry.is_dir() and entry.name.startswith(_TRASH_PREFIX):
                shutil.rmtree(entry, ignore_errors=True)


def _has_entries(directory: Path) -> bool:
    return directory.is_dir() and any(directory.iterdir())
