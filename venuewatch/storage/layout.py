from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DataLayout:
    """On-disk locations of every pipeline artifact under one data directory."""

    root: Path

    @property
    def raw_dir(self) -> Path:
        return self.root / "raw"

    @property
    def raw_today_dir(self) -> Path:
        return self.raw_dir / "today"

    @property
    def raw_previous_dir(self) -> Path:
        return self.raw_dir / "previous"

    @property
    def last_fetch_date_path(self) -> Path:
        return self.raw_dir / ".last-fetch-date"

    @property
    def merged_dir(self) -> Path:
        return self.root / "merged"

    @property
    def trimmed_dir(self) -> Path:
        return self.root / "trimmed"

    @property
    def extractions_dir(self) -> Path:
        return self.root / "extractions"

    @property
    def failed_extractions_dir(self) -> Path:
        return self.extractions_dir / "failed"

    @property
    def full_run_marker_path(self) -> Path:
        return self.extractions_dir / ".full-run-complete"

    @property
    def quarantine_dir(self) -> Path:
        return self.root / "quarantine"

    @property
    def run_state_path(self) -> Path:
        return self.root / "run_state.json"

    @property
    def lock_path(self) -> Path:
        return self.root / ".pipeline.lock"

    def ensure(self) -> None:
        for directory in (
            self.raw_today_dir,
            self.merged_dir,
            self.trimmed_dir,
            self.extractions_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)
