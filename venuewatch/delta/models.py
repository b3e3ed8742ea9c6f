from dataclasses import dataclass
from enum import Enum


class ChangeStatus(str, Enum):
    NEW = "new"
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True, slots=True)
class ChangeRecord:
    venue_id: str
    status: ChangeStatus
    changed_files: int = 0


@dataclass(frozen=True, slots=True)
class NormalizedDelta:
    """Outcome of comparing a venue's normalized text with its last extraction."""

    venue_id: str
    normalized_source_hash: str
    previous_hash: str | None

    @property
    def is_candidate(self) -> bool:
        return self.normalized_source_hash != self.previous_hash


@dataclass(frozen=True, slots=True)
class DeltaCounts:
    new: int = 0
    changed: int = 0
    unchanged: int = 0
    unreachable: int = 0

    @classmethod
    def from_records(cls, records: list[ChangeRecord]) -> "DeltaCounts":
        return cls(
            new=sum(1 for r in records if r.status is ChangeStatus.NEW),
            changed=sum(1 for r in records if r.status is ChangeStatus.CHANGED),
            unchanged=sum(1 for r in records if r.status is ChangeStatus.UNCHANGED),
            unreachable=sum(1 for r in records if r.status is ChangeStatus.UNREACHABLE),
        )
