from venuewatch.delta.models import ChangeRecord, ChangeStatus
from venuewatch.delta.normalization import normalize_url
from venuewatch.logging.logger import Log
from venuewatch.snapshots.models import VenueSnapshot
from venuewatch.snapshots.store import SnapshotStore


class RawDeltaDetector:
    """Classifies each venue by comparing today's page hashes with the previous set."""

    def __init__(self, today: SnapshotStore, previous: SnapshotStore) -> None:
        self._today = today
        self._previous = previous

    def detect(self, venue_ids: list[str]) -> list[ChangeRecord]:
        records = [self.classify(venue_id) for venue_id in venue_ids]
        for record in records:
            Log.debug(
                f"Raw delta {record.venue_id}: {record.status.value} "
                f"({record.changed_files} file(s))"
            )
        return records

    def classify(self, venue_id: str) -> ChangeRecord:
        today = self._today.load(venue_id)
        if today is None or not today.reachable:
            return ChangeRecord(venue_id, ChangeStatus.UNREACHABLE)

        previous = self._previous.load(venue_id)
        if previous is None or not previous.reachable:
            return ChangeRecord(venue_id, ChangeStatus.NEW, changed_files=len(today.pages))

        changed = count_changed_files(_hashes_by_url(previous), _hashes_by_url(today))
        if changed:
            return ChangeRecord(venue_id, ChangeStatus.CHANGED, changed_files=changed)
        return ChangeRecord(venue_id, ChangeStatus.UNCHANGED)


def count_changed_files(previous: dict[str, str], today: dict[str, str]) -> int:
    """Pages added, removed, or whose hash differs."""
    return sum(1 for url in previous.keys() | today.keys() if previous.get(url) != today.get(url))


def _hashes_by_url(snapshot: VenueSnapshot) -> dict[str, str]:
    return {normalize_url(page.url): page.content_hash for page in snapshot.pages}
