import os
from datetime import date, datetime
from pathlib import Path

from pydantic import ValidationError

from venuewatch.logging.logger import Log
from venuewatch.snapshots.models import ManifestPage, PageSnapshot, SnapshotManifest, VenueSnapshot
from venuewatch.storage.atomic import atomic_write_bytes, atomic_write_json
from venuewatch.storage.hashing import url_key
from venuewatch.storage.quarantine import quarantine_file

MANIFEST_NAME = "manifest.json"


class SnapshotStore:
    """Reads and writes per-venue raw snapshots under one snapshot set directory.

    Layout: {root}/{venue_id}/{url_key}.html plus {root}/{venue_id}/manifest.json.
    """

    def __init__(self, root: Path, quarantine_dir: Path | None = None) -> None:
        self._root = root
        self._quarantine_dir = quarantine_dir

    def venue_dir(self, venue_id: str) -> Path:
        return self._root / venue_id

    def page_path(self, venue_id: str, url: str) -> Path:
        return self.venue_dir(venue_id) / f"{url_key(url)}.html"

    def venue_ids(self) -> list[str]:
        if not self._root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self._root.iterdir()
            if entry.is_dir() and (entry / MANIFEST_NAME).is_file()
        )

    def cached_page(self, venue_id: str, url: str, run_date: date) -> PageSnapshot | None:
        """Return the stored page if it was written during run_date, else None."""
        path = self.page_path(venue_id, url)
        try:
            stat = path.stat()
        except FileNotFoundError:
            return None
        modified = datetime.fromtimestamp(stat.st_mtime)
        if modified.date() != run_date:
            return None
        return PageSnapshot(
            venue_id=venue_id,
            url=url,
            content=path.read_bytes(),
            fetched_at=modified,
        )

    def write_page(self, venue_id: str, url: str, content: bytes, fetched_at: datetime) -> PageSnapshot:
        # mtime carries fetched_at so cached reads report the same value
        fetched_at = fetched_at.replace(microsecond=0)
        path = self.page_path(venue_id, url)
        atomic_write_bytes(path, content)
        stamp = fetched_at.timestamp()
        os.utime(path, (stamp, stamp))
        return PageSnapshot(venue_id=venue_id, url=url, content=content, fetched_at=fetched_at)

    def write_manifest(self, snapshot: VenueSnapshot) -> None:
        manifest = SnapshotManifest(
            venue_id=snapshot.venue_id,
            venue_name=snapshot.venue_name,
            website=snapshot.website,
            pages=[
                ManifestPage(
                    url=page.url,
                    key=url_key(page.url),
                    content_hash=page.content_hash,
                    fetched_at=page.fetched_at,
                )
                for page in snapshot.pages
            ],
            error=snapshot.error,
            fetched_on=snapshot.fetched_on,
            failed_urls=list(snapshot.failed_urls),
        )
        atomic_write_json(
            self.venue_dir(snapshot.venue_id) / MANIFEST_NAME,
            manifest.model_dump(mode="json"),
        )

    def load(self, venue_id: str) -> VenueSnapshot | None:
        """Load a venue snapshot; malformed manifests are quarantined and yield None."""
        manifest_path = self.venue_dir(venue_id) / MANIFEST_NAME
        if not manifest_path.is_file():
            return None
        try:
            manifest = SnapshotManifest.model_validate_json(manifest_path.read_bytes())
        except ValidationError as exc:
            self._quarantine(manifest_path, f"invalid manifest: {exc.error_count()} error(s)")
            return None

        pages: list[PageSnapshot] = []
        seen: set[str] = set()
        for entry in manifest.pages:
            if entry.url in seen:
                continue
            path = self.venue_dir(venue_id) / f"{entry.key}.html"
            try:
                content = path.read_bytes()
            except FileNotFoundError:
                Log.warning(f"Snapshot page missing for {venue_id}: {entry.url}")
                continue
            page = PageSnapshot(
                venue_id=venue_id,
                url=entry.url,
                content=content,
                fetched_at=entry.fetched_at,
            )
            if page.content_hash != entry.content_hash:
                Log.warning(f"Manifest hash stale for {venue_id}: {entry.url} (using content)")
            seen.add(entry.url)
            pages.append(page)

        return VenueSnapshot(
            venue_id=manifest.venue_id,
            venue_name=manifest.venue_name,
            website=manifest.website,
            pages=pages,
            error=manifest.error,
            fetched_on=manifest.fetched_on,
            failed_urls=list(manifest.failed_urls),
        )

    def _quarantine(self, path: Path, reason: str) -> None:
        if self._quarantine_dir is None:
            Log.warning(f"Ignoring malformed snapshot file {path}: {reason}")
            return
        quarantine_file(path, self._quarantine_dir, reason)
