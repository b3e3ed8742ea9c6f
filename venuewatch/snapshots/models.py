from dataclasses import dataclass, field
from datetime import date, datetime

from pydantic import BaseModel, Field

from venuewatch.storage.hashing import content_hash


@dataclass(frozen=True)
class PageSnapshot:
    """One fetched page. The hash is always derived from the content."""

    venue_id: str
    url: str
    content: bytes
    fetched_at: datetime

    @property
    def content_hash(self) -> str:
        return content_hash(self.content)


@dataclass(frozen=True)
class VenueSnapshot:
    """All pages fetched for one venue on one day, homepage first."""

    venue_id: str
    venue_name: str
    website: str
    pages: list[PageSnapshot] = field(default_factory=list)
    error: str | None = None
    fetched_on: date | None = None
    # subpages that failed on fetched_on; not retried until the next day
    failed_urls: list[str] = field(default_factory=list)

    @property
    def reachable(self) -> bool:
        return bool(self.pages)


class ManifestPage(BaseModel):
    url: str = Field(min_length=1)
    key: str = Field(min_length=1)
    content_hash: str = Field(min_length=64, max_length=64)
    fetched_at: datetime


class SnapshotManifest(BaseModel):
    """Persisted index of a venue's snapshot directory."""

    venue_id: str = Field(min_length=1)
    venue_name: str
    website: str
    pages: list[ManifestPage] = Field(default_factory=list)
    error: str | None = None
    fetched_on: date | None = None
    failed_urls: list[str] = Field(default_factory=list)
