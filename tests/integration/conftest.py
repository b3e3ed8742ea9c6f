import json
import threading
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from venuewatch.config.settings import Settings
from venuewatch.documents.models import TrimmedDocument
from venuewatch.extraction.base import BaseExtractor
from venuewatch.extraction.models import ExtractionResult, HappyHourEntry


class FakeVenueSites:
    """In-memory websites served through httpx.MockTransport.

    Each venue has a homepage linking to /specials; tests edit `specials` and
    `footer_year` between runs to simulate real and cosmetic site changes.
    """

    def __init__(self, venue_ids: list[str]) -> None:
        self.specials = {venue_id: "Burgers $14. Fries $6." for venue_id in venue_ids}
        self.footer_year = {venue_id: 2024 for venue_id in venue_ids}
        self.offline: set[str] = set()
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.calls.append(str(request.url))
        venue_id = request.url.host.removesuffix(".test")
        if venue_id not in self.specials or venue_id in self.offline:
            return httpx.Response(404)
        if request.url.path == "/":
            return httpx.Response(200, html=self._homepage(venue_id))
        if request.url.path == "/specials":
            return httpx.Response(200, html=self._specials_page(venue_id))
        return httpx.Response(404)

    def _homepage(self, venue_id: str) -> str:
        return (
            f"<html><head><title>{venue_id.upper()} Bar</title>"
            "<script>window.dataLayer = [];</script></head><body>"
            '<nav><a href="/specials">Specials</a><a href="/contact">Contact</a></nav>'
            f"<h1>Welcome to {venue_id.upper()} Bar</h1>"
            "<p>Neighbourhood bar with twelve taps.</p>"
            f"<p>© {self.footer_year[venue_id]} {venue_id.upper()} Bar</p>"
            "</body></html>"
        )

    def _specials_page(self, venue_id: str) -> str:
        return (
            f"<html><head><title>Specials</title></head><body>"
            f"<h2>This week</h2><p>{self.specials[venue_id]}</p></body></html>"
        )


class KeywordExtractor(BaseExtractor):
    """Finds a happy hour whenever the trimmed text mentions one."""

    model_name = "keyword-test"

    def __init__(self) -> None:
        self.calls: list[str] = []

    def extract(self, document: TrimmedDocument) -> ExtractionResult:
        self.calls.append(document.venue_id)
        if "Happy Hour" not in document.combined_text():
            return ExtractionResult(found=False, reason="No time-limited promotions on the pages")
        return ExtractionResult(
            found=True,
            entries=[
                HappyHourEntry(
                    days="Mon-Fri",
                    times="4pm-6pm",
                    specials=["$5 drafts"],
                    source=document.pages[-1].url,
                    confidence=90,
                    confidence_score_rationale="Labelled happy hour with days and times",
                )
            ],
        )


def venue_ids(count: int) -> list[str]:
    return [f"v{i:02d}" for i in range(1, count + 1)]


@pytest.fixture()
def make_environment(tmp_path: Path) -> Callable[[int], tuple[Settings, FakeVenueSites]]:
    """Write a venue directory of `count` venues and return settings pointing at it."""

    def _make(count: int) -> tuple[Settings, FakeVenueSites]:
        ids = venue_ids(count)
        venues_path = tmp_path / "venues.json"
        venues_path.write_text(
            json.dumps(
                [
                    {"id": venue_id, "name": f"{venue_id.upper()} Bar", "website": f"https://{venue_id}.test/"}
                    for venue_id in ids
                ]
            )
        )
        settings = Settings(
            data_dir=tmp_path / "data",
            venues_path=venues_path,
            log_level="WARNING",
            log_dir="",
            fetch_workers=4,
            fetch_delay_seconds=0.0,
            fetch_retries=0,
            extraction_delay_seconds=0.0,
            extraction_provider="example",
            max_candidates=15,
        )
        return settings, FakeVenueSites(ids)

    return _make


@pytest.fixture()
def extractor() -> KeywordExtractor:
    return KeywordExtractor()
