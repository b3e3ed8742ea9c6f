from collections.abc import Callable
from datetime import date, datetime

from venuewatch.fetching.exceptions import FetchError
from venuewatch.fetching.http_client import HttpClient
from venuewatch.fetching.links import find_subpage_links
from venuewatch.fetching.models import FetchSummary, VenueFetchOutcome
from venuewatch.logging.logger import Log
from venuewatch.snapshots.models import PageSnapshot, VenueSnapshot
from venuewatch.snapshots.store import SnapshotStore
from venuewatch.throttling.worker_pool import WorkerPool
from venuewatch.venues.models import Venue


class Fetcher:
    """Downloads each venue's homepage and keyword-matched subpages into today's set.

    Pages already written during the run date are reused from disk, so repeated
    same-day runs make no network requests.
    """

    def __init__(
        self,
        *,
        http_client: HttpClient,
        store: SnapshotStore,
        pool: WorkerPool,
        keywords: list[str],
        max_subpages: int,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._http = http_client
        self._store = store
        self._pool = pool
        self._keywords = keywords
        self._max_subpages = max_subpages
        self._now = now

    def fetch_all(self, venues: list[Venue], run_date: date) -> FetchSummary:
        Log.info(f"Fetching {len(venues)} venue(s) with {self._pool.max_workers} worker(s)")
        outcomes = self._pool.map(lambda venue: self.fetch_venue(venue, run_date), venues)
        summary = FetchSummary.from_outcomes(outcomes)
        Log.info(
            f"Fetch complete: {summary.downloaded} downloaded, {summary.cached} cached, "
            f"{summary.failed} failed, {summary.unreachable} unreachable venue(s)"
        )
        return summary

    def fetch_venue(self, venue: Venue, run_date: date) -> VenueFetchOutcome:
        """Fetch one venue. Page failures are logged; they never raise."""
        website = venue.website or ""
        earlier = self._earlier_today(venue, run_date)
        if earlier is not None and not earlier.reachable:
            Log.info(f"Skipping {venue.name} ({venue.id}): unreachable earlier today")
            return VenueFetchOutcome(venue_id=venue.id, reachable=False)
        failed_earlier = set(earlier.failed_urls) if earlier is not None else set()

        downloaded = cached = 0
        pages: list[PageSnapshot] = []
        failed_urls: list[str] = []

        homepage, from_cache = self._get_page(venue, website, run_date)
        if homepage is None:
            self._store.write_manifest(
                VenueSnapshot(
                    venue_id=venue.id,
                    venue_name=venue.name,
                    website=website,
                    error="homepage fetch failed",
                    fetched_on=run_date,
                )
            )
            Log.warning(f"Venue {venue.name} ({venue.id}) unreachable: no pages fetched")
            return VenueFetchOutcome(venue_id=venue.id, failed=1, reachable=False)
        pages.append(homepage)
        cached += from_cache
        downloaded += not from_cache

        try:
            subpage_urls = find_subpage_links(
                homepage.content, website, self._keywords, self._max_subpages
            )
        except ValueError as exc:
            Log.warning(f"Could not read links on {website} for {venue.id}: {exc}")
            subpage_urls = []
        Log.debug(f"Found {len(subpage_urls)} subpage(s) for {venue.id}")
        for url in subpage_urls:
            if url in failed_earlier:
                Log.debug(f"Not retrying {url}: failed earlier today")
                failed_urls.append(url)
                continue
            page, from_cache = self._get_page(venue, url, run_date)
            if page is None:
                failed_urls.append(url)
                continue
            pages.append(page)
            cached += from_cache
            downloaded += not from_cache

        self._store.write_manifest(
            VenueSnapshot(
                venue_id=venue.id,
                venue_name=venue.name,
                website=website,
                pages=pages,
                fetched_on=run_date,
                failed_urls=failed_urls,
            )
        )
        return VenueFetchOutcome(
            venue_id=venue.id,
            downloaded=downloaded,
            cached=cached,
            failed=len(failed_urls),
        )

    def _get_page(
        self, venue: Venue, url: str, run_date: date
    ) -> tuple[PageSnapshot | None, bool]:
        page = self._store.cached_page(venue.id, url, run_date)
        if page is not None:
            Log.debug(f"Using today's snapshot for {url}")
            return page, True
        try:
            content = self._http.get(url)
        except FetchError as exc:
            Log.warning(f"Failed to fetch {url} for {venue.id}: {exc}")
            return None, False
        return self._store.write_page(venue.id, url, content, self._now()), False

    def _earlier_today(self, venue: Venue, run_date: date) -> VenueSnapshot | None:
        snapshot = self._store.load(venue.id)
        if snapshot is None or snapshot.fetched_on != run_date:
            return None
        return snapshot
