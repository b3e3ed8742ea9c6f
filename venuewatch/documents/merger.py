from bs4 import UnicodeDammit

from venuewatch.documents.exceptions import DocumentError
from venuewatch.documents.models import MergedDocument, MergedPage
from venuewatch.snapshots.models import VenueSnapshot


class Merger:
    """Combines a venue snapshot into a single MergedDocument. Pure."""

    def merge(self, snapshot: VenueSnapshot) -> MergedDocument:
        if not snapshot.reachable:
            raise DocumentError(f"Venue {snapshot.venue_id} has no pages to merge")
        return MergedDocument(
            venue_id=snapshot.venue_id,
            venue_name=snapshot.venue_name,
            website=snapshot.website,
            pages=[MergedPage(url=page.url, html=_decode(page.content)) for page in snapshot.pages],
        )


def _decode(content: bytes) -> str:
    markup = UnicodeDammit(content, is_html=True).unicode_markup
    if markup is None:
        return content.decode("utf-8", errors="replace")
    return markup
