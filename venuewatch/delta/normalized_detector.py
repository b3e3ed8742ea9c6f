from collections.abc import Callable, Sequence

from venuewatch.delta.models import NormalizedDelta
from venuewatch.delta.normalization import DEFAULT_RULES, NormalizationRule, normalize_text
from venuewatch.documents.models import TrimmedDocument
from venuewatch.storage.hashing import content_hash


def normalized_source_hash(
    document: TrimmedDocument, rules: Sequence[NormalizationRule] = DEFAULT_RULES
) -> str:
    """Hash of every page's normalized text, joined in page order."""
    return content_hash("\n".join(normalize_text(page.text, rules) for page in document.pages))


class NormalizedDeltaDetector:
    """Decides which venues changed in a way that matters to extraction.

    previous_hash returns the normalized hash stored on a venue's most recent
    successful extraction, or None when there is none.
    """

    def __init__(
        self,
        previous_hash: Callable[[str], str | None],
        rules: Sequence[NormalizationRule] = DEFAULT_RULES,
    ) -> None:
        self._previous_hash = previous_hash
        self._rules = rules

    def compare(self, document: TrimmedDocument) -> NormalizedDelta:
        return NormalizedDelta(
            venue_id=document.venue_id,
            normalized_source_hash=normalized_source_hash(document, self._rules),
            previous_hash=self._previous_hash(document.venue_id),
        )
