from abc import ABC, abstractmethod

from venuewatch.documents.models import TrimmedDocument
from venuewatch.extraction.models import ExtractionResult


class BaseExtractor(ABC):
    """Contract for all extraction adapters."""

    model_name: str = ""

    @abstractmethod
    def extract(self, document: TrimmedDocument) -> ExtractionResult:
        """Find happy-hour promotions in a venue's trimmed text.

        Args:
            document: Trimmed visible text of every fetched page for one venue.

        Returns:
            ExtractionResult with found, entries and an optional reason.

        Raises:
            ExtractionError: on any failure.
        """
