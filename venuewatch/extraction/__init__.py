from venuewatch.extraction.base import BaseExtractor
from venuewatch.extraction.extractor import Extractor
from venuewatch.extraction.factory import ExtractorFactory
from venuewatch.extraction.orchestrator import ExtractionCandidate, ExtractionOrchestrator

__all__ = [
    "BaseExtractor",
    "ExtractionCandidate",
    "ExtractionOrchestrator",
    "Extractor",
    "ExtractorFactory",
]
