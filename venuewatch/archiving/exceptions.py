class ArchiveError(Exception):
    """Raised when the day-rollover relocation cannot be completed."""
