class DocumentError(Exception):
    """Base exception for merge and trim failures."""
