class VenueDirectoryError(Exception):
    """Raised when the venue directory cannot be read or is malformed."""
