class FetchError(Exception):
    """Raised when a page cannot be fetched (timeout, DNS, non-2xx status)."""
