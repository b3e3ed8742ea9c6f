import hashlib


def content_hash(data: bytes | str) -> str:
    """SHA-256 hex digest of content; str input is hashed as UTF-8."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def url_key(url: str) -> str:
    """Short stable filename key for a URL."""
    return hashlib.md5(url.encode("utf-8")).hexdigest()[:12]
