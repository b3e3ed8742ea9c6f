"""Subpage discovery for venue homepages."""

from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

_SKIPPED_SCHEMES = ("mailto:", "tel:", "javascript:", "sms:")
_BLOCKED_EXTENSIONS = (
    ".css", ".js", ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".ico",
    ".zip", ".mp3", ".mp4", ".mov", ".avi", ".doc", ".docx", ".xls", ".xlsx",
)


def find_subpage_links(
    html: bytes | str,
    base_url: str,
    keywords: list[str],
    max_links: int,
) -> list[str]:
    """Same-host links whose href or link text contains a keyword.

    Order follows the document; duplicates and the base page itself are dropped.
    """
    if max_links <= 0 or not keywords:
        return []
    soup = BeautifulSoup(html, "html.parser")
    base_host = urlparse(base_url).hostname
    base_clean = _clean(base_url)
    lowered = [k.lower() for k in keywords if k]

    links: list[str] = []
    seen = {base_clean}
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith("#") or href.lower().startswith(_SKIPPED_SCHEMES):
            continue
        try:
            resolved = urldefrag(urljoin(base_url, href)).url
            parsed = urlparse(resolved)
            host = parsed.hostname
        except ValueError:
            # e.g. an unclosed IPv6 bracket
            continue
        if parsed.scheme not in ("http", "https") or host != base_host:
            continue
        if parsed.path.lower().endswith(_BLOCKED_EXTENSIONS):
            continue
        href_lower = href.lower()
        text_lower = anchor.get_text(" ", strip=True).lower()
        if not any(k in href_lower or k in text_lower for k in lowered):
            continue
        cleaned = _clean(resolved)
        if cleaned in seen:
            continue
        seen.add(cleaned)
        links.append(resolved)
        if len(links) >= max_links:
            break
    return links


def _clean(url: str) -> str:
    return urldefrag(url).url.rstrip("/")
