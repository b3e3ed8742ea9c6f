"""Text normalization applied before hashing trimmed pages.

Each rule is an independent str -> str function. Rules strip content that
changes between fetches without changing what a venue offers: dates, tracking
ids, cookie banners, copyright footers and so on. Order matters: dates are
removed before hours tables are canonicalized, and whitespace is collapsed last.
"""

import re
from collections.abc import Callable, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

NormalizationRule = Callable[[str], str]

_DAYS = r"Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday|Mon|Tue|Wed|Thu|Fri|Sat|Sun"
_MONTHS = (
    r"Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec|January|February|March|April"
    r"|May|June|July|August|September|October|November|December"
)
_DAY_ORDER = {
    "mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6,
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
}

_NON_PRINTABLE = re.compile(r"[^\x20-\x7E\n\r\t]")
_ISO_TIMESTAMP = re.compile(r"\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}:\d{2}(\.\d{3})?Z?)?")
_DAY_MONTH_DATE = re.compile(
    rf"\b({_DAYS})\s+({_MONTHS})\s+\d{{1,2}}(st|nd|rd|th)?(,\s+\d{{4}})?\b", re.IGNORECASE
)
_MONTH_DATE = re.compile(rf"\b({_MONTHS})\s+\d{{1,2}}(st|nd|rd|th)?(,\s+\d{{4}})?\b", re.IGNORECASE)
_HOURS_BLOCK = re.compile(
    rf"\b({_DAYS})[:\s]+\d{{1,2}}(?::\d{{2}})?\s*(?:AM|PM)\s*[-–—to]+\s*\d{{1,2}}(?::\d{{2}})?\s*(?:AM|PM)",
    re.IGNORECASE,
)

TRACKING_PARAMS = frozenset(
    {
        "fbclid", "gclid", "utm_source", "utm_medium", "utm_campaign", "utm_term",
        "utm_content", "sid", "_ga", "_gid", "ref", "source",
    }
)

_BOILERPLATE: list[tuple[re.Pattern[str], str]] = [
    # placeholders
    (re.compile(r"Loading\s+product\s+options\.\.\.|Loading\.\.\.", re.IGNORECASE), ""),
    # analytics ids
    (re.compile(r"gtm-[a-z0-9]+", re.IGNORECASE), ""),
    (re.compile(r"UA-\d+-\d+"), ""),
    (re.compile(r"G-[A-Z0-9]+"), ""),
    # tracking query parameters inside visible text
    (
        re.compile(
            r"[?&](sid|fbclid|utm_[^=\s&]+|gclid|_ga|_gid|ref|source|tracking|campaign|matchtype"
            r"|gad_source|gad_campaignid|gbraid|gclsrc|dclid|msclkid|li_fat_id|mc_[^=\s&]+"
            r"|hsa_[^=\s&]+)=[^\s&\"'\]]+",
            re.IGNORECASE,
        ),
        "",
    ),
    (re.compile(r"\?(&|$)", re.MULTILINE), ""),
    # store and location counts, e.g. "United States (5829)"
    (re.compile(r"\(\d{3,}\)"), ""),
    # social links
    (
        re.compile(
            r"\b(Facebook|Instagram|Twitter|TikTok|YouTube|Pinterest|LinkedIn|Yelp|Google)\s+(page|icon|link)\b",
            re.IGNORECASE,
        ),
        "",
    ),
    (re.compile(r"\bFollow us on\b.*?(?=\.|$)", re.IGNORECASE | re.MULTILINE), ""),
    (re.compile(r"\bFind us on\b.*?(?=\.|$)", re.IGNORECASE | re.MULTILINE), ""),
    # cookie, reCAPTCHA and legal banners
    (re.compile(r"This site is protected by reCAPTCHA and the Google[^.]*\.", re.IGNORECASE), ""),
    (re.compile(r"Privacy\s+Policy\s+Terms\s+of\s+Service", re.IGNORECASE), ""),
    (re.compile(r"We use cookies[^.]*\.", re.IGNORECASE), ""),
    (re.compile(r"Accept\s+(All\s+)?Cookies", re.IGNORECASE), ""),
    (re.compile(r"Cookie\s+(Policy|Settings|Preferences)", re.IGNORECASE), ""),
    # navigation chrome
    (
        re.compile(
            r"\b(Skip to (main )?content|Return to Nav|Back to top|Close\s+(menu|modal|dialog)?)\b",
            re.IGNORECASE,
        ),
        "",
    ),
    (re.compile(r"\bOrder\s+(Now|Online)\b", re.IGNORECASE), ""),
    (re.compile(r"\bNo description added\.?", re.IGNORECASE), ""),
]

_FOOTERS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"Copyright\s+©\s+\d{4}", re.IGNORECASE), ""),
    (re.compile(r"All\s+rights\s+reserved", re.IGNORECASE), ""),
    (re.compile(r"Powered\s+by\s+\S+", re.IGNORECASE), ""),
    (re.compile(r"©\s+\d{4}\s+[^\n]+", re.IGNORECASE), ""),
]

_SESSION_TOKEN = re.compile(r"\b(session|sid|token|tracking)[-_]?[a-z0-9]{8,}\b", re.IGNORECASE)
_STANDALONE_YEAR = re.compile(r"\b20[2-3]\d\b")
_WHITESPACE = re.compile(r"\s+")


def drop_binary(text: str) -> str:
    """Treat mostly non-printable text (more than 30%, over 100 chars) as empty."""
    if len(text) > 100 and len(_NON_PRINTABLE.findall(text)) / len(text) > 0.3:
        return ""
    return text


def strip_dates(text: str) -> str:
    text = _ISO_TIMESTAMP.sub("", text)
    text = _DAY_MONTH_DATE.sub("", text)
    return _MONTH_DATE.sub("", text)


def canonicalize_hours(text: str) -> str:
    """Sort day-of-week hours blocks Mon to Sun when a page lists three or more.

    Many sites rotate their hours table to start at the current weekday.
    """
    blocks = [match.group(0) for match in _HOURS_BLOCK.finditer(text)]
    if len(blocks) < 3:
        return text
    ordered = iter(sorted(blocks, key=_day_index))
    return _HOURS_BLOCK.sub(lambda _: next(ordered), text)


def strip_boilerplate(text: str) -> str:
    for pattern, replacement in _BOILERPLATE:
        text = pattern.sub(replacement, text)
    return text


def strip_footers(text: str) -> str:
    for pattern, replacement in _FOOTERS:
        text = pattern.sub(replacement, text)
    return text


def strip_session_tokens(text: str) -> str:
    return _SESSION_TOKEN.sub("", text)


def strip_years(text: str) -> str:
    return _STANDALONE_YEAR.sub("", text)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


DEFAULT_RULES: tuple[NormalizationRule, ...] = (
    drop_binary,
    strip_dates,
    canonicalize_hours,
    strip_boilerplate,
    strip_footers,
    strip_session_tokens,
    strip_years,
    collapse_whitespace,
)


def normalize_text(text: str | None, rules: Sequence[NormalizationRule] = DEFAULT_RULES) -> str:
    if not text:
        return ""
    for rule in rules:
        text = rule(text)
        if not text:
            return ""
    return text


def normalize_url(url: str) -> str:
    """Drop fragments and tracking query parameters; lower-case scheme and host."""
    if not url:
        return ""
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        return url.split("#", 1)[0]
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key.lower() not in TRACKING_PARAMS and not key.lower().startswith("utm_")
    ]
    path = parts.path or "/"
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), path, urlencode(query), "")
    )


def _day_index(block: str) -> int:
    match = re.match(_DAYS, block, re.IGNORECASE)
    if match is None:
        return 99
    return _DAY_ORDER.get(match.group(0).lower(), 99)
