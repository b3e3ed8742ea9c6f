from dataclasses import dataclass


@dataclass(frozen=True)
class Venue:
    """One venue record from the directory (read-only)."""

    id: str
    name: str
    website: str | None = None
    area: str | None = None
