from dataclasses import dataclass


@dataclass(frozen=True)
class VenueFetchOutcome:
    """What the fetcher did for one venue."""

    venue_id: str
    downloaded: int = 0
    cached: int = 0
    failed: int = 0
    reachable: bool = True


@dataclass(frozen=True)
class FetchSummary:
    venues: int
    reachable: int
    unreachable: int
    downloaded: int
    cached: int
    failed: int

    @classmethod
    def from_outcomes(cls, outcomes: list[VenueFetchOutcome]) -> "FetchSummary":
        return cls(
            venues=len(outcomes),
            reachable=sum(1 for o in outcomes if o.reachable),
            unreachable=sum(1 for o in outcomes if not o.reachable),
            downloaded=sum(o.downloaded for o in outcomes),
            cached=sum(o.cached for o in outcomes),
            failed=sum(o.failed for o in outcomes),
        )
