from dataclasses import dataclass, field


@dataclass(frozen=True)
class HappyHourEntry:
    """One time-limited promotion found on a venue's pages."""

    days: str
    times: str
    specials: list[str] = field(default_factory=list)
    source: str = ""
    confidence: int = 0
    confidence_score_rationale: str | None = None


@dataclass(frozen=True)
class ExtractionResult:
    """Output of the extraction step for one venue."""

    found: bool
    entries: list[HappyHourEntry] = field(default_factory=list)
    reason: str | None = None

    @property
    def confidence(self) -> int:
        return max((entry.confidence for entry in self.entries), default=0)
