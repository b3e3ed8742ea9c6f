"""Validates raw parsed JSON from the extraction service against domain rules."""

from typing import Any

from venuewatch.extraction.exceptions import ExtractionValidationError
from venuewatch.extraction.models import ExtractionResult, HappyHourEntry

_MAX_ENTRIES = 20


def validate_and_build(data: dict[str, Any]) -> ExtractionResult:
    """Validate raw parsed JSON and build an ExtractionResult.

    Raises:
        ExtractionValidationError: on any validation failure.
    """
    found = data.get("found")
    if not isinstance(found, bool):
        raise ExtractionValidationError("'found' must be a boolean")
    entries = _build_entries(data.get("entries", []))
    reason = _build_reason(data.get("reason"))
    if found and not entries:
        raise ExtractionValidationError("'entries' must not be empty when 'found' is true")
    if not found and entries:
        raise ExtractionValidationError("'entries' must be empty when 'found' is false")
    return ExtractionResult(found=found, entries=entries, reason=reason)


def _build_reason(raw: Any) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ExtractionValidationError("'reason' must be a string or null")
    return raw


def _build_entries(raw: Any) -> list[HappyHourEntry]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ExtractionValidationError("'entries' must be a list")
    if len(raw) > _MAX_ENTRIES:
        raise ExtractionValidationError(f"Too many entries: {len(raw)} (max {_MAX_ENTRIES})")
    return [_build_entry(item, i) for i, item in enumerate(raw)]


def _build_entry(raw: Any, index: int) -> HappyHourEntry:
    if not isinstance(raw, dict):
        raise ExtractionValidationError(f"Entry at index {index} must be an object")
    days = _require_string(raw, "days", index)
    times = _require_string(raw, "times", index)
    source = raw.get("source", "")
    if not isinstance(source, str):
        raise ExtractionValidationError(f"Entry at index {index}: 'source' must be a string")
    specials = raw.get("specials", [])
    if not isinstance(specials, list) or not all(isinstance(s, str) for s in specials):
        raise ExtractionValidationError(
            f"Entry at index {index}: 'specials' must be a list of strings"
        )
    confidence = _build_confidence(raw.get("confidence"), index)
    rationale = raw.get("confidence_score_rationale")
    if rationale is not None and not isinstance(rationale, str):
        raise ExtractionValidationError(
            f"Entry at index {index}: 'confidence_score_rationale' must be a string or null"
        )
    return HappyHourEntry(
        days=days,
        times=times,
        specials=specials,
        source=source,
        confidence=confidence,
        confidence_score_rationale=rationale,
    )


def _require_string(raw: dict[str, Any], field: str, index: int) -> str:
    value = raw.get(field)
    if not value or not isinstance(value, str):
        raise ExtractionValidationError(
            f"Entry at index {index}: '{field}' must be a non-empty string"
        )
    return value


def _build_confidence(raw: Any, index: int) -> int:
    # bool is an int subclass
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ExtractionValidationError(f"Entry at index {index}: 'confidence' must be a number")
    if not 0 <= raw <= 100:
        raise ExtractionValidationError(
            f"Entry at index {index}: 'confidence' must be between 0 and 100, got {raw}"
        )
    return int(round(raw))
