"""Tests for extraction result validation."""

from typing import Any

import pytest

from venuewatch.extraction.exceptions import ExtractionValidationError
from venuewatch.extraction.validator import validate_and_build


def _entry(**overrides: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "days": "Mon-Fri",
        "times": "4pm-6pm",
        "specials": ["$5 drafts", "Half-price wings"],
        "source": "https://tap.test/specials",
        "confidence": 90,
        "confidence_score_rationale": "Explicitly labelled happy hour",
    }
    entry.update(overrides)
    return entry


class TestValidateAndBuild:
    def test_builds_found_result(self) -> None:
        result = validate_and_build({"found": True, "entries": [_entry()], "reason": None})
        assert result.found is True
        assert len(result.entries) == 1
        assert result.entries[0].specials == ["$5 drafts", "Half-price wings"]
        assert result.confidence == 90

    def test_builds_not_found_result(self) -> None:
        result = validate_and_build(
            {"found": False, "entries": [], "reason": "Only regular menu prices"}
        )
        assert result.found is False
        assert result.entries == []
        assert result.reason == "Only regular menu prices"
        assert result.confidence == 0

    def test_missing_entries_defaults_to_empty(self) -> None:
        result = validate_and_build({"found": False})
        assert result.entries == []

    def test_rounds_fractional_confidence(self) -> None:
        result = validate_and_build({"found": True, "entries": [_entry(confidence=72.6)]})
        assert result.entries[0].confidence == 73

    def test_defaults_optional_entry_fields(self) -> None:
        raw = {"days": "Daily", "times": "3-5pm", "confidence": 50}
        result = validate_and_build({"found": True, "entries": [raw]})
        entry = result.entries[0]
        assert entry.specials == []
        assert entry.source == ""
        assert entry.confidence_score_rationale is None


class TestValidateAndBuildErrors:
    @pytest.mark.parametrize("found", [None, "yes", 1])
    def test_found_must_be_boolean(self, found: object) -> None:
        with pytest.raises(ExtractionValidationError, match="'found' must be a boolean"):
            validate_and_build({"found": found, "entries": []})

    def test_found_true_requires_entries(self) -> None:
        with pytest.raises(ExtractionValidationError, match="must not be empty"):
            validate_and_build({"found": True, "entries": []})

    def test_found_false_forbids_entries(self) -> None:
        with pytest.raises(ExtractionValidationError, match="must be empty"):
            validate_and_build({"found": False, "entries": [_entry()]})

    def test_entries_must_be_list(self) -> None:
        with pytest.raises(ExtractionValidationError, match="'entries' must be a list"):
            validate_and_build({"found": True, "entries": {"days": "Mon"}})

    def test_too_many_entries(self) -> None:
        with pytest.raises(ExtractionValidationError, match="Too many entries"):
            validate_and_build({"found": True, "entries": [_entry() for _ in range(21)]})

    def test_entry_must_be_object(self) -> None:
        with pytest.raises(ExtractionValidationError, match="index 0 must be an object"):
            validate_and_build({"found": True, "entries": ["Mon 4-6pm"]})

    @pytest.mark.parametrize("field", ["days", "times"])
    def test_required_strings(self, field: str) -> None:
        with pytest.raises(ExtractionValidationError, match=f"'{field}' must be a non-empty string"):
            validate_and_build({"found": True, "entries": [_entry(**{field: ""})]})

    def test_specials_must_be_strings(self) -> None:
        with pytest.raises(ExtractionValidationError, match="'specials' must be a list of strings"):
            validate_and_build({"found": True, "entries": [_entry(specials=[5])]})

    @pytest.mark.parametrize("confidence", [None, "high", True])
    def test_confidence_must_be_number(self, confidence: object) -> None:
        with pytest.raises(ExtractionValidationError, match="'confidence' must be a number"):
            validate_and_build({"found": True, "entries": [_entry(confidence=confidence)]})

    @pytest.mark.parametrize("confidence", [-1, 101, 150.5])
    def test_confidence_out_of_range(self, confidence: float) -> None:
        with pytest.raises(ExtractionValidationError, match="between 0 and 100"):
            validate_and_build({"found": True, "entries": [_entry(confidence=confidence)]})

    def test_reason_must_be_string(self) -> None:
        with pytest.raises(ExtractionValidationError, match="'reason' must be a string or null"):
            validate_and_build({"found": False, "entries": [], "reason": 42})
