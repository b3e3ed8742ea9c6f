import pytest

from venuewatch.failsafe.cost_guard import CostFailSafe
from venuewatch.pipeline.exceptions import CostCeilingExceededError


class TestCostFailSafe:
    def test_count_equal_to_ceiling_proceeds(self) -> None:
        CostFailSafe(15).check(15)

    def test_count_above_ceiling_aborts(self) -> None:
        with pytest.raises(CostCeilingExceededError, match="16 extraction candidates exceed the ceiling of 15"):
            CostFailSafe(15).check(16)

    def test_error_carries_counts(self) -> None:
        with pytest.raises(CostCeilingExceededError) as exc_info:
            CostFailSafe(2).check(3)
        assert exc_info.value.count == 3
        assert exc_info.value.ceiling == 2

    def test_unlimited_never_aborts(self) -> None:
        CostFailSafe(-1).check(10_000)

    def test_zero_ceiling_allows_no_candidates_only(self) -> None:
        CostFailSafe(0).check(0)
        with pytest.raises(CostCeilingExceededError):
            CostFailSafe(0).check(1)

    def test_rejects_invalid_ceiling(self) -> None:
        with pytest.raises(ValueError, match="max_candidates"):
            CostFailSafe(-2)
