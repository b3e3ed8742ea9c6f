from venuewatch.logging.logger import Log
from venuewatch.pipeline.exceptions import CostCeilingExceededError

UNLIMITED = -1


class CostFailSafe:
    """Stops a run before extraction when the candidate count looks wrong.

    A ceiling of -1 disables the check. A count equal to the ceiling proceeds.
    """

    def __init__(self, max_candidates: int) -> None:
        if max_candidates < UNLIMITED:
            raise ValueError("max_candidates must be -1 (unlimited) or >= 0")
        self._max_candidates = max_candidates

    @property
    def max_candidates(self) -> int:
        return self._max_candidates

    def check(self, count: int) -> None:
        if self._max_candidates == UNLIMITED:
            Log.info(f"Cost check: {count} candidate(s), no ceiling")
            return
        if count > self._max_candidates:
            raise CostCeilingExceededError(count, self._max_candidates)
        Log.info(f"Cost check: {count} candidate(s) within ceiling of {self._max_candidates}")
