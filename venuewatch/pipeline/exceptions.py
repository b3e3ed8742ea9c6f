class PipelineError(Exception):
    """Base exception for run-level failures."""


class CostCeilingExceededError(PipelineError):
    """Raised when more venues need extraction than the configured ceiling allows."""

    def __init__(self, count: int, ceiling: int) -> None:
        self.count = count
        self.ceiling = ceiling
        super().__init__(
            f"{count} extraction candidates exceed the ceiling of {ceiling}; "
            "rerun with --max-candidates to override"
        )


class MissingPrerequisiteError(PipelineError):
    """Raised when incremental mode is requested before any full run completed."""


class PipelineLockedError(PipelineError):
    """Raised when another run holds the pipeline lock."""


class StageFailedError(PipelineError):
    """Raised by the runner after it records a stage failure."""

    def __init__(self, stage: str, reason: str) -> None:
        self.stage = stage
        self.reason = reason
        super().__init__(f"Pipeline aborted at stage {stage}: {reason}")
