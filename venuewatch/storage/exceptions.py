class StorageError(Exception):
    """Base exception for persisted record handling."""


class RecordValidationError(StorageError):
    """A persisted record failed schema validation."""

    def __init__(self, path: str, error_count: int) -> None:
        self.path = path
        self.error_count = error_count
        super().__init__(f"Invalid record {path}: {error_count} validation error(s)")
