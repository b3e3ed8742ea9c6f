from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from venuewatch.storage.atomic import atomic_write_json
from venuewatch.storage.exceptions import RecordValidationError
from venuewatch.storage.quarantine import quarantine_file

ModelT = TypeVar("ModelT", bound=BaseModel)


class JsonRecordStore(Generic[ModelT]):
    """One validated JSON file per venue: {root}/{venue_id}.json."""

    def __init__(self, root: Path, model: type[ModelT], quarantine_dir: Path) -> None:
        self._root = root
        self._model = model
        self._quarantine_dir = quarantine_dir

    def path(self, venue_id: str) -> Path:
        return self._root / f"{venue_id}.json"

    def write(self, venue_id: str, record: ModelT) -> None:
        atomic_write_json(self.path(venue_id), record.model_dump(mode="json"))

    def read(self, venue_id: str) -> ModelT | None:
        """Return the validated record, None if absent, or raise RecordValidationError."""
        path = self.path(venue_id)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        try:
            return self._model.model_validate_json(raw)
        except ValidationError as exc:
            raise RecordValidationError(str(path), exc.error_count()) from exc

    def load(self, venue_id: str) -> ModelT | None:
        """Like read, but a malformed file is quarantined and treated as absent."""
        try:
            return self.read(venue_id)
        except RecordValidationError as exc:
            quarantine_file(self.path(venue_id), self._quarantine_dir, str(exc))
            return None

    def delete(self, venue_id: str) -> None:
        self.path(venue_id).unlink(missing_ok=True)
