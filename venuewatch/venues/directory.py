import json
import re
from pathlib import Path
from typing import Any

from venuewatch.logging.logger import Log
from venuewatch.venues.exceptions import VenueDirectoryError
from venuewatch.venues.models import Venue

# ids become file and directory names under the data dir
_SAFE_ID = re.compile(r"[A-Za-z0-9_-][A-Za-z0-9_.-]*")


class VenueDirectory:
    """Loads the fixed venue list the pipeline iterates over."""

    def __init__(self, venues_path: Path) -> None:
        self._venues_path = venues_path

    def load(
        self,
        area: str | None = None,
        venue_ids: list[str] | None = None,
    ) -> list[Venue]:
        """Return venues that have a website, optionally filtered by area or id.

        Raises:
            VenueDirectoryError: if the file is missing or not a JSON list.
        """
        raw = self._read()
        venues: list[Venue] = []
        for index, item in enumerate(raw):
            venue = self._build_venue(item, index)
            if venue is not None:
                venues.append(venue)
        Log.info(f"Loaded {len(venues)} venue(s) from {self._venues_path}")

        if area:
            area_lower = area.lower()
            venues = [v for v in venues if v.area and v.area.lower() == area_lower]
            Log.info(f"Filtered to {len(venues)} venue(s) in area '{area}'")
        if venue_ids:
            wanted = set(venue_ids)
            venues = [v for v in venues if v.id in wanted]
            Log.info(f"Filtered to {len(venues)} venue(s) by id")

        with_website = [v for v in venues if v.website]
        skipped = len(venues) - len(with_website)
        if skipped:
            Log.info(f"Skipping {skipped} venue(s) with no website")
        return with_website

    def _read(self) -> list[Any]:
        try:
            data = json.loads(self._venues_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise VenueDirectoryError(f"Venue directory not found: {self._venues_path}") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise VenueDirectoryError(f"Cannot read venue directory: {exc}") from exc
        if not isinstance(data, list):
            raise VenueDirectoryError("Venue directory must contain a JSON list")
        return data

    @staticmethod
    def _build_venue(item: Any, index: int) -> Venue | None:
        if not isinstance(item, dict):
            Log.warning(f"Ignoring venue entry {index}: not an object")
            return None
        venue_id = item.get("id") or item.get("place_id")
        name = item.get("name")
        if not isinstance(venue_id, str) or not venue_id:
            Log.warning(f"Ignoring venue entry {index}: missing id")
            return None
        if not _SAFE_ID.fullmatch(venue_id):
            Log.warning(f"Ignoring venue entry {index}: unsafe id {venue_id!r}")
            return None
        if not isinstance(name, str) or not name:
            name = venue_id
        website = item.get("website")
        if not isinstance(website, str) or not website.strip():
            website = None
        area = item.get("area")
        return Venue(
            id=venue_id,
            name=name,
            website=website.strip() if website else None,
            area=area if isinstance(area, str) else None,
        )
