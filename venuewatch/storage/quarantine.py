import os
from datetime import datetime
from pathlib import Path

from venuewatch.logging.logger import Log


def quarantine_file(path: Path, quarantine_dir: Path, reason: str) -> Path | None:
    """Move a malformed persisted record aside so later stages never read it."""
    if not path.exists():
        return None
    quarantine_dir.mkdir(parents=True, exist_ok=True)
    target = quarantine_dir / f"{datetime.now():%Y%m%d%H%M%S}-{path.parent.name}-{path.name}"
    os.replace(path, target)
    Log.warning(f"Quarantined {path} -> {target}: {reason}")
    return target
