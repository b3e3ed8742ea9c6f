from pathlib import Path

import pytest

from venuewatch.storage.layout import DataLayout


@pytest.fixture()
def layout(tmp_path: Path) -> DataLayout:
    """A fresh data directory with the standard sub-directories."""
    data = DataLayout(tmp_path / "data")
    data.ensure()
    return data
