import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from photo_sequencer.models import MediaRecord


@pytest.fixture
def make_record():
    """Builds a MediaRecord with an already-resolved capture time."""
    def _make(path, captured=None, size=100, fingerprint=None):
        return MediaRecord(
            source_path=Path(path),
            size_bytes=size,
            capture_timestamp=captured,
            timestamp_resolved=True,
            content_fingerprint=fingerprint,
        )
    return _make


@pytest.fixture
def write_media():
    """Writes a file and sets its modification time to `when`."""
    def _write(path: Path, content: bytes, when: datetime):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        ts = when.timestamp()
        os.utime(path, (ts, ts))
        return path
    return _write


@pytest.fixture
def t0():
    return datetime(2020, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
