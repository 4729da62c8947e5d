from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Optional

from . import time_util


@dataclass(eq=False)
class MediaRecord:
    """
    Represents one media file found during a scan.

    Identity is the source path: two records are equal iff their source
    paths are equal. Derived fields (capture timestamp, fingerprint) are
    attached by explicit enrichment calls and computed at most once.
    """
    source_path: Path
    size_bytes: int

    # Filesystem times captured at scan time (fallback for the capture time)
    fs_created: Optional[datetime] = None
    fs_modified: Optional[datetime] = None

    capture_timestamp: Optional[datetime] = None
    timestamp_resolved: bool = False

    content_fingerprint: Optional[str] = None

    # Assigned by the rename planner
    sequence_position: Optional[int] = None
    target_path: Optional[Path] = None
    disambiguation_index: int = 0

    def __setattr__(self, name, value):
        if name == 'source_path' and 'source_path' in self.__dict__:
            raise AttributeError("source_path cannot be changed once set")
        super().__setattr__(name, value)

    def __eq__(self, other):
        if not isinstance(other, MediaRecord):
            return NotImplemented
        return self.source_path == other.source_path

    def __hash__(self):
        return hash(self.source_path)

    def __repr__(self):
        return (f"MediaRecord(source_path={str(self.source_path)!r}, "
                f"captured={self.capture_timestamp}, position={self.sequence_position})")

    @property
    def name(self) -> str:
        return self.source_path.name

    @property
    def extension(self) -> str:
        return self.source_path.suffix

    @property
    def fallback_timestamp(self) -> Optional[datetime]:
        return time_util.earliest(self.fs_created, self.fs_modified)

    @property
    def rename_required(self) -> bool:
        return self.target_path is not None and self.target_path != self.source_path

    def conflicts(self, claimed: Optional[Dict[Path, "MediaRecord"]] = None) -> bool:
        """
        True if the target cannot be used: it exists on disk, or another
        record visited in this run has already claimed it.
        """
        if not self.rename_required:
            return False
        if claimed:
            owner = claimed.get(self.target_path)
            if owner is not None and owner is not self:
                return True
        return self.target_path.exists()

    def ensure_capture_timestamp(self,
                                 resolver: Callable[[Path], Optional[datetime]]) -> Optional[datetime]:
        """Resolves the capture time once; later calls return the cached value."""
        if not self.timestamp_resolved:
            captured = resolver(self.source_path)
            if captured is None:
                captured = self.fallback_timestamp
            self.capture_timestamp = captured
            self.timestamp_resolved = True
        return self.capture_timestamp

    def ensure_fingerprint(self, fingerprint: Callable[[Path], str]) -> str:
        """Computes the content fingerprint once; later calls return the cached value."""
        if self.content_fingerprint is None:
            self.content_fingerprint = fingerprint(self.source_path)
        return self.content_fingerprint
