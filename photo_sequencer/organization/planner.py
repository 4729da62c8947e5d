import logging
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .. import config
from .. import time_util
from ..models import MediaRecord

# Stand-in so records without a capture time sort first
_NO_TIME = datetime.min.replace(tzinfo=timezone.utc)


def sort_key(record: MediaRecord):
    """
    Canonical ordering: capture time ascending, records without one first,
    ties broken by source file name.
    """
    captured = record.capture_timestamp
    return (captured is not None, captured or _NO_TIME, record.name)


def sort_records(records: List[MediaRecord]) -> List[MediaRecord]:
    return sorted(records, key=sort_key)


class RenamePlanner:
    """
    Assigns sequence positions and collision-free target names.

    Names look like IMG_20180731_1000.JPG, or IMG_20180731_1000_1.JPG when
    the plain name is taken on disk or by an earlier record in the run.
    """

    def __init__(self,
                 prefix: Optional[str] = config.DEFAULT_PREFIX,
                 base_position: int = config.DEFAULT_BASE_POSITION,
                 include_date: bool = True,
                 zone: Optional[tzinfo] = config.LOCAL_ZONE):
        self.prefix = prefix
        self.base_position = base_position
        self.include_date = include_date
        self.zone = zone

    def target_name(self, record: MediaRecord, index: int = 0) -> str:
        parts = []
        if self.prefix:
            parts.append(self.prefix)
        if self.include_date and record.capture_timestamp is not None:
            parts.append(time_util.local_date_text(record.capture_timestamp, self.zone))
        parts.append(str(record.sequence_position))
        if index:
            parts.append(str(index))
        return config.NAME_DELIMITER.join(parts) + record.extension.upper()

    def target_path(self, record: MediaRecord, index: int = 0) -> Path:
        return record.source_path.parent / self.target_name(record, index)

    def plan(self, records: List[MediaRecord]) -> List[MediaRecord]:
        """
        Sets sequence_position, target_path and disambiguation_index on each
        record, in the given (sorted) order. Nothing on disk is touched.
        """
        claimed: Dict[Path, MediaRecord] = {}
        for i, record in enumerate(records):
            record.sequence_position = self.base_position + i

            index = 0
            record.target_path = self.target_path(record, index)
            while record.conflicts(claimed):
                index += 1
                record.target_path = self.target_path(record, index)
            record.disambiguation_index = index

            if index:
                logging.debug(f"{record.source_path} disambiguated to {record.target_path}")
            claimed[record.target_path] = record
        return records

    def proposals(self, records: List[MediaRecord]) -> List[Tuple[Path, Path]]:
        """(source, target) pairs for every record that needs a rename."""
        return [(r.source_path, r.target_path) for r in records if r.rename_required]
