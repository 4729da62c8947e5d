"""
Two-phase duplicate detection.

Phase one buckets records by capture date and file size, which costs nothing
beyond the scan. Only records that share a bucket are fingerprinted in phase
two, since hashing reads the whole file.
"""
import logging
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import List, Optional

from tqdm import tqdm

from .. import config
from .. import time_util
from ..collision_index import CollisionIndex
from ..models import MediaRecord
from ..scanning.hasher import FileHasher

RETAIN = "REM"
DELETE = "DEL"


@dataclass
class DuplicateReport:
    # Same content (fingerprint collisions)
    true_duplicates: List[List[MediaRecord]] = field(default_factory=list)
    # Same capture date and size, different content
    false_positives: List[List[MediaRecord]] = field(default_factory=list)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.true_duplicates)


def date_and_size_key(record: MediaRecord, zone: Optional[tzinfo] = config.LOCAL_ZONE) -> str:
    # Day granularity: files either side of local midnight never collide
    return f"{time_util.local_date_text(record.capture_timestamp, zone)}_{record.size_bytes}"


def recommend_actions(group: List[MediaRecord]) -> List[str]:
    """
    Retain/delete recommendation for each member of a duplicate group.

    The first member is always retained. A later member is only marked for
    deletion when it was captured within a second of the member before it;
    a wider gap under the same content hash is left for manual review.
    """
    actions = []
    prior = None
    for record in group:
        if prior is None or prior.capture_timestamp is None or record.capture_timestamp is None:
            actions.append(RETAIN)
        elif time_util.within_a_second(prior.capture_timestamp, record.capture_timestamp):
            actions.append(DELETE)
        else:
            actions.append(RETAIN)
        prior = record
    return actions


class DuplicateDetector:
    def __init__(self, hasher: Optional[FileHasher] = None, zone: Optional[tzinfo] = config.LOCAL_ZONE):
        self.hasher = hasher or FileHasher()
        self.zone = zone

    def find_duplicates(self, records: List[MediaRecord]) -> DuplicateReport:
        """
        Args:
            records: the full sequence, already in canonical order. It is
                     only read, never reordered.
        """
        primary: CollisionIndex[str, MediaRecord] = CollisionIndex()
        logging.info(f"Indexing [fileCount={len(records)}]")
        for record in records:
            primary.insert(date_and_size_key(record, self.zone), record)

        candidates = primary.collisions()
        logging.info(f"Duplicate checking [candidates={len(candidates)}]")

        # Re-index the candidates on their content
        secondary: CollisionIndex[str, MediaRecord] = CollisionIndex()
        for record in tqdm(candidates, desc="Fingerprinting", disable=not candidates):
            secondary.insert(record.ensure_fingerprint(self.hasher.fingerprint_or_sentinel), record)

        true_duplicates = secondary.grouped_collisions()

        # Retract the copies so that what stays grouped in the primary index
        # shares date and size but not content. The first member of a content
        # group in each bucket stands in for that group there.
        for group in true_duplicates:
            kept = set()
            for record in group:
                key = date_and_size_key(record, self.zone)
                if key in kept:
                    primary.retract(key, record)
                else:
                    kept.add(key)

        report = DuplicateReport(true_duplicates, primary.grouped_collisions())
        logging.info(f"Found {len(report.true_duplicates)} duplicate groups, "
                     f"{len(report.false_positives)} false positive groups")
        return report
