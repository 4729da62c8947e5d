import csv
import logging
from datetime import tzinfo
from pathlib import Path
from typing import List, Optional

from . import config
from . import time_util
from .detection.duplicates import DuplicateReport, date_and_size_key, recommend_actions
from .models import MediaRecord

DUPLICATE_TAG = "DUP:"
FALSE_POSITIVE_TAG = "FSE:"


def format_row(row: list) -> str:
    """Space-separated columns, empty ones dropped, path quoted."""
    line = " ".join(str(col) for col in row[:-1] if col != "")
    return f'{line} "{row[-1]}"'


class DuplicateReporter:
    """
    Emits one line per group member:

        DUP: 0001 <sha256> 20180731 170303 0000102400 S REM "/abs/path.jpg"

    True duplicates are keyed by fingerprint and carry a REM/DEL
    recommendation. False positives are keyed by their date+size bucket.
    """

    headers = ["Tag", "Group", "Key", "Captured", "Size", "Side", "Action", "Path"]

    def __init__(self, zone: Optional[tzinfo] = config.LOCAL_ZONE):
        self.zone = zone

    def rows(self, report: DuplicateReport, target: bool = False, duplicates: bool = True) -> List[list]:
        rows = []
        if duplicates:
            rows.extend(self._group_rows(DUPLICATE_TAG, report.true_duplicates, target, recommend=True))
        rows.extend(self._group_rows(FALSE_POSITIVE_TAG, report.false_positives, target, recommend=False))
        return rows

    def log_report(self, report: DuplicateReport, target: bool = False, duplicates: bool = True):
        for row in self.rows(report, target, duplicates):
            logging.info(format_row(row))

    def write_csv(self, report: DuplicateReport, output_csv: Path, target: bool = False):
        rows = self.rows(report, target)
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(self.headers)
            writer.writerows(rows)
        logging.info(f"Report written to {output_csv} ({len(rows)} rows)")

    def _group_rows(self, tag: str, groups: List[List[MediaRecord]], target: bool, recommend: bool) -> List[list]:
        rows = []
        for group_id, group in enumerate(groups, start=1):
            actions = recommend_actions(group) if recommend else [""] * len(group)
            for record, action in zip(group, actions):
                key = record.content_fingerprint if recommend else date_and_size_key(record, self.zone)
                captured = ""
                if record.capture_timestamp is not None:
                    captured = (f"{time_util.local_date_text(record.capture_timestamp, self.zone)} "
                                f"{time_util.local_time_text(record.capture_timestamp, self.zone)}")
                use_target = target and record.target_path is not None
                path = record.target_path if use_target else record.source_path
                rows.append([
                    tag,
                    f"{group_id:04d}",
                    key,
                    captured,
                    f"{record.size_bytes:010d}",
                    "T" if use_target else "S",
                    action,
                    str(path.absolute()),
                ])
        return rows
