import os
import shutil
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from tqdm import tqdm

from .. import config
from ..exceptions import RenameConflictError
from ..models import MediaRecord
from .planner import RenamePlanner


@dataclass
class RenameSummary:
    renamed: List[MediaRecord] = field(default_factory=list)
    conflicts: List[MediaRecord] = field(default_factory=list)
    failed: List[MediaRecord] = field(default_factory=list)
    collapsed: List[MediaRecord] = field(default_factory=list)


def set_file_times(path: Path, record: MediaRecord) -> bool:
    """
    Best-effort: stamps the capture time on the file's access and
    modification times. Creation time is left to the platform.
    """
    if record.capture_timestamp is None:
        return False
    ts = record.capture_timestamp.timestamp()
    try:
        os.utime(path, (ts, ts))
        return True
    except OSError as e:
        logging.error(f"setFileDate file:[{path}] error:[{e}]")
        return False


def rename_file(source: Path, target: Path):
    """
    Moves source to target, refusing to overwrite.

    Raises:
        RenameConflictError: target already exists.
        OSError: the move itself failed.
    """
    if target.exists():
        raise RenameConflictError(source, target)
    shutil.move(str(source), str(target))
    logging.debug(f'moved "{source}" "{target}"')


class RenameExecutor:
    def __init__(self, planner: RenamePlanner):
        self.planner = planner

    def execute(self, records: List[MediaRecord]) -> RenameSummary:
        """
        Applies a plan in sequence order, then collapses needless suffixes.

        A failure only skips the record it belongs to. A partially applied
        batch is safe to re-run.
        """
        summary = RenameSummary()
        logging.info(f"Renaming [fileCount={len(records)}]")

        for position, record in enumerate(tqdm(records, desc="Renaming")):
            # Timestamps first, while the file is still at its source path
            set_file_times(record.source_path, record)

            if record.rename_required:
                try:
                    rename_file(record.source_path, record.target_path)
                    summary.renamed.append(record)
                except RenameConflictError as e:
                    logging.error(f"CONFLICT: {e}")
                    summary.conflicts.append(record)
                except OSError as e:
                    logging.error(f"FAILED: Rename failed for [{record.source_path}] to [{record.target_path}]: {e}")
                    summary.failed.append(record)

            # Checkpoint log
            if position % config.CHECKPOINT_EVERY == 0:
                logging.info(f" Checkpoint [{record.target_path}]")

        self.collapse(summary)
        logging.info(f"Renamed {len(summary.renamed)} files "
                     f"({len(summary.conflicts)} conflicts, {len(summary.failed)} failures, "
                     f"{len(summary.collapsed)} collapsed)")
        return summary

    def collapse(self, summary: RenameSummary):
        """
        Second pass. A suffix forced only by a sibling that has since been
        renamed away is dropped by moving the file to its index-0 name.
        """
        for record in summary.renamed:
            if record.disambiguation_index == 0:
                continue
            clean = self.planner.target_path(record, 0)
            try:
                rename_file(record.target_path, clean)
            except RenameConflictError:
                logging.info(f"Keeping {record.target_path.name}: {clean.name} is still taken")
                continue
            except OSError as e:
                logging.error(f"FAILED: Rename failed for [{record.target_path}] to [{clean}]: {e}")
                continue
            record.target_path = clean
            record.disambiguation_index = 0
            summary.collapsed.append(record)
