import logging
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from . import config
from .detection.duplicates import DuplicateDetector, DuplicateReport
from .metadata.extract import MetadataExtractor, TimestampReader
from .models import MediaRecord
from .organization.mover import RenameExecutor, RenameSummary
from .organization.planner import RenamePlanner, sort_records
from .reporting import DuplicateReporter
from .scanning.filesystem import DiskScanner
from .scanning.hasher import FileHasher


@dataclass
class RunResult:
    records: List[MediaRecord] = field(default_factory=list)
    report: DuplicateReport = field(default_factory=DuplicateReport)
    proposals: List[Tuple[Path, Path]] = field(default_factory=list)
    summary: Optional[RenameSummary] = None
    # True when renaming was skipped because duplicates were found
    halted: bool = False


class PhotoSequencerApp:
    def __init__(self,
                 prefix: Optional[str] = config.DEFAULT_PREFIX,
                 base_position: int = config.DEFAULT_BASE_POSITION,
                 include_date: bool = True,
                 zone: Optional[tzinfo] = config.LOCAL_ZONE,
                 time_offset: float = 0,
                 utc_zone_fix: Optional[tzinfo] = None,
                 extra_extractors: Optional[Dict[str, TimestampReader]] = None,
                 extractor: Optional[MetadataExtractor] = None):
        if extractor is None:
            extractor = MetadataExtractor(extra_extractors, zone=zone,
                                          time_offset=time_offset, utc_zone_fix=utc_zone_fix)
        self.scanner = DiskScanner(extractor)
        self.detector = DuplicateDetector(FileHasher(), zone=zone)
        self.planner = RenamePlanner(prefix, base_position, include_date, zone)
        self.executor = RenameExecutor(self.planner)
        self.reporter = DuplicateReporter(zone)

    def run(self,
            root: Path,
            apply: bool = False,
            allow_duplicates: bool = False,
            report_csv: Optional[Path] = None) -> RunResult:
        """
        Executes the pipeline.
        1. Scan & read capture times
        2. Sort into canonical order
        3. Detect duplicates
        4. Plan names
        5. Rename (apply mode only)

        While true duplicates exist nothing is renamed unless
        allow_duplicates is set; the report is the output.

        Raises:
            ScanError: the tree could not be read. Nothing was renamed.
        """
        records = self.scanner.scan(root)
        self.scanner.resolve_timestamps(records)
        records = sort_records(records)

        result = RunResult(records=records)
        result.report = self.detector.find_duplicates(records)

        if result.report.has_duplicates and not allow_duplicates:
            logging.warning(f"{len(result.report.true_duplicates)} duplicate groups found. "
                            f"Resolve them (or allow duplicates) before renaming.")
            self.reporter.log_report(result.report)
            self._write_report(result.report, report_csv, target=False)
            result.halted = True
            return result

        self.planner.plan(records)
        result.proposals = self.planner.proposals(records)

        if apply:
            result.summary = self.executor.execute(records)
        else:
            for source, target in result.proposals:
                logging.info(f'move "{source.name}" "{target}"')
            logging.info(f"[PLAN] {len(result.proposals)} of {len(records)} files would be renamed")

        # Report against the final names once files have moved
        self.reporter.log_report(result.report, target=apply, duplicates=allow_duplicates)
        self._write_report(result.report, report_csv, target=apply)
        logging.info("Done")
        return result

    def _write_report(self, report: DuplicateReport, report_csv: Optional[Path], target: bool):
        if report_csv:
            self.reporter.write_csv(report, report_csv, target=target)
