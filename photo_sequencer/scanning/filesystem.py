import os
import logging
from pathlib import Path
from typing import Iterator, List, Optional

from tqdm import tqdm

from .. import config
from .. import time_util
from ..exceptions import ScanError
from ..models import MediaRecord
from ..metadata.extract import MetadataExtractor


def is_supported(path: Path) -> bool:
    if path.name.startswith("._"):
        return False
    return path.suffix.lower() in config.SUPPORTED_EXTS


class DiskScanner:
    def __init__(self, extractor: Optional[MetadataExtractor] = None):
        self.metadata = extractor or MetadataExtractor()

    def scan(self, root: Path) -> List[MediaRecord]:
        """
        Returns a MediaRecord for every supported file under root.

        Raises:
            ScanError: if any directory cannot be read. Nothing is returned
                       in that case, so no renames can follow.
        """
        if not root.is_dir():
            raise ScanError(f"Not a directory: {root}")

        logging.info(f"Scanning [{root}]")
        records = []
        for path in self.iter_files(root):
            if not is_supported(path):
                logging.debug(f"Ignoring unsupported file {path}")
                continue
            records.append(self._process_single_file(path))
        logging.info(f"Scan complete. Found {len(records)} media files.")
        return records

    def resolve_timestamps(self, records: List[MediaRecord]) -> List[MediaRecord]:
        """Enrichment step: attaches capture timestamps to every record."""
        for record in tqdm(records, desc="Reading metadata"):
            record.ensure_capture_timestamp(self.metadata.resolve_capture_timestamp)
        return records

    def iter_files(self, root: Path) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                raise ScanError(f"Cannot read directory {current}: {e}") from e

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file(follow_symlinks=False):
                    files.append(Path(e.path))

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                yield f

    def _process_single_file(self, path: Path) -> MediaRecord:
        try:
            st = path.stat()
        except OSError as e:
            raise ScanError(f"Cannot stat {path}: {e}") from e

        created = getattr(st, 'st_birthtime', None)
        if created is None and os.name == 'nt':
            # st_ctime is the creation time on Windows
            created = st.st_ctime

        return MediaRecord(
            source_path=path.absolute(),
            size_bytes=st.st_size,
            fs_created=time_util.from_timestamp(created) if created is not None else None,
            fs_modified=time_util.from_timestamp(st.st_mtime),
        )
