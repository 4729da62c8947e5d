import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import config
from . import time_util
from .core import PhotoSequencerApp
from .exceptions import PhotoSequencerError, ScanError


def setup_logging(log_dir: Optional[Path], verbose: bool):
    """Sets up logging to the console and, if given, a file in log_dir."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / config.LOG_FILE_NAME, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    logging.getLogger("PIL").setLevel(logging.WARNING)


def parse_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise argparse.ArgumentTypeError(f"Unknown time zone: {name}")


def parse_instant(text: str) -> datetime:
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not an ISO date/time: {text}")
    # Naive values are local wall-clock readings
    return dt if dt.tzinfo else dt.astimezone()


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Photo Sequencer: rename media chronologically and report duplicates")

    p.add_argument("dir", type=Path, help="Directory to scan (recursively)")

    p.add_argument("--apply", action="store_true",
                   help="Rename files and set their timestamps (default: only print the plan)")
    p.add_argument("--prefix", default=config.DEFAULT_PREFIX, help="Name prefix (default: %(default)s)")
    p.add_argument("--base", type=int, default=config.DEFAULT_BASE_POSITION,
                   help="First sequence number (default: %(default)s)")
    p.add_argument("--no-date", action="store_true", help="Leave the YYYYMMDD segment out of names")
    p.add_argument("--zone", type=parse_zone, default=None,
                   help="Time zone for dates in names (default: system local)")
    p.add_argument("--utc-zone-fix", type=parse_zone, default=None,
                   help="Zone whose local times some videos recorded as UTC")

    # Wrong camera clock
    p.add_argument("--camera-time", type=parse_instant, default=None,
                   help="Time a sample photo was taken according to its metadata")
    p.add_argument("--actual-time", type=parse_instant, default=None,
                   help="Time the same sample photo was actually taken")

    p.add_argument("--allow-duplicates", action="store_true",
                   help="Rename even when content-identical files were found")
    p.add_argument("--report-csv", type=Path, default=None, help="Also write the duplicate report as CSV")
    p.add_argument("--log-dir", type=Path, default=None,
                   help=f"Directory for {config.LOG_FILE_NAME} (default: console only)")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = p.parse_args(argv)
    if (args.camera_time is None) != (args.actual_time is None):
        p.error("--camera-time and --actual-time must be given together")
    return args


def main(argv=None):
    args = parse_args(argv)
    root = args.dir.resolve()

    setup_logging(args.log_dir, args.verbose)

    logging.info("=== Photo Sequencer Started ===")
    logging.info(f"Directory: {root}")
    logging.info(f"Mode:      {'apply' if args.apply else 'plan'}")

    time_offset = 0
    if args.camera_time is not None:
        time_offset = time_util.offset_between(args.camera_time, args.actual_time)
        logging.info(f"Setting time offset of {time_offset:.0f} seconds")

    app = PhotoSequencerApp(
        prefix=args.prefix,
        base_position=args.base,
        include_date=not args.no_date,
        zone=args.zone,
        time_offset=time_offset,
        utc_zone_fix=args.utc_zone_fix,
    )

    try:
        result = app.run(
            root,
            apply=args.apply,
            allow_duplicates=args.allow_duplicates,
            report_csv=args.report_csv,
        )
    except ScanError as e:
        logging.error(f"Scanning error, nothing renamed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    except PhotoSequencerError:
        logging.exception("Fatal error during sequencing.")
        sys.exit(1)
    except Exception:
        logging.exception("Unexpected error during sequencing.")
        sys.exit(1)

    if result.halted:
        sys.exit(2)


if __name__ == "__main__":
    main()
