import json
import logging
import subprocess
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import exifread
from PIL import Image

from .. import config
from .. import time_util
from ..exceptions import MetadataExtractionError

# Type hint 'Any' prevents Pylance from complaining about "None" having no attribute "parse"
MediaInfo: Any = None
try:
    from pymediainfo import MediaInfo
except ImportError:
    MediaInfo = None

# Pillow EXIF ids
EXIF_IFD_POINTER = 0x8769
TAG_DATETIME = 306
TAG_DATETIME_ORIGINAL = 36867

TimestampReader = Callable[[Path], Optional[datetime]]


def lookup_with_default(mapping: Mapping, default: Any, log_misses: bool = True) -> Callable:
    """
    Returns a getter over mapping that falls back to default on a miss.
    """
    def lookup(key):
        try:
            return mapping[key]
        except KeyError:
            if log_misses:
                logging.info(f"Map fallback [{key}] == [{default}]")
            return default
    return lookup


def no_timestamp(path: Path) -> Optional[datetime]:
    return None


class MetadataExtractor:
    """
    Resolves the capture time of a media file from its embedded metadata.

    Dispatch is by lower-cased extension:
      - JPEG/HEIC: 'exifread'.
      - PNG: Pillow (EXIF block, then text chunks).
      - Video: 'pymediainfo' -> falls back to 'exiftool'.

    Callers can register readers for further extensions (or replace the
    built-in ones) through extra_extractors.
    """

    def __init__(self,
                 extra_extractors: Optional[Dict[str, TimestampReader]] = None,
                 zone: Optional[tzinfo] = config.LOCAL_ZONE,
                 time_offset: float = 0,
                 utc_zone_fix: Optional[tzinfo] = None):
        """
        Args:
            zone: zone for naive EXIF wall-clock times (None = system local)
            time_offset: seconds added to every metadata time (wrong camera clock)
            utc_zone_fix: if set, video dates marked UTC are treated as wall
                          clock readings in this zone and corrected
        """
        self.zone = zone
        self.time_offset = time_offset
        self.utc_zone_fix = utc_zone_fix

        self.extractors: Dict[str, TimestampReader] = {
            '.jpg': self.get_exif_timestamp,
            '.jpeg': self.get_exif_timestamp,
            '.heic': self.get_exif_timestamp,
            '.png': self.get_png_timestamp,
            '.mov': self.get_video_timestamp,
            '.mp4': self.get_video_timestamp,
        }
        for ext, reader in (extra_extractors or {}).items():
            self.extractors[ext.lower()] = reader
        self._reader_for = lookup_with_default(self.extractors, no_timestamp)

    def resolve_capture_timestamp(self, path: Path) -> Optional[datetime]:
        """
        Returns the capture time as an aware UTC datetime, or None when the
        format is unsupported or extraction fails.
        """
        reader = self._reader_for(path.suffix.lower())
        try:
            captured = reader(path)
        except MetadataExtractionError as e:
            logging.warning(f"Exif extraction failed for {path}: {e}")
            return None
        except Exception as e:
            # Caller-supplied readers may raise anything
            logging.warning(f"Metadata reader failed for {path}: {e}")
            return None

        if captured is None:
            logging.debug(f"No capture time in metadata for {path}")
            return None
        return time_util.apply_offset(captured.astimezone(timezone.utc), self.time_offset)

    # --- Format Readers ---

    def get_exif_timestamp(self, path: Path) -> Optional[datetime]:
        """JPEG and HEIC, via exifread."""
        try:
            with path.open('rb') as f:
                # details=False speeds up processing significantly
                tags = exifread.process_file(f, details=False)
        except Exception as e:
            raise MetadataExtractionError(f"ExifRead failed: {e}") from e

        offset = None
        for tag in config.EXIF_OFFSET_TAGS:
            if tag in tags:
                offset = str(tags[tag]).strip()
                break

        assumed_tag, alternative_tag = config.EXIF_DATE_TAGS
        assumed = self._parse_exif_date(tags.get(assumed_tag), offset)
        alternative = self._parse_exif_date(tags.get(alternative_tag), offset)
        return time_util.correct_if_alternative_materially_earlier(assumed, alternative, str(path))

    def get_png_timestamp(self, path: Path) -> Optional[datetime]:
        """PNG, via Pillow. EXIF is assumed, text chunks are the alternative."""
        try:
            with Image.open(path) as im:
                exif = im.getexif()
                raw = exif.get_ifd(EXIF_IFD_POINTER).get(TAG_DATETIME_ORIGINAL) or exif.get(TAG_DATETIME)
                text = next((im.info[k] for k in config.PNG_TEXT_DATE_KEYS if im.info.get(k)), None)
        except Exception as e:
            raise MetadataExtractionError(f"Pillow failed: {e}") from e

        assumed = self._parse_exif_date(raw, None)
        alternative = self._parse_flexible_date(str(text), assume_utc=False) if text else None
        return time_util.correct_if_alternative_materially_earlier(assumed, alternative, str(path))

    def get_video_timestamp(self, path: Path) -> Optional[datetime]:
        """
        MOV and MP4.

        The container (media) date is assumed; the QuickTime content creation
        date is only adopted when materially earlier.
        """
        # Strategy 1: Try MediaInfo (Fastest, usually sufficient)
        if MediaInfo is not None:
            try:
                media, content = self._extract_mediainfo(path)
                if media or content:
                    return time_util.correct_if_alternative_materially_earlier(media, content, str(path))
            except Exception as e:
                logging.debug(f"MediaInfo failed for {path}: {e}")

        # Strategy 2: Try ExifTool (Robust fallback, requires system install)
        try:
            return self._extract_exiftool(path)
        except Exception as e:
            # Only log at debug level to avoid spamming console if tool is missing
            logging.debug(f"ExifTool failed for {path}: {e}")
        return None

    # --- Internal Extraction Helpers ---

    def _extract_mediainfo(self, path: Path):
        """Returns (media_date, content_date) from the General track."""
        mi = MediaInfo.parse(str(path))
        media = content = None

        for track in mi.tracks:
            if track.track_type != "General":
                continue
            for field in config.VIDEO_MEDIA_DATE_FIELDS:
                media = self._fix_utc(self._parse_flexible_date(getattr(track, field, None), assume_utc=True))
                if media:
                    break
            for field in config.VIDEO_CONTENT_DATE_FIELDS:
                content = self._parse_flexible_date(getattr(track, field, None), assume_utc=False)
                if content:
                    break
        return media, content

    def _extract_exiftool(self, path: Path) -> Optional[datetime]:
        """
        Wraps the 'exiftool' command line utility.
        Must be installed and on the system PATH.
        """
        # -j = JSON output
        # -n = No formatting (clean dates)
        cmd = ["exiftool", "-j", "-n", str(path)]
        out = subprocess.check_output(cmd, stderr=subprocess.DEVNULL, text=True)
        data_list = json.loads(out)
        if not data_list:
            return None

        tags = data_list[0]
        # QuickTime dates are stored as UTC
        for field in config.EXIFTOOL_DATE_FIELDS:
            if tags.get(field):
                dt = self._parse_flexible_date(str(tags[field]), assume_utc=True)
                if dt:
                    return self._fix_utc(dt)
        return None

    def _fix_utc(self, dt: Optional[datetime]) -> Optional[datetime]:
        if dt is None or self.utc_zone_fix is None:
            return dt
        return time_util.correct_zone_offset(dt, self.utc_zone_fix)

    def _localize(self, naive: datetime) -> datetime:
        if self.zone is None:
            # Interpreted in the system local zone
            return naive.astimezone()
        return naive.replace(tzinfo=self.zone)

    def _parse_exif_date(self, value, offset: Optional[str]) -> Optional[datetime]:
        """Parses an EXIF "YYYY:MM:DD HH:MM:SS" value with an optional "+HH:MM" offset."""
        if value is None:
            return None
        dt_str = str(value).strip().replace(':', '-', 2)
        try:
            if offset:
                return datetime.strptime(f"{dt_str}{offset}", "%Y-%m-%d %H:%M:%S%z")
            return self._localize(datetime.strptime(dt_str, "%Y-%m-%d %H:%M:%S"))
        except ValueError:
            # Blank dates are written as "0000:00:00 00:00:00"
            logging.debug(f"Unparseable EXIF date [{value}] offset [{offset}]")
            return None

    def _parse_flexible_date(self, dt_str: Optional[str], assume_utc: bool) -> Optional[datetime]:
        """
        Handles various date formats (ISO, UTC markers, Exiftool quirks).
        Returns an aware datetime. Naive values are taken as UTC when
        assume_utc is set (or a UTC marker was present), else as local.
        """
        if not dt_str:
            return None

        clean = str(dt_str).strip()
        if "UTC" in clean:
            clean = clean.replace("UTC", "").strip()
            assume_utc = True

        dt = None
        # 1. Try ISO format (e.g. 2020-01-01T12:00:00+0100)
        for fmt in ("%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%d %H:%M:%S%z"):
            try:
                dt = datetime.strptime(clean, fmt)
                break
            except ValueError:
                pass
        if dt is None:
            try:
                dt = datetime.fromisoformat(clean)
            except ValueError:
                pass

        # 2. Try Standard EXIF style "YYYY:MM:DD HH:MM:SS"
        if dt is None:
            clean_exif = clean.replace(":", "-", 2)
            # Handle potential sub-second precision which strptime hates
            if "." in clean_exif:
                clean_exif = clean_exif.split(".")[0]
            try:
                dt = datetime.strptime(clean_exif, "%Y-%m-%d %H:%M:%S")
            except ValueError:
                return None

        if dt.tzinfo is not None:
            return dt
        if assume_utc:
            return dt.replace(tzinfo=timezone.utc)
        return self._localize(dt)
