"""
Configuration constants for the photo sequencer.
"""

# --- File Type Definitions ---
IMAGE_EXTS = {'.jpg', '.jpeg', '.heic', '.png'}
VIDEO_EXTS = {'.mov', '.mp4'}

# Matched case-insensitively against Path.suffix.lower()
SUPPORTED_EXTS = IMAGE_EXTS | VIDEO_EXTS

# --- Metadata Parsing ---
# exifread tag names. The first is assumed, the second is only adopted
# when it is materially earlier (see time_util).
EXIF_DATE_TAGS = [
    'EXIF DateTimeOriginal',
    'Image DateTime',
]
EXIF_OFFSET_TAGS = [
    'EXIF OffsetTimeOriginal',
    'EXIF OffsetTime',
]

# pymediainfo General track attributes, media (container) date first
VIDEO_MEDIA_DATE_FIELDS = ["encoded_date", "tagged_date"]
VIDEO_CONTENT_DATE_FIELDS = [
    "comapplequicktimecreationdate",
    "com_apple_quicktime_creationdate",
    "recorded_date",
]
EXIFTOOL_DATE_FIELDS = ["CreateDate", "CreationDate", "DateTimeOriginal", "MediaCreateDate"]

# PNG text chunks that may carry a creation time
PNG_TEXT_DATE_KEYS = ["Creation Time", "date:create", "CreationTime"]

# --- Time Reconciliation ---
# Tolerance margin applied around every comparison period
TOLERANCE_RATIO = 0.1
SECOND = 1
MINUTE = 60
HOUR = 60 * 60
DAY = 24 * 60 * 60

# None means the system local zone
LOCAL_ZONE = None
LOCAL_DATE_FORMAT = "%Y%m%d"
LOCAL_TIME_FORMAT = "%H%M%S"

# --- Hashing ---
HASH_CHUNK_SIZE = 64 * 1024  # 64 KB chunks for reading
# Digest assigned when a file cannot be read
FINGERPRINT_ERROR = "error"

# --- Naming ---
DEFAULT_PREFIX = "IMG"
DEFAULT_BASE_POSITION = 1000
NAME_DELIMITER = "_"

# Log a checkpoint every N renames
CHECKPOINT_EVERY = 1000

LOG_FILE_NAME = "sequencer.log"
