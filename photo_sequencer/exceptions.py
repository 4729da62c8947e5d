"""
Custom exception hierarchy for the photo sequencer.

Only ScanError is fatal to a run. The others describe per-record failures
that are logged and contained to the record that caused them.
"""


class PhotoSequencerError(Exception):
    """Base exception for all photo sequencer errors."""
    pass


class MetadataExtractionError(PhotoSequencerError):
    """Raised when a capture timestamp cannot be read from embedded metadata."""
    pass


class FingerprintError(PhotoSequencerError):
    """Raised when file content cannot be hashed."""
    pass


class RenameConflictError(PhotoSequencerError):
    """Raised when a rename target already exists on disk."""

    def __init__(self, source, target):
        super().__init__(f"Cannot rename [{source}] to [{target}] as target already exists")
        self.source = source
        self.target = target


class ScanError(PhotoSequencerError):
    """Raised when the directory tree cannot be read. No renames are attempted."""
    pass
