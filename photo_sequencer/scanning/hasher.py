import hashlib
import logging
from pathlib import Path

from .. import config
from ..exceptions import FingerprintError


class FileHasher:
    def fingerprint(self, path: Path) -> str:
        """
        Computes a SHA-256 digest over the whole file.

        Always a full read: digest equality has to mean byte-for-byte
        equality for duplicate detection to hold.
        """
        h = hashlib.sha256()
        try:
            with open(path, 'rb') as f:
                while chunk := f.read(config.HASH_CHUNK_SIZE):
                    h.update(chunk)
        except OSError as e:
            raise FingerprintError(f"Cannot hash {path}: {e}") from e
        return h.hexdigest()

    def fingerprint_or_sentinel(self, path: Path) -> str:
        """
        Like fingerprint(), but a failure yields FINGERPRINT_ERROR.

        Every unreadable file shares that sentinel, so two of them can end up
        grouped together. Accepted: the failure is logged.
        """
        try:
            return self.fingerprint(path)
        except FingerprintError as e:
            logging.error(f"Error building checksum: {e}")
            return config.FINGERPRINT_ERROR
