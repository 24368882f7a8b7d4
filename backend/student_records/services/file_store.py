"""
File Store - the directory of uploaded student photos.

Student rows reference photos by bare filename. Two naming schemes exist:

1. Generated names for standalone uploads (POST /upload):
   `<epoch-ms>-<random><ext>`, e.g. `1714041600000-482913377.png`
2. Deterministic names for photos sent inline with a create/update:
   `<idno>_<firstname>_<lastname><ext>` with whitespace collapsed to `_`

Deleting a photo is best-effort: `discard` logs failures and reports them
through its return value instead of raising, so a stuck file never fails the
row operation it belongs to.
"""

import os
import re
import random
import time
from pathlib import Path
from typing import NamedTuple, Union

from student_records.errors import StoreError, ValidationError
from student_records.logging_config import get_logger, log_with_context

logger = get_logger("files")

PHOTO_URL_PREFIX = "/uploads/"


# ── Photo input variants ─────────────────────────────────────

class NewPhoto(NamedTuple):
    """A file payload received with the request."""
    data: bytes
    original_name: str

    @property
    def extension(self) -> str:
        return os.path.splitext(self.original_name)[1]


class ExistingPhoto(NamedTuple):
    """A filename that refers to a previously uploaded file."""
    filename: str


class _NoPhoto:
    def __repr__(self):
        return "NO_PHOTO"

    def __bool__(self):
        return False


NO_PHOTO = _NoPhoto()

PhotoInput = Union[NewPhoto, ExistingPhoto, _NoPhoto]


def photo_filename_for(idno: str, firstname: str, lastname: str, extension: str) -> str:
    """
    Build the deterministic filename for an inline photo.

    >>> photo_filename_for("2021001", "Ana Maria", "Dela Cruz", ".jpg")
    '2021001_Ana_Maria_Dela_Cruz.jpg'
    """
    name = re.sub(r"\s+", "_", f"{idno}_{firstname}_{lastname}{extension}")
    return name.replace("/", "_").replace("\\", "_")


def photo_url(filename: str) -> str:
    return PHOTO_URL_PREFIX + filename


class FileStore:
    """Flat directory of photo files addressed by bare filename."""

    def __init__(self, directory):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, filename: str) -> Path:
        """Resolve a bare filename inside the store; anything else is rejected."""
        if (not filename or filename in (".", "..")
                or os.path.basename(filename) != filename or "\\" in filename):
            raise ValidationError("Invalid photo filename")
        return self.directory / filename

    def write(self, filename: str, data: bytes) -> Path:
        """Write `data` under `filename`, replacing any file of that name."""
        path = self.path_for(filename)
        try:
            path.write_bytes(data)
        except OSError as e:
            log_with_context(logger, "ERROR", "Failed to save photo {}: {}".format(filename, e),
                             context={"filename": filename})
            raise StoreError("Failed to save uploaded file")
        log_with_context(logger, "INFO", "Saved photo: {}".format(filename),
                         context={"filename": filename},
                         extra_data={"size": len(data)})
        return path

    def discard(self, filename: str) -> bool:
        """
        Delete a photo if it exists.

        Returns True when the file is gone afterwards. Failures are logged as
        warnings and reported as False; they are never raised.
        """
        try:
            path = self.path_for(filename)
        except ValidationError:
            log_with_context(logger, "WARNING", "Refusing to delete invalid filename: {}".format(filename))
            return False

        if not path.exists():
            return True
        try:
            path.unlink()
        except OSError as e:
            log_with_context(logger, "WARNING", "Error deleting photo: {}".format(e),
                             context={"filename": filename})
            return False

        log_with_context(logger, "INFO", "Deleted photo: {}".format(filename),
                         context={"filename": filename})
        return True

    @staticmethod
    def generate_name(original_name: str) -> str:
        """Unique name for a standalone upload, keeping the original extension."""
        ext = os.path.splitext(original_name)[1]
        return "{}-{}{}".format(int(time.time() * 1000), random.randint(0, 10 ** 9), ext)
