"""
Upload handling - validation and storage of photo files.

Only image files pass: the original filename must end in .jpg, .jpeg, .png
or .gif (case-sensitive) and the payload must not exceed the configured
limit (5 MiB by default). The same checks apply to standalone uploads and to
photos sent inline with a student create/update.
"""

import re

from student_records.config import MAX_UPLOAD_BYTES
from student_records.errors import UploadError
from student_records.logging_config import get_logger, log_with_context
from student_records.services.file_store import FileStore, NewPhoto

logger = get_logger("files")

ALLOWED_PHOTO_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif)$")


def is_allowed_photo(filename: str) -> bool:
    return bool(filename) and ALLOWED_PHOTO_PATTERN.search(filename) is not None


def read_photo(upload, max_bytes: int = MAX_UPLOAD_BYTES) -> NewPhoto:
    """
    Validate an uploaded file and read it into memory.

    Args:
        upload: A Starlette/FastAPI UploadFile
        max_bytes: Size limit in bytes

    Raises:
        UploadError: extension not allowed or payload too large
    """
    filename = upload.filename or ""
    if not is_allowed_photo(filename):
        log_with_context(logger, "WARNING", "Rejected upload with disallowed type: {}".format(filename))
        raise UploadError("Only image files are allowed!")

    # One byte past the limit marks an oversize file
    data = upload.file.read(max_bytes + 1)
    if len(data) > max_bytes:
        log_with_context(logger, "WARNING", "Rejected oversize upload: {}".format(filename),
                         extra_data={"limit": max_bytes})
        raise UploadError("File too large")

    return NewPhoto(data=data, original_name=filename)


def upload_photo(files: FileStore, photo: NewPhoto) -> str:
    """Store a standalone upload under a generated name and return the name."""
    filename = files.generate_name(photo.original_name)
    files.write(filename, photo.data)
    return filename
