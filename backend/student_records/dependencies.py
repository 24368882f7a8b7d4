"""
FastAPI dependencies shared by the route modules.

The `Database` and `FileStore` service objects live on `app.state`; these
dependencies hand them (or a session) to each request.
"""

from fastapi import Request
from starlette.datastructures import UploadFile

from student_records.config import Settings
from student_records.services.file_store import (
    NO_PHOTO, ExistingPhoto, FileStore, PhotoInput
)
from student_records.services.uploads import read_photo


def get_db(request: Request):
    """Yield a session from the app's Database, closed after the response."""
    yield from request.app.state.database.session()


def get_file_store(request: Request) -> FileStore:
    return request.app.state.file_store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def photo_input(value, max_bytes: int) -> PhotoInput:
    """
    Turn the submitted `photo` form field into a photo input variant.

    A file part becomes `NewPhoto` (after type/size validation), a non-blank
    string becomes `ExistingPhoto`, anything else is `NO_PHOTO`.
    """
    if isinstance(value, UploadFile):
        if not value.filename:
            return NO_PHOTO
        return read_photo(value, max_bytes)
    if isinstance(value, str) and value.strip():
        return ExistingPhoto(value)
    return NO_PHOTO
