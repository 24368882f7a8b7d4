"""
Upload API route - standalone photo upload.

The returned filename can be sent later as the `photo` field of a student
create/update to attach the file to a record.
"""

from typing import Union

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.datastructures import UploadFile as StarletteUploadFile

from student_records.config import Settings
from student_records.dependencies import get_file_store, get_settings
from student_records.errors import ValidationError
from student_records.services import uploads
from student_records.services.file_store import FileStore

router = APIRouter()


@router.post("/upload")
def upload_photo(
    photo: Union[UploadFile, str, None] = File(None),
    files: FileStore = Depends(get_file_store),
    settings: Settings = Depends(get_settings)
):
    if not isinstance(photo, StarletteUploadFile) or not photo.filename:
        raise ValidationError("No file uploaded")

    filename = uploads.upload_photo(files, uploads.read_photo(photo, settings.max_upload_bytes))
    return {
        "status": "success",
        "message": "File uploaded successfully",
        "filename": filename
    }
