"""
Students API routes - CRUD over student records with photo handling.

Create and update take form fields, multipart when a `photo` file is
attached. The `photo` field may also be a plain filename returned earlier
by POST /upload.
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from student_records.config import Settings
from student_records.dependencies import (
    get_db, get_file_store, get_settings, photo_input
)
from student_records.models.student import Student
from student_records.services import students
from student_records.services.file_store import FileStore, photo_url

router = APIRouter()


def serialize_student(student: Student) -> dict:
    """Student row as a dict, plus `photoUrl` when a photo is set."""
    result = {
        "idno": student.idno,
        "lastname": student.lastname,
        "firstname": student.firstname,
        "course": student.course,
        "level": student.level,
        "photo": student.photo
    }
    if student.photo:
        result["photoUrl"] = photo_url(student.photo)
    return result


@router.get("/students")
def list_students(db: Session = Depends(get_db)):
    """All students sorted by last name."""
    return [serialize_student(s) for s in students.list_students(db)]


@router.get("/students/{idno}")
def get_student(idno: str, db: Session = Depends(get_db)):
    return {"status": "success", "student": serialize_student(students.get_student(db, idno))}


@router.post("/students", status_code=201)
def create_student(
    idno: Optional[str] = Form(None),
    lastname: Optional[str] = Form(None),
    firstname: Optional[str] = Form(None),
    course: Optional[str] = Form(None),
    level: Optional[str] = Form(None),
    photo: Union[UploadFile, str, None] = File(None),
    db: Session = Depends(get_db),
    files: FileStore = Depends(get_file_store),
    settings: Settings = Depends(get_settings)
):
    """Add a student; an inline photo is saved as `<idno>_<first>_<last><ext>`."""
    student = students.create_student(
        db, files,
        idno=idno, lastname=lastname, firstname=firstname,
        course=course, level=level,
        photo=photo_input(photo, settings.max_upload_bytes)
    )
    return {
        "status": "success",
        "message": "Student added successfully",
        "student": serialize_student(student)
    }


@router.put("/students/{idno}")
def update_student(
    idno: str,
    lastname: Optional[str] = Form(None),
    firstname: Optional[str] = Form(None),
    course: Optional[str] = Form(None),
    level: Optional[str] = Form(None),
    photo: Union[UploadFile, str, None] = File(None),
    db: Session = Depends(get_db),
    files: FileStore = Depends(get_file_store),
    settings: Settings = Depends(get_settings)
):
    """Update a student's fields; without a photo the current one is kept."""
    # A missing student is a 404 before any upload is looked at
    students.get_student(db, idno)
    student = students.update_student(
        db, files, idno,
        lastname=lastname, firstname=firstname,
        course=course, level=level,
        photo=photo_input(photo, settings.max_upload_bytes)
    )
    return {
        "status": "success",
        "message": "Student updated successfully",
        "student": serialize_student(student)
    }


@router.delete("/students/{idno}")
def delete_student(
    idno: str,
    db: Session = Depends(get_db),
    files: FileStore = Depends(get_file_store)
):
    deleted = students.delete_student(db, files, idno)
    return {
        "status": "success",
        "message": "Student deleted successfully",
        "idno": deleted
    }
