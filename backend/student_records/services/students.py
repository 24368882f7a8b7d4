"""
Student Service - create, read, update and delete student records.

Each operation keeps the `students` table and the photo directory in step:

- create: an inline photo is saved under its deterministic name only after
  the duplicate check passes; if the insert still loses a race on the
  primary key, the fresh file is removed again
- update: a new photo replaces the stored one and the old file is discarded
  once the row change has committed
- delete: the row goes first, then its photo file

Photo deletions are best-effort (see `FileStore.discard`). The duplicate
pre-check on create is only an early exit; the primary key constraint is
what actually rejects a second row for the same idno.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from student_records.errors import (
    ConflictError, NotFoundError, StoreError, ValidationError
)
from student_records.logging_config import get_logger, log_with_context
from student_records.models.student import Student
from student_records.services.file_store import (
    NO_PHOTO, ExistingPhoto, FileStore, NewPhoto, PhotoInput, photo_filename_for
)

logger = get_logger("db")

REQUIRED_MESSAGE = "All fields are required"
NOT_FOUND_MESSAGE = "Student not found"
DUPLICATE_MESSAGE = "Student with this ID already exists"

# Signed 64-bit, the widest INTEGER the store columns hold
LEVEL_MIN = -2 ** 63
LEVEL_MAX = 2 ** 63 - 1

# OverflowError comes straight from the DB-API driver on out-of-range ints
COMMIT_ERRORS = (SQLAlchemyError, OverflowError)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require(*values):
    if any(_is_blank(v) for v in values):
        raise ValidationError(REQUIRED_MESSAGE)


def parse_level(level) -> int:
    """
    Coerce a submitted year level to int.

    Forms deliver "2", direct callers may pass 2; both are accepted. Values
    outside the INTEGER column range are rejected rather than left to fail
    at insert time.
    """
    if _is_blank(level) or isinstance(level, bool):
        raise ValidationError(REQUIRED_MESSAGE)
    try:
        value = int(str(level).strip())
    except ValueError:
        raise ValidationError("Level must be a whole number")
    if not LEVEL_MIN <= value <= LEVEL_MAX:
        raise ValidationError("Level is out of range")
    return value


def _get(db: Session, idno: str) -> Optional[Student]:
    try:
        return db.get(Student, idno)
    except SQLAlchemyError as e:
        log_with_context(logger, "ERROR", "Error checking student: {}".format(e),
                         context={"idno": idno})
        raise StoreError("Database error")


def _commit(db: Session, action: str, idno: str):
    try:
        db.commit()
    except COMMIT_ERRORS as e:
        db.rollback()
        if not isinstance(e, IntegrityError):
            log_with_context(logger, "ERROR", "Error {} student: {}".format(action, e),
                             context={"idno": idno})
        raise


def _is_referenced(db: Session, filename: str) -> bool:
    try:
        return db.scalar(select(Student.idno).where(Student.photo == filename).limit(1)) is not None
    except SQLAlchemyError:
        # Unknown; keep the file
        return True


def _discard_unclaimed(db: Session, files: FileStore, photo: PhotoInput):
    """Remove a previously uploaded file named by a rejected create."""
    if isinstance(photo, ExistingPhoto) and not _is_referenced(db, photo.filename):
        files.discard(photo.filename)


def list_students(db: Session) -> List[Student]:
    """All students ordered by last name (store collation, case-sensitive)."""
    try:
        return db.scalars(select(Student).order_by(Student.lastname.asc())).all()
    except SQLAlchemyError as e:
        log_with_context(logger, "ERROR", "Error fetching students: {}".format(e))
        raise StoreError("Database error")


def get_student(db: Session, idno: str) -> Student:
    student = _get(db, idno)
    if student is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return student


def create_student(db: Session, files: FileStore, idno: str, lastname: str,
                   firstname: str, course: str, level,
                   photo: PhotoInput = NO_PHOTO) -> Student:
    """
    Insert a new student, saving an inline photo if one was sent.

    Raises:
        ValidationError: a required field is missing or level is not a number
        ConflictError: a student with this idno already exists
        StoreError: the database or file store failed
    """
    _require(idno, lastname, firstname, course, level)
    level = parse_level(level)

    if _get(db, idno) is not None:
        _discard_unclaimed(db, files, photo)
        raise ConflictError(DUPLICATE_MESSAGE)

    written = None
    if isinstance(photo, NewPhoto):
        filename = photo_filename_for(idno, firstname, lastname, photo.extension)
        files.write(filename, photo.data)
        written = filename
    elif isinstance(photo, ExistingPhoto):
        filename = photo.filename
        files.path_for(filename)
    else:
        filename = None

    student = Student(idno=idno, lastname=lastname, firstname=firstname,
                      course=course, level=level, photo=filename)
    db.add(student)
    try:
        _commit(db, "adding", idno)
    except IntegrityError:
        if written:
            files.discard(written)
        else:
            _discard_unclaimed(db, files, photo)
        log_with_context(logger, "WARNING", "Duplicate student rejected at insert",
                         context={"idno": idno})
        raise ConflictError(DUPLICATE_MESSAGE)
    except COMMIT_ERRORS:
        if written:
            files.discard(written)
        raise StoreError("Database error")

    log_with_context(logger, "INFO", "Student added: {}".format(idno),
                     context={"idno": idno}, extra_data={"photo": filename})
    return student


def update_student(db: Session, files: FileStore, idno: str, lastname: str,
                   firstname: str, course: str, level,
                   photo: PhotoInput = NO_PHOTO) -> Student:
    """
    Replace a student's fields, and optionally the photo.

    With no photo input the stored photo is kept. When the stored photo
    changes, the old file is discarded after the update commits.
    """
    student = _get(db, idno)
    if student is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)

    _require(lastname, firstname, course, level)
    level = parse_level(level)

    previous = student.photo
    written = None
    if isinstance(photo, NewPhoto):
        filename = photo_filename_for(idno, firstname, lastname, photo.extension)
        files.write(filename, photo.data)
        written = filename
    elif isinstance(photo, ExistingPhoto):
        filename = photo.filename
        files.path_for(filename)
    else:
        filename = previous

    student.lastname = lastname
    student.firstname = firstname
    student.course = course
    student.level = level
    student.photo = filename
    try:
        _commit(db, "updating", idno)
    except COMMIT_ERRORS:
        if written and written != previous:
            files.discard(written)
        raise StoreError("Database error")

    if previous and previous != filename:
        files.discard(previous)

    log_with_context(logger, "INFO", "Student updated: {}".format(idno),
                     context={"idno": idno}, extra_data={"photo": filename})
    return student


def delete_student(db: Session, files: FileStore, idno: str) -> str:
    """Delete a student row and then its photo file. Returns the idno."""
    student = _get(db, idno)
    if student is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)

    photo = student.photo
    db.delete(student)
    try:
        _commit(db, "deleting", idno)
    except COMMIT_ERRORS:
        raise StoreError("Database error")

    if photo:
        files.discard(photo)

    log_with_context(logger, "INFO", "Student deleted: {}".format(idno),
                     context={"idno": idno})
    return idno
