import pathlib

import pytest

from student_records.errors import ConflictError, StoreError, ValidationError
from student_records.services import students
from student_records.services.file_store import NewPhoto

from tests.helpers import JPEG_BYTES, PNG_BYTES, student_form


def add_student(client, photo=None, **overrides):
    files = {"photo": photo} if photo else None
    return client.post("/students", data=student_form(**overrides), files=files)


# ── Create / read ────────────────────────────────────────────

def test_create_update_delete_walkthrough(client):
    created = add_student(client)
    assert created.status_code == 201
    assert created.json()["message"] == "Student added successfully"

    listed = client.get("/students").json()
    assert len(listed) == 1
    assert listed[0]["idno"] == "2021001"
    assert listed[0]["photo"] is None
    assert "photoUrl" not in listed[0]

    updated = client.put("/students/2021001", data={
        "lastname": "Cruz", "firstname": "Ana", "course": "BSIT", "level": "2"
    })
    assert updated.status_code == 200
    assert updated.json()["student"]["level"] == 2

    fetched = client.get("/students/2021001")
    assert fetched.status_code == 200
    assert fetched.json()["status"] == "success"
    assert fetched.json()["student"]["level"] == 2

    deleted = client.delete("/students/2021001")
    assert deleted.status_code == 200
    assert deleted.json() == {
        "status": "success",
        "message": "Student deleted successfully",
        "idno": "2021001",
    }
    assert client.get("/students/2021001").status_code == 404


def test_list_is_sorted_by_lastname_and_contains_each_idno_once(client):
    add_student(client, idno="3", lastname="Reyes")
    add_student(client, idno="1", lastname="Abad")
    add_student(client, idno="2", lastname="Mendoza")

    listed = client.get("/students").json()

    assert [s["lastname"] for s in listed] == ["Abad", "Mendoza", "Reyes"]
    assert sorted(s["idno"] for s in listed) == ["1", "2", "3"]


def test_create_rejects_level_too_large_to_store(client, upload_dir):
    response = add_student(client, level="99999999999999999999",
                           photo=("ana.jpg", JPEG_BYTES, "image/jpeg"))

    assert response.status_code == 400
    assert response.json()["status"] == "error"
    assert client.get("/students").json() == []
    assert list(upload_dir.iterdir()) == []


@pytest.mark.parametrize("level,expected", [(" 3 ", 3), (str(2 ** 63 - 1), 2 ** 63 - 1)])
def test_parse_level_accepts_integers_in_column_range(level, expected):
    assert students.parse_level(level) == expected


@pytest.mark.parametrize("level", [str(2 ** 63), str(-2 ** 63 - 1), "1.5"])
def test_parse_level_rejects_unstorable_values(level):
    with pytest.raises(ValidationError):
        students.parse_level(level)


@pytest.mark.parametrize("missing", ["idno", "lastname", "firstname", "course", "level"])
def test_create_requires_every_field(client, missing):
    form = student_form()
    del form[missing]

    response = client.post("/students", data=form)

    assert response.status_code == 400
    assert response.json() == {"status": "error", "message": "All fields are required"}


def test_create_rejects_non_numeric_level(client):
    response = add_student(client, level="first")

    assert response.status_code == 400
    assert client.get("/students").json() == []


def test_create_with_inline_photo_uses_deterministic_name(client, upload_dir):
    response = add_student(client, firstname="Ana Maria", lastname="Dela Cruz",
                           photo=("selfie.jpg", JPEG_BYTES, "image/jpeg"))

    assert response.status_code == 201
    student = response.json()["student"]
    assert student["photo"] == "2021001_Ana_Maria_Dela_Cruz.jpg"
    assert student["photoUrl"] == "/uploads/2021001_Ana_Maria_Dela_Cruz.jpg"
    assert (upload_dir / "2021001_Ana_Maria_Dela_Cruz.jpg").read_bytes() == JPEG_BYTES

    served = client.get(student["photoUrl"])
    assert served.status_code == 200
    assert served.content == JPEG_BYTES


def test_create_with_previously_uploaded_filename(client):
    filename = client.post(
        "/upload", files={"photo": ("me.png", PNG_BYTES, "image/png")}
    ).json()["filename"]

    response = client.post("/students", data=student_form(photo=filename))

    assert response.status_code == 201
    assert response.json()["student"]["photo"] == filename
    assert client.get("/students/2021001").json()["student"]["photoUrl"] == "/uploads/" + filename


def test_create_rejects_photo_with_bad_extension(client, upload_dir):
    response = add_student(client, photo=("notes.txt", b"hello", "text/plain"))

    assert response.status_code == 400
    assert client.get("/students").json() == []
    assert list(upload_dir.iterdir()) == []


def test_create_rejects_path_in_photo_reference(client):
    response = client.post("/students", data=student_form(photo="../records.db"))

    assert response.status_code == 400


def test_get_missing_student_is_404(client):
    response = client.get("/students/nope")

    assert response.status_code == 404
    assert response.json() == {"status": "error", "message": "Student not found"}


# ── Duplicates ───────────────────────────────────────────────

def test_duplicate_idno_conflicts_and_leaves_no_uploaded_file(client, upload_dir):
    add_student(client)

    response = add_student(client, firstname="Ben", lastname="Lim",
                           photo=("ben.jpg", JPEG_BYTES, "image/jpeg"))

    assert response.status_code == 409
    assert response.json()["message"] == "Student with this ID already exists"
    assert not (upload_dir / "2021001_Ben_Lim.jpg").exists()


def overflowing_commit():
    raise OverflowError("Python int too large to convert to SQLite INTEGER")


def test_failed_insert_leaves_no_photo_behind(client, db, files, upload_dir, monkeypatch):
    monkeypatch.setattr(db, "commit", overflowing_commit)

    with pytest.raises(StoreError):
        students.create_student(
            db, files, "2021001", "Cruz", "Ana", "BSIT", "1",
            photo=NewPhoto(JPEG_BYTES, "ana.jpg"),
        )

    assert list(upload_dir.iterdir()) == []
    assert len(client.get("/students").json()) == 1


def test_duplicate_idno_discards_unclaimed_referenced_upload(client, upload_dir):
    add_student(client)
    filename = client.post(
        "/upload", files={"photo": ("ben.png", PNG_BYTES, "image/png")}
    ).json()["filename"]

    response = client.post("/students", data=student_form(photo=filename))

    assert response.status_code == 409
    assert not (upload_dir / filename).exists()


def test_duplicate_idno_keeps_existing_students_photo(client, upload_dir):
    first = add_student(client, photo=("ana.jpg", JPEG_BYTES, "image/jpeg")).json()["student"]

    response = client.post("/students", data=student_form(photo=first["photo"]))

    assert response.status_code == 409
    assert (upload_dir / first["photo"]).exists()


def test_unique_violation_at_insert_is_a_conflict(client, db, files, upload_dir, monkeypatch):
    add_student(client)
    # Simulate a concurrent create that slipped past the pre-check
    monkeypatch.setattr(db, "get", lambda *args, **kwargs: None)

    with pytest.raises(ConflictError):
        students.create_student(
            db, files, "2021001", "Lim", "Ben", "BSCS", "2",
            photo=NewPhoto(JPEG_BYTES, "ben.jpg"),
        )

    assert not (upload_dir / "2021001_Ben_Lim.jpg").exists()


# ── Update ───────────────────────────────────────────────────

def test_update_replaces_photo_and_removes_old_file(client, upload_dir):
    old = add_student(client, photo=("ana.png", PNG_BYTES, "image/png")).json()["student"]["photo"]
    assert (upload_dir / old).exists()

    response = client.put(
        "/students/2021001",
        data={"lastname": "Cruz", "firstname": "Ana", "course": "BSIT", "level": "1"},
        files={"photo": ("new.jpg", JPEG_BYTES, "image/jpeg")},
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Student updated successfully"
    new = response.json()["student"]["photo"]
    assert new == "2021001_Ana_Cruz.jpg"
    assert not (upload_dir / old).exists()
    assert (upload_dir / new).read_bytes() == JPEG_BYTES
    assert client.get("/students/2021001").json()["student"]["photoUrl"] == "/uploads/" + new


def test_update_with_same_photo_name_overwrites_in_place(client, upload_dir):
    add_student(client, photo=("ana.jpg", b"old-bytes", "image/jpeg"))

    response = client.put(
        "/students/2021001",
        data={"lastname": "Cruz", "firstname": "Ana", "course": "BSIT", "level": "1"},
        files={"photo": ("ana2.jpg", JPEG_BYTES, "image/jpeg")},
    )

    assert response.status_code == 200
    assert (upload_dir / "2021001_Ana_Cruz.jpg").read_bytes() == JPEG_BYTES


def test_update_without_photo_keeps_current_photo(client, upload_dir):
    photo = add_student(client, photo=("ana.jpg", JPEG_BYTES, "image/jpeg")).json()["student"]["photo"]

    response = client.put("/students/2021001", data={
        "lastname": "Cruz", "firstname": "Ana", "course": "BSCS", "level": "3"
    })

    assert response.status_code == 200
    student = response.json()["student"]
    assert student["photo"] == photo
    assert student["course"] == "BSCS"
    assert (upload_dir / photo).exists()


def test_update_with_uploaded_filename_replaces_photo(client, upload_dir):
    old = add_student(client, photo=("ana.jpg", JPEG_BYTES, "image/jpeg")).json()["student"]["photo"]
    filename = client.post(
        "/upload", files={"photo": ("fresh.png", PNG_BYTES, "image/png")}
    ).json()["filename"]

    response = client.put("/students/2021001", data={
        "lastname": "Cruz", "firstname": "Ana", "course": "BSIT", "level": "1", "photo": filename
    })

    assert response.json()["student"]["photo"] == filename
    assert not (upload_dir / old).exists()
    assert (upload_dir / filename).exists()


def test_update_survives_failure_to_delete_old_photo(client, upload_dir, monkeypatch):
    old = add_student(client, photo=("ana.png", PNG_BYTES, "image/png")).json()["student"]["photo"]

    def refuse(self, *args, **kwargs):
        raise PermissionError("read-only")

    monkeypatch.setattr(pathlib.Path, "unlink", refuse)
    response = client.put(
        "/students/2021001",
        data={"lastname": "Cruz", "firstname": "Ana", "course": "BSIT", "level": "1"},
        files={"photo": ("new.jpg", JPEG_BYTES, "image/jpeg")},
    )

    assert response.status_code == 200
    assert response.json()["student"]["photo"] == "2021001_Ana_Cruz.jpg"
    assert (upload_dir / old).exists()


def test_update_missing_student_is_404(client):
    response = client.put("/students/404", data={
        "lastname": "Cruz", "firstname": "Ana", "course": "BSIT", "level": "1"
    })

    assert response.status_code == 404


def test_update_missing_student_with_rejected_photo_is_404(client, upload_dir):
    response = client.put(
        "/students/missing",
        data={"lastname": "Cruz", "firstname": "Ana", "course": "BSIT", "level": "1"},
        files={"photo": ("a.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Student not found"
    assert list(upload_dir.iterdir()) == []


def test_update_rejects_level_too_large_to_store(client, upload_dir):
    old = add_student(client, photo=("ana.png", PNG_BYTES, "image/png")).json()["student"]["photo"]

    response = client.put(
        "/students/2021001",
        data={"lastname": "Cruz", "firstname": "Ana", "course": "BSIT",
              "level": "99999999999999999999"},
        files={"photo": ("new.jpg", JPEG_BYTES, "image/jpeg")},
    )

    assert response.status_code == 400
    assert [p.name for p in upload_dir.iterdir()] == [old]
    assert client.get("/students/2021001").json()["student"]["level"] == 1


def test_failed_update_discards_new_photo_and_keeps_old(db, files, upload_dir, monkeypatch):
    students.create_student(db, files, "2021001", "Cruz", "Ana", "BSIT", "1",
                            photo=NewPhoto(PNG_BYTES, "ana.png"))
    monkeypatch.setattr(db, "commit", overflowing_commit)

    with pytest.raises(StoreError):
        students.update_student(
            db, files, "2021001", "Cruz", "Ana", "BSIT", "2",
            photo=NewPhoto(JPEG_BYTES, "new.jpg"),
        )

    assert [p.name for p in upload_dir.iterdir()] == ["2021001_Ana_Cruz.png"]


@pytest.mark.parametrize("missing", ["lastname", "firstname", "course", "level"])
def test_update_requires_every_field(client, missing):
    add_student(client)
    form = {"lastname": "Cruz", "firstname": "Ana", "course": "BSIT", "level": "2"}
    form[missing] = ""

    response = client.put("/students/2021001", data=form)

    assert response.status_code == 400
    assert client.get("/students/2021001").json()["student"]["level"] == 1


# ── Delete ───────────────────────────────────────────────────

def test_delete_removes_row_and_photo(client, upload_dir):
    photo = add_student(client, photo=("ana.jpg", JPEG_BYTES, "image/jpeg")).json()["student"]["photo"]

    response = client.delete("/students/2021001")

    assert response.status_code == 200
    assert not (upload_dir / photo).exists()
    assert client.get("/students").json() == []


def test_delete_without_photo(client, upload_dir):
    add_student(client)

    response = client.delete("/students/2021001")

    assert response.status_code == 200
    assert client.get("/students").json() == []


def test_delete_survives_missing_photo_file(client, upload_dir):
    photo = add_student(client, photo=("ana.jpg", JPEG_BYTES, "image/jpeg")).json()["student"]["photo"]
    (upload_dir / photo).unlink()

    response = client.delete("/students/2021001")

    assert response.status_code == 200


def test_delete_survives_failure_to_delete_photo(client, upload_dir, monkeypatch):
    photo = add_student(client, photo=("ana.jpg", JPEG_BYTES, "image/jpeg")).json()["student"]["photo"]

    def refuse(self, *args, **kwargs):
        raise PermissionError("read-only")

    monkeypatch.setattr(pathlib.Path, "unlink", refuse)
    response = client.delete("/students/2021001")

    assert response.status_code == 200
    assert response.json()["idno"] == "2021001"
    assert client.get("/students/2021001").status_code == 404
    assert (upload_dir / photo).exists()


def test_delete_missing_student_is_404(client):
    response = client.delete("/students/404")

    assert response.status_code == 404
    assert response.json()["message"] == "Student not found"
