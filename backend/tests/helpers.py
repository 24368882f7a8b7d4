JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64 + b"\xff\xd9"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def student_form(**overrides):
    data = {
        "idno": "2021001",
        "lastname": "Cruz",
        "firstname": "Ana",
        "course": "BSIT",
        "level": "1",
    }
    data.update(overrides)
    return data
