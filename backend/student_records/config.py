"""
Runtime configuration for the student records service.

Values come from environment variables with sensible local defaults, so the
service runs out of the box against a SQLite file and an `uploads/` directory
next to the working directory.
"""

import os
from pathlib import Path

from pydantic import BaseModel

DEFAULT_DATABASE_URL = "sqlite:///./users_db.db"
DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_PORT = 3300
DEFAULT_ALLOWED_ORIGIN = "http://localhost:3000"
MAX_UPLOAD_BYTES = 5 * 1024 * 1024  # 5 MiB


class Settings(BaseModel):
    """Settings consumed by the app factory."""
    database_url: str = DEFAULT_DATABASE_URL
    upload_dir: Path = Path(DEFAULT_UPLOAD_DIR)
    port: int = DEFAULT_PORT
    allowed_origin: str = DEFAULT_ALLOWED_ORIGIN
    log_level: str = "INFO"
    max_upload_bytes: int = MAX_UPLOAD_BYTES

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            upload_dir=Path(os.getenv("UPLOAD_DIR", DEFAULT_UPLOAD_DIR)),
            port=int(os.getenv("PORT", str(DEFAULT_PORT))),
            allowed_origin=os.getenv("ALLOWED_ORIGIN", DEFAULT_ALLOWED_ORIGIN),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
