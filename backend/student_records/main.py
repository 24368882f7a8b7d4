"""
Student Records API - FastAPI application factory.

`create_app` wires together:
1. Structured JSON logging
2. The Database and FileStore service objects (kept on `app.state`)
3. CORS for the dashboard origin
4. Request ID middleware (X-Request-ID header) with a 500 fallback
5. Error envelope handlers
6. Route handlers, the /uploads static mount and the health check

Run locally with `python -m student_records.main`.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from student_records.config import Settings
from student_records.database import Database
from student_records.errors import RecordsError
from student_records.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from student_records.routes import auth, students, uploads
from student_records.services.file_store import FileStore

logger = get_logger("http")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code,
                        content={"status": "error", "message": message})


def create_app(settings: Settings = None) -> FastAPI:
    """Build a fully wired application for the given settings."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    database = Database(settings.database_url)
    file_store = FileStore(settings.upload_dir)

    if database.is_sqlite:
        log_with_context(get_logger("db"), "INFO", "Using SQLite, creating tables directly")
        database.create_tables()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        database.dispose()

    app = FastAPI(
        title="Student Records API",
        description="Users, student records and student photo uploads.",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database
    app.state.file_store = file_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.allowed_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"]
    )

    # ── Request ID middleware ─────────────────────────────────
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Tag the request with a UUID, log start/finish, catch anything unhandled."""
        req_id = generate_request_id()
        request_id_var.set(req_id)
        start_time = time.time()

        log_with_context(logger, "INFO",
            f"Request started: {request.method} {request.url.path}",
            extra_data={
                "ip": request.client.host if request.client else "unknown",
                "query_params": dict(request.query_params)
            })

        try:
            response = await call_next(request)
        except Exception as e:
            log_with_context(logger, "ERROR",
                f"Unhandled error: {request.method} {request.url.path}: {e}",
                exc_info=True)
            response = error_response(500, "An unexpected error occurred")

        duration_ms = (time.time() - start_time) * 1000
        response.headers["X-Request-ID"] = req_id

        log_with_context(logger, "INFO",
            f"Request completed: {request.method} {request.url.path} → {response.status_code}",
            extra_data={
                "duration_ms": round(duration_ms, 2),
                "status_code": response.status_code
            })
        return response

    # ── Error envelopes ───────────────────────────────────────
    @app.exception_handler(RecordsError)
    async def records_error_handler(request: Request, exc: RecordsError):
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(400, "Invalid request")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    # ── Routes ────────────────────────────────────────────────
    app.include_router(auth.router, tags=["Auth"])
    app.include_router(students.router, tags=["Students"])
    app.include_router(uploads.router, tags=["Uploads"])
    app.mount("/uploads", StaticFiles(directory=str(file_store.directory)), name="uploads")

    @app.get("/health", tags=["Health"])
    def health_check():
        return {"status": "up", "message": "Server is running"}

    @app.get("/", tags=["Root"])
    def root():
        """API index."""
        return {
            "service": "Student Records API",
            "version": "1.0.0",
            "docs": "/docs",
            "endpoints": {
                "register": "POST /register",
                "login": "POST /login",
                "users": "GET /users",
                "students_list": "GET /students",
                "student_detail": "GET /students/{idno}",
                "student_create": "POST /students",
                "student_update": "PUT /students/{idno}",
                "student_delete": "DELETE /students/{idno}",
                "upload": "POST /upload",
                "photos": "GET /uploads/{filename}",
                "health": "GET /health"
            }
        }

    return app


if __name__ == "__main__":
    import uvicorn

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    log_with_context(logger, "INFO", f"Server is running on port: {settings.port}")
    uvicorn.run("student_records.main:create_app", factory=True, host="0.0.0.0", port=settings.port)
