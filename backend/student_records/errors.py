"""
Error taxonomy for the API.

Every error raised by a service carries the HTTP status it maps to. The app
registers a single handler for `RecordsError` that renders the
`{"status": "error", "message": ...}` envelope.
"""


class RecordsError(Exception):
    """Base class for all handled service errors."""
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RecordsError):
    """Missing or malformed input."""
    status_code = 400
    default_message = "All fields are required"


class UploadError(ValidationError):
    """Uploaded file rejected by type or size."""
    default_message = "Only image files are allowed!"


class AuthenticationError(RecordsError):
    status_code = 401
    default_message = "Invalid email or password"


class NotFoundError(RecordsError):
    status_code = 404
    default_message = "Not found"


class ConflictError(RecordsError):
    """Duplicate value for a unique key."""
    status_code = 409
    default_message = "Already exists"


class StoreError(RecordsError):
    """The database or file store failed underneath a request."""
    status_code = 500
    default_message = "Database error"
