class AppError(Exception):
    """Base class for errors rendered into the JSON error envelope."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, *, details: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class AuthenticationRequired(AppError):
    status_code = 401
    code = "unauthorized"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotFound(AppError):
    """Row is missing or belongs to another restaurant."""

    status_code = 404
    code = "not_found"


class ValidationFailed(AppError):
    status_code = 400
    code = "bad_request"


class Conflict(AppError):
    status_code = 409
    code = "conflict"


class PersistenceFailed(AppError):
    status_code = 500
    code = "persistence_error"
