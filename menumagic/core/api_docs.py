from menumagic.core.errors import (
    AppError,
    AuthenticationRequired,
    Conflict,
    NotFound,
    PersistenceFailed,
    ValidationFailed,
)
from menumagic.schemas.common import ErrorOut

# One sample message per AppError subclass; status and code come from the class.
_APP_ERROR_SAMPLES: list[tuple[type[AppError], str, str]] = [
    (ValidationFailed, "Insufficient stock", "/inventory/adjustments"),
    (AuthenticationRequired, "Authentication required", "/ingredients"),
    (NotFound, "Ingredient not found", "/ingredients/42"),
    (Conflict, "An ingredient with this name already exists", "/ingredients"),
    (PersistenceFailed, "Failed to create order", "/pos/orders"),
]

# Raised by the framework or the login limiter rather than an AppError.
_FRAMEWORK_SAMPLES: dict[int, tuple[str, str, str, list[dict] | None]] = {
    422: (
        "validation_error",
        "Validation failed",
        "/dishes",
        [{"field": "price", "message": "Input should be greater than 0", "type": "greater_than"}],
    ),
    429: ("rate_limited", "Too many failed login attempts. Try again later.", "/auth/login", None),
}


def _examples() -> dict[int, tuple[str, str, str, list[dict] | None]]:
    examples = {cls.status_code: (cls.code, message, path, None) for cls, message, path in _APP_ERROR_SAMPLES}
    examples.update(_FRAMEWORK_SAMPLES)
    return examples


_ERROR_EXAMPLES = _examples()


def error_responses(*status_codes: int) -> dict[int, dict]:
    """OpenAPI `responses=` entries documenting the error envelope for each status."""
    responses: dict[int, dict] = {}
    for status_code in status_codes:
        code, message, path, details = _ERROR_EXAMPLES.get(
            status_code, ("http_error", "HTTP error", "/", None)
        )
        responses[status_code] = {
            "model": ErrorOut,
            "description": message,
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "error": {
                            "code": code,
                            "message": message,
                            "request_id": "8d8f2b00-6c79-4a45-8ff4-b0a5f2bc4bc2",
                            "path": path,
                            "details": details,
                        },
                    }
                }
            },
        }
    return responses
