"""
errors.py — AppError base class and error code registry.

Every error returned by the CryptoDash API uses a code defined here.
Do not raise strings or generic exceptions from service or route code.

Rules:
  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - Never conflate 401 (unauthenticated) with 403 (unauthorized).
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            details: list | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.details     = details  # field-level problems, e.g. [{"field": ..., "message": ...}]

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.details is not None:
            payload["details"] = self.details
        return {"success": False, "error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
#
# IMPORTANT: these are the string values sent in the API response.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    VALIDATION_ERROR           = "VALIDATION_ERROR"
    INVALID_JSON               = "INVALID_JSON"

    # ── Conflict Errors (400) ──────────────────────────────────────────────
    # The web client treats duplicate registration as a form error, so this
    # is reported with 400 rather than 409.
    DUPLICATE_EMAIL            = "DUPLICATE_EMAIL"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    NOT_FOUND                  = "NOT_FOUND"
    PREFERENCES_NOT_FOUND      = "PREFERENCES_NOT_FOUND"

    METHOD_NOT_ALLOWED         = "METHOD_NOT_ALLOWED"     # 405

    # ── Auth Errors (401) ──────────────────────────────────────────────────
    # Expired and malformed access tokens share TOKEN_INVALID.
    # Every refresh failure except a missing cookie shares REFRESH_TOKEN_INVALID.
    INVALID_CREDENTIALS        = "INVALID_CREDENTIALS"
    TOKEN_MISSING              = "TOKEN_MISSING"
    TOKEN_INVALID              = "TOKEN_INVALID"
    REFRESH_TOKEN_MISSING      = "REFRESH_TOKEN_MISSING"
    REFRESH_TOKEN_INVALID      = "REFRESH_TOKEN_INVALID"

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"


def validation_error(details: list[dict]) -> AppError:
    """Builds the 400 envelope for field-level validation failures."""
    return AppError(
        ErrorCode.VALIDATION_ERROR,
        "Validation error",
        400,
        details=details,
    )


def unauthenticated(code: str, message: str) -> AppError:
    return AppError(code, message, 401)
