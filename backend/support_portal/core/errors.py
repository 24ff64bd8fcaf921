from __future__ import annotations

from typing import Any


class PortalError(Exception):
    """Base error carrying the code and status used in the API error envelope."""

    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "Unexpected error."

    def __init__(self, message: str | None = None, *, details: list[dict[str, Any]] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details or []
        super().__init__(self.message)

    def to_envelope(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": list(self.details),
            }
        }


class ValidationError(PortalError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Request validation failed."

    @property
    def field_errors(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        for detail in self.details:
            field = str(detail.get("field", ""))
            if field and field not in errors:
                errors[field] = str(detail.get("message", ""))
        return errors

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details=[{"field": field, "message": message}])


class Unauthenticated(PortalError):
    code = "AUTH_REQUIRED"
    status_code = 401
    default_message = "Sign in with your mobile number to continue."


class BackendUnavailable(PortalError):
    code = "BACKEND_UNAVAILABLE"
    status_code = 503
    default_message = "The service is temporarily unavailable. Please try again."


class FileTooLarge(PortalError):
    code = "FILE_TOO_LARGE"
    status_code = 413
    default_message = "Please select a file smaller than 10MB."


class UploadError(PortalError):
    code = "UPLOAD_FAILED"
    status_code = 502
    default_message = "File upload failed."


class DuplicatePhone(PortalError):
    code = "DUPLICATE_PHONE"
    status_code = 409
    default_message = "This mobile number is already registered to another account."


class IdentityCreationError(PortalError):
    code = "IDENTITY_CREATION_FAILED"
    status_code = 502
    default_message = "Login failed. Please try again."


class NotFound(PortalError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found."


class InvalidTransition(PortalError):
    code = "INVALID_TRANSITION"
    status_code = 409
    default_message = "That action is not available right now."


class SubmissionInProgress(PortalError):
    code = "SUBMISSION_IN_PROGRESS"
    status_code = 409
    default_message = "A submission is already in progress."
