"""Custom exception hierarchy."""

from typing import Any


class AppError(Exception):
    """Base application exception."""

    status_code: int = 500

    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the response envelope."""
        return {
            "success": False,
            "message": self.message,
        }


class Unauthenticated(AppError):
    """Missing, invalid or expired credentials, or a token whose user is gone."""

    status_code = 401

    def __init__(self, message: str = "Access token required"):
        super().__init__(message, code="UNAUTHENTICATED")


class ValidationFailed(AppError):
    """One or more field-level constraint violations."""

    status_code = 400

    def __init__(self, errors: list[dict[str, Any]], message: str = "Validation failed"):
        self.errors = errors
        super().__init__(message, code="VALIDATION_FAILED")

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["errors"] = self.errors
        return result


class NotFound(AppError):
    """Resource does not exist or is not owned by the caller."""

    status_code = 404

    def __init__(self, message: str = "Session not found"):
        super().__init__(message, code="NOT_FOUND")


class Conflict(AppError):
    """Unique constraint violation."""

    status_code = 409

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")


class ProviderFailure(AppError):
    """Text-generation provider error."""

    status_code = 502

    def __init__(self, message: str, provider: str):
        self.provider = provider
        super().__init__(message, code="PROVIDER_ERROR")


class InternalFault(AppError):
    """Unexpected server-side fault. The message is always generic."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, code="INTERNAL_ERROR")


class ConfigurationError(AppError):
    """Configuration error."""

    def __init__(self, message: str):
        super().__init__(message, code="CONFIG_ERROR")


class InvalidToken(Exception):
    """Token signature, expiry or type check failed."""
