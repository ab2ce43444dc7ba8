"""
Application error taxonomy.

Every error carries the HTTP status it maps to; the centralized handlers in
app.middleware.error_handler turn them into {success: false, message}.
"""
from typing import Optional


class AppError(Exception):
    """Base class for errors that are safe to show to the client."""
    status_code: int = 500
    default_message: str = "Internal server error."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request."


class MissingCredentialError(ValidationError):
    default_message = (
        "No Cohere API key found. Add yours in Settings → API Key or set COHERE_API_KEY."
    )


class InvalidCredentialError(ValidationError):
    default_message = "Invalid Cohere API key."


class AuthError(AppError):
    status_code = 401
    default_message = "Auth required."


class ProviderQuotaError(AppError):
    status_code = 402
    default_message = "Cohere quota exceeded. Check billing."


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden."


class QuotaExceededError(ForbiddenError):
    """Monthly plan cap reached."""

    def __init__(self, cap: int, upgrade_hint: str = "Upgrade to Pro."):
        self.cap = cap
        self.upgrade_hint = upgrade_hint
        super().__init__(f"Free plan limit ({cap}/month) reached. {upgrade_hint}")


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found."


class ConflictError(AppError):
    status_code = 409
    default_message = "Email already in use."


class RateLimitError(AppError):
    status_code = 429
    default_message = "Too many requests. Try again later."


class ProviderRateLimitError(RateLimitError):
    default_message = "Cohere rate limit hit. Wait a moment."


class UpstreamError(AppError):
    status_code = 502
    default_message = "AI generation failed. Please try again."


class EmptyGenerationError(UpstreamError):
    default_message = "Cohere returned an empty response."


class GenerationFailedError(UpstreamError):
    pass


class InternalError(AppError):
    status_code = 500
