from datetime import datetime
from typing import Optional


class DietChatError(Exception):
    """Base error rendered to clients as ``{"error": ..., "message": ...}``."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str = "Failed to process your request. Please try again."):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class BadRequest(DietChatError):
    status_code = 400
    error = "Bad request"


class RateLimitExceeded(DietChatError):
    status_code = 429
    error = "Rate limit exceeded"

    def __init__(self, message: str, reset_at: Optional[datetime] = None, remaining: int = 0):
        super().__init__(message)
        self.reset_at = reset_at
        self.remaining = remaining

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.reset_at is not None:
            body["resetAt"] = self.reset_at.isoformat()
        return body


class BackendUnavailable(DietChatError):
    """The key-value store could not be reached or rejected a command."""


class UpstreamGenerationFailure(DietChatError):
    """The text-generation service failed before any output was produced."""
