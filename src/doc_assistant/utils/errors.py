"""
Error Handling Utilities

Structured errors for the document assistant. Every error carries a closed
ErrorCode, the HTTP status it maps to, and a user-facing message. Callers
branch on `code`, never on message text.
"""

from enum import Enum
from typing import Optional
import traceback


class ErrorCode(str, Enum):
    """Closed set of error codes surfaced to clients."""

    INVALID_REQUEST = "invalid_request"
    PROCESSING_ERROR = "processing_error"
    UPSTREAM_ERROR = "upstream_error"
    CHANNEL_NOT_FOUND = "channel_not_found"
    NOT_CHANNEL_MEMBER = "not_channel_member"
    MISSING_SCOPE = "missing_scope"
    AUTH_ERROR = "auth_error"
    CONFIGURATION_MISSING = "configuration_missing"


class AppError(Exception):
    """Base exception for application errors."""

    code: ErrorCode = ErrorCode.PROCESSING_ERROR
    status_code: int = 500

    def __init__(self, message: str, user_message: Optional[str] = None):
        """
        Initialize application error.

        Args:
            message: Technical error message for logging
            user_message: User-friendly message to display
        """
        super().__init__(message)
        self.user_message = user_message or "Sorry, something went wrong. Please try again."


class InvalidRequest(AppError):
    """Bad or missing input fields."""

    code = ErrorCode.INVALID_REQUEST
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, message)


class ProcessingError(AppError):
    """A chat turn could not be completed."""

    code = ErrorCode.PROCESSING_ERROR
    status_code = 500

    def __init__(self, message: str):
        super().__init__(
            f"Processing failed: {message}",
            f"Failed to process the request: {message}",
        )


class ConfigurationMissing(AppError):
    """A required environment variable is not set."""

    code = ErrorCode.CONFIGURATION_MISSING
    status_code = 500

    def __init__(self, variable: str, detail: Optional[str] = None):
        self.variable = variable
        message = f"Missing {variable} environment variable"
        if detail:
            message += f" ({detail})"
        super().__init__(message, f"{message}. Please contact the administrator.")


class UpstreamServiceError(AppError):
    """A hosted service (OpenAI, Chroma, Slack) failed."""

    code = ErrorCode.UPSTREAM_ERROR
    status_code = 500

    def __init__(self, service: str, operation: str, message: str, user_message: Optional[str] = None):
        self.service = service
        self.operation = operation
        super().__init__(
            f"{service} {operation} failed: {message}",
            user_message or f"{service} {operation} failed: {message}",
        )


class EmbeddingError(UpstreamServiceError):
    """Embedding API error."""

    def __init__(self, message: str):
        super().__init__("OpenAI", "embedding", message)


class VectorStoreError(UpstreamServiceError):
    """Vector store operation error."""

    def __init__(self, operation: str, message: str):
        super().__init__("Vector store", operation, message)


class SlackError(UpstreamServiceError):
    """Slack API error that has no more specific classification."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            "Slack",
            operation,
            message,
            f"The Slack request failed ({message}). Please try again.",
        )


class ChannelNotFound(AppError):
    """No channel with the requested name is visible to the bot."""

    code = ErrorCode.CHANNEL_NOT_FOUND
    status_code = 404

    def __init__(self, channel_name: str):
        self.channel_name = channel_name
        super().__init__(
            f"Channel #{channel_name} not found",
            f"Channel #{channel_name} was not found. Please check that the channel exists.",
        )


class NotChannelMember(AppError):
    """The bot token cannot read the channel."""

    code = ErrorCode.NOT_CHANNEL_MEMBER
    status_code = 403

    def __init__(self, channel_name: str):
        self.channel_name = channel_name
        super().__init__(
            f"Bot is not a member of #{channel_name}",
            f"The bot is not a member of #{channel_name}. Please invite the bot to the "
            f"channel by typing \"/invite @YourBotName\" in the channel.",
        )


class MissingScope(AppError):
    """The Slack API reported insufficient permissions."""

    code = ErrorCode.MISSING_SCOPE
    status_code = 403

    def __init__(self, needed: Optional[str] = None):
        self.needed = needed
        message = "Missing Slack permission"
        if needed:
            message += f": {needed}"
        super().__init__(
            message,
            "Missing required Slack permissions. The bot needs channels:read, "
            "channels:history, and users:read scopes.",
        )


class SlackAuthError(AppError):
    """The Slack token is invalid, revoked or inactive."""

    code = ErrorCode.AUTH_ERROR
    status_code = 401

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            f"Slack authentication failed: {reason}",
            "Authentication error. Please check the Slack token configuration.",
        )


def format_error_for_user(error: Exception) -> str:
    """
    Format an error for display to the user.

    Args:
        error: The exception

    Returns:
        User-friendly error message
    """
    if isinstance(error, AppError):
        return error.user_message

    return "Sorry, I encountered an unexpected error. Please try again."


def format_error_for_log(error: Exception) -> str:
    """
    Format an error for logging.

    Args:
        error: The exception

    Returns:
        Detailed error message with traceback
    """
    error_type = type(error).__name__
    error_msg = str(error)
    tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))

    return f"{error_type}: {error_msg}\n{tb}"
