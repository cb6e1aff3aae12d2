"""
Utilities Module

Logging and error types shared by the document assistant.
"""

from .logger import (
    setup_logging,
    get_logger,
    log_tool_call,
    log_chat_response,
)

from .errors import (
    ErrorCode,
    AppError,
    InvalidRequest,
    ProcessingError,
    ConfigurationMissing,
    UpstreamServiceError,
    EmbeddingError,
    VectorStoreError,
    SlackError,
    ChannelNotFound,
    NotChannelMember,
    MissingScope,
    SlackAuthError,
    format_error_for_user,
    format_error_for_log,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "log_tool_call",
    "log_chat_response",
    # Errors
    "ErrorCode",
    "AppError",
    "InvalidRequest",
    "ProcessingError",
    "ConfigurationMissing",
    "UpstreamServiceError",
    "EmbeddingError",
    "VectorStoreError",
    "SlackError",
    "ChannelNotFound",
    "NotChannelMember",
    "MissingScope",
    "SlackAuthError",
    "format_error_for_user",
    "format_error_for_log",
]
