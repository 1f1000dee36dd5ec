"""
Error types for chat stream sessions.

Hard failures abort a session and reach the caller with the context of the
request that produced them:
- Header validation under the strict policy
- Transport that cannot supply a readable body
- Non-success HTTP status from the chat backend

Soft parsing conditions never raise; see ``streaming.models.ParseCondition``.
"""

from __future__ import annotations


class ChatStreamError(Exception):
    """Base stream error with request context."""

    def __init__(
        self,
        message: str,
        request_id: str | None = None,
        endpoint: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.request_id = request_id
        self.endpoint = endpoint
        self.status_code = status_code


class InvalidStreamFormat(ChatStreamError):
    """Response is not an event stream and strict header checking is on."""

    def __init__(
        self,
        message: str,
        content_type: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.content_type = content_type


class StreamUnavailable(ChatStreamError):
    """Transport did not provide a readable stream."""
    pass


class StreamRequestError(ChatStreamError):
    """Chat backend answered with a non-success status."""
    pass
