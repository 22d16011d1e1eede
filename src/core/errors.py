"""Error taxonomy shared by the chat adapters and the state protocol."""

from __future__ import annotations

from typing import Optional


class ChatError(RuntimeError):
    """Base error for chat operations.

    ``operation`` and ``target`` describe what was attempted so log lines are
    useful without including request bodies or credentials.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        target: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.target = target

    def __str__(self) -> str:
        if self.operation and self.target:
            return f"{self.operation} {self.target}: {self.message}"
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class TransportError(ChatError):
    """Network or HTTP-level failure."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        target: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, operation=operation, target=target)
        self.status_code = status_code


class ParseError(ChatError):
    """Response body could not be read as the expected document."""


class AuthError(ChatError):
    """The service rejected the request's credentials or token."""


class NotConnectedError(AuthError):
    """An authenticated operation was attempted before login completed."""

    def __init__(self, operation: Optional[str] = None) -> None:
        super().__init__("chat session is not authenticated yet", operation=operation)


class LoginError(ChatError):
    """Terminal failure of the login sequence."""

    MISSING_CSRF = "missing csrf token"
    ACCOUNT_INACTIVE = "account inactive"
    MISSING_USER_ID = "missing user id"
    MISSING_FKEY = "missing fkey"

    def __init__(self, reason: str) -> None:
        super().__init__(reason, operation="login")
        self.reason = reason


class DecodeError(ChatError):
    """A state token was malformed or carried an unknown prefix."""
