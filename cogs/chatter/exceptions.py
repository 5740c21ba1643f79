"""
Exceptions for the Chatter Module
=================================

All errors raised by the chatter cog derive from ``ChatException`` so that
command handlers can report them with a single ``except`` clause.
"""

from typing import Optional


class ChatException(Exception):
    """Base exception for the chatter module."""

    def __init__(self, message: str = "An error occurred in the chat system"):
        self.message = message
        super().__init__(message)


class ProviderException(ChatException):
    """An LLM provider request failed (network, status or payload)."""

    def __init__(
        self,
        provider_name: str,
        message: str,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None
    ):
        self.provider_name = provider_name
        self.original_error = original_error
        self.status_code = status_code
        if status_code is not None:
            text = f"{provider_name} API error (status {status_code}): {message}"
        else:
            text = f"{provider_name} API error: {message}"
        super().__init__(text)


class TimeoutException(ProviderException):
    """An LLM provider request exceeded its timeout."""

    def __init__(self, provider_name: str, timeout: float):
        self.timeout = timeout
        super().__init__(provider_name, f"request timed out after {timeout:.0f}s")


class AuthenticationException(ProviderException):
    """The provider rejected our credentials."""

    def __init__(self, provider_name: str, status_code: int = 401):
        super().__init__(provider_name, "authentication failed", status_code=status_code)


class ConfigurationException(ChatException):
    """A required setting is missing or invalid."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"config error for {field}: {message}")
