"""
Foundry VTT Error Types — Structured exception hierarchy.

Lets callers tell retryable relay failures (down, timeout, throttled)
from ones where retrying is pointless (unknown token UUID, bad API key).
"""


class FoundryError(Exception):
    """Base class for all Foundry VTT errors."""
    pass


class FoundryConnectionError(FoundryError):
    """Relay is unreachable or returned a server error (5xx). Retryable."""
    pass


class FoundryTimeoutError(FoundryError):
    """Request timed out waiting for relay/Foundry response. Retryable."""
    pass


class FoundryRateLimitError(FoundryError):
    """Relay returned 429 Too Many Requests. Retryable after backoff."""
    pass


class FoundryOfflineError(FoundryError):
    """No Foundry world is connected to the relay."""
    pass


class FoundryNotFoundError(FoundryError):
    """The token (or scene, chat message...) does not exist (404). NOT retryable."""
    pass


class FoundryAuthError(FoundryError):
    """API key rejected or client ID invalid (401/403). NOT retryable without config change."""
    pass


RETRYABLE_ERRORS = (FoundryConnectionError, FoundryTimeoutError, FoundryRateLimitError)
