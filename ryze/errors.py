"""
Error taxonomy for Ryze.

Every error raised by the relay derives from RyzeError. Each kind carries the
process exit code used by the one-shot CLI path.
"""

from typing import Any

EXIT_CONFIG = 2
EXIT_FETCH = 3
EXIT_INSUFFICIENT_ITEMS = 4
EXIT_SESSION = 5
EXIT_DELIVERY = 6


class RyzeError(Exception):
    """Base exception for Ryze."""

    exit_code = 1

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(RyzeError):
    """Required configuration is missing or invalid."""

    exit_code = EXIT_CONFIG


class FetchError(RyzeError):
    """The feed could not be fetched or parsed."""

    exit_code = EXIT_FETCH

    def __init__(self, url: str, error: str, details: dict[str, Any] | None = None):
        super().__init__(f"Failed to fetch feed '{url}': {error}", details)
        self.url = url
        self.error = error


class FetchTimeoutError(FetchError):
    """The feed request did not complete in time."""

    def __init__(self, url: str, timeout: float):
        super().__init__(url, f"timed out after {timeout:g}s", {"timeout": timeout})
        self.timeout = timeout


class InsufficientItemsError(FetchError):
    """The feed holds fewer items than requested."""

    exit_code = EXIT_INSUFFICIENT_ITEMS

    def __init__(self, url: str, requested: int, available: int):
        super().__init__(
            url,
            f"requested {requested} item(s) but the feed only has {available}",
            {"requested": requested, "available": available},
        )
        self.requested = requested
        self.available = available


class SessionError(RyzeError):
    """A chat backend session could not be established."""

    exit_code = EXIT_SESSION

    def __init__(self, backend: str, error: str):
        super().__init__(f"Unable to open {backend} session: {error}", {"backend": backend})
        self.backend = backend
        self.error = error


class ChatBackendError(RyzeError):
    """A chat backend rejected or failed to send a single message."""

    exit_code = EXIT_DELIVERY


class DeliveryError(RyzeError):
    """
    Delivery of a batch stopped on a failing message.

    Attributes
    ----------
    index : int
        1-based position of the failing item in delivery order.
    item : Any
        The item that could not be delivered.
    delivered : int
        Number of messages sent before the failure.
    cause : BaseException | None
        Error reported by the chat backend.
    """

    exit_code = EXIT_DELIVERY

    def __init__(
        self,
        index: int,
        item: Any,
        delivered: int,
        cause: BaseException | None = None,
    ):
        title = getattr(item, "title", "")
        super().__init__(
            f"Failed to deliver item {index} ('{title}'): {cause}",
            {"index": index, "delivered": delivered},
        )
        self.index = index
        self.item = item
        self.delivered = delivered
        self.cause = cause


class DeliveryTimeoutError(DeliveryError):
    """A single send did not complete in time."""
