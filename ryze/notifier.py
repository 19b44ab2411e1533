"""
Protocol definition for chat backends.

Defines the structured message exchanged with backends and the interface
every backend must implement.
"""

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class MessageField:
    """A named field of a structured message."""

    name: str
    value: str
    inline: bool = True


@dataclass(frozen=True)
class ChatMessage:
    """
    Backend-neutral structured message (embed-style).

    Attributes
    ----------
    title : str
        Top-level title.
    description : str
        Top-level body.
    fields : tuple[MessageField, ...]
        Fields in display order.
    """

    title: str
    description: str
    fields: tuple[MessageField, ...] = ()


@runtime_checkable
class ChatSession(Protocol):
    """An open connection to a chat backend."""

    async def send_message(self, channel: str, message: ChatMessage) -> None:
        """
        Send one message to a channel.

        Parameters
        ----------
        channel : str
            Backend-specific channel identifier.
        message : ChatMessage
            The message to send.

        Raises
        ------
        ChatBackendError
            If the backend rejected or failed to send the message.
        """
        ...


@runtime_checkable
class ChatBackend(Protocol):
    """
    Protocol defining the interface for chat backends.

    A backend hands out sessions as async context managers: the session is
    established on entry and released on exit, whatever happened in between.
    """

    name: str

    def session(self) -> AbstractAsyncContextManager[ChatSession]:
        """
        Open a session.

        Raises
        ------
        SessionError
            If the session cannot be established.
        """
        ...
