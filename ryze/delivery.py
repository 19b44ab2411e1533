"""
Delivery pipeline.

Formats feed items as chat messages and sends a batch, oldest first, over a
single backend session.
"""

import asyncio
import logging
from collections.abc import Sequence

from ryze.errors import ChatBackendError, DeliveryError, DeliveryTimeoutError
from ryze.filters import FeedItem
from ryze.notifier import ChatBackend, ChatMessage, MessageField

logger = logging.getLogger(__name__)


def format_message(item: FeedItem) -> ChatMessage:
    """
    Build the chat message announcing a feed item.

    Parameters
    ----------
    item : FeedItem
        The item to announce.

    Returns
    -------
    ChatMessage
        Message titled with the feed name, with the item summary as body
        and inline ``Link`` and ``Title`` fields.
    """
    return ChatMessage(
        title=item.source,
        description=item.description,
        fields=(
            MessageField(name="Link", value=item.link, inline=True),
            MessageField(name="Title", value=item.title, inline=True),
        ),
    )


async def deliver(
    items: Sequence[FeedItem],
    backend: ChatBackend,
    channel: str,
    send_timeout: float | None = None,
) -> int:
    """
    Send a batch of items to a channel.

    Feeds list items newest first; the batch is reversed so the channel reads
    chronologically. Messages are sent one at a time and delivery stops at
    the first failure.

    Parameters
    ----------
    items : Sequence[FeedItem]
        Items in feed order.
    backend : ChatBackend
        Backend providing the session.
    channel : str
        Target channel identifier.
    send_timeout : float | None
        Seconds allowed for each send, None for no limit.

    Returns
    -------
    int
        Number of delivered messages.

    Raises
    ------
    SessionError
        If the backend session cannot be opened.
    DeliveryTimeoutError
        If a send does not complete in time.
    DeliveryError
        If the backend fails to send a message.
    """
    if not items:
        return 0

    batch = list(reversed(items))
    delivered = 0

    async with backend.session() as session:
        for index, item in enumerate(batch, start=1):
            message = format_message(item)
            try:
                await asyncio.wait_for(
                    session.send_message(channel, message), send_timeout
                )
            except asyncio.TimeoutError as e:
                raise DeliveryTimeoutError(
                    index, item, delivered, TimeoutError(f"send timed out after {send_timeout}s")
                ) from e
            except ChatBackendError as e:
                raise DeliveryError(index, item, delivered, e) from e

            delivered += 1
            logger.info("Delivered %d/%d: %s", index, len(batch), item.title[:50])

    return delivered
