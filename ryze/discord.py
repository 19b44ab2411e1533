"""
Discord chat backend.

Sends ChatMessages as embeds to a Discord text channel using a bot account.
Only the REST API is used: a session is a logged-in client, no gateway
connection is opened.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiohttp
import discord

from ryze.config import DiscordConfig
from ryze.errors import ChatBackendError, SessionError
from ryze.notifier import ChatMessage

logger = logging.getLogger(__name__)

# Embed limits enforced by the Discord API
MAX_TITLE_LENGTH = 256
MAX_DESCRIPTION_LENGTH = 4096
MAX_FIELD_NAME_LENGTH = 256
MAX_FIELD_VALUE_LENGTH = 1024


def _clip(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def build_embed(message: ChatMessage) -> discord.Embed:
    """
    Convert a ChatMessage to a Discord embed.

    Parameters
    ----------
    message : ChatMessage
        The message to convert.

    Returns
    -------
    discord.Embed
        Embed with the message title, description and fields in order.
    """
    embed = discord.Embed(
        title=_clip(message.title, MAX_TITLE_LENGTH) or None,
        description=_clip(message.description, MAX_DESCRIPTION_LENGTH) or None,
    )
    for field in message.fields:
        embed.add_field(
            name=_clip(field.name, MAX_FIELD_NAME_LENGTH),
            # Discord rejects empty field values
            value=_clip(field.value, MAX_FIELD_VALUE_LENGTH) or "-",
            inline=field.inline,
        )
    return embed


class DiscordSession:
    """A logged-in Discord client able to post to channels."""

    def __init__(self, client: discord.Client):
        self._client = client

    async def send_message(self, channel: str, message: ChatMessage) -> None:
        """
        Post a message as an embed.

        Parameters
        ----------
        channel : str
            Numeric channel ID.
        message : ChatMessage
            The message to send.

        Raises
        ------
        ChatBackendError
            If Discord rejected the message or the request failed.
        """
        target = self._client.get_partial_messageable(int(channel))
        try:
            await target.send(embed=build_embed(message))
        except (discord.HTTPException, aiohttp.ClientError) as e:
            raise ChatBackendError(f"Discord rejected message: {e}") from e
        logger.debug("Sent embed '%s' to channel %s", message.title[:50], channel)


class DiscordBackend:
    """
    Discord chat backend.

    Each session logs a fresh client in and closes it on exit.
    """

    name = "discord"

    def __init__(self, config: DiscordConfig, login_timeout: float | None = None):
        """
        Initialize the Discord backend.

        Parameters
        ----------
        config : DiscordConfig
            Bot token and channel settings.
        login_timeout : float | None
            Seconds allowed for logging in, None for no limit.
        """
        self.config = config
        self.login_timeout = login_timeout

    def _create_client(self) -> discord.Client:
        return discord.Client(intents=discord.Intents.none())

    @asynccontextmanager
    async def session(self) -> AsyncIterator[DiscordSession]:
        """
        Open a logged-in Discord session.

        Raises
        ------
        SessionError
            If the bot cannot log in.
        """
        client = self._create_client()
        try:
            try:
                await asyncio.wait_for(client.login(self.config.token), self.login_timeout)
            except discord.LoginFailure as e:
                raise SessionError(self.name, f"invalid bot token ({e})") from e
            except asyncio.TimeoutError as e:
                raise SessionError(
                    self.name, f"login timed out after {self.login_timeout:g}s"
                ) from e
            except (discord.HTTPException, aiohttp.ClientError) as e:
                raise SessionError(self.name, str(e)) from e

            logger.debug("Discord session opened")
            yield DiscordSession(client)
        finally:
            await client.close()
            logger.debug("Discord session closed")
