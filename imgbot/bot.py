"""imgbot - Discord adapter.

Listens for messages starting with the trigger word, parses the rest as
transform options, and replies with the transformed image:

    imgbot --flip x --tint orange -F jpg -Q 80

The image is either the single attachment on the message or a URL given
as the first bare argument.
"""

from __future__ import annotations

import asyncio
import io

import discord
import httpx

from imgbot.config import FETCH_TIMEOUT, MAX_CONTENT_LENGTH, TRIGGER
from imgbot.fetch import fetch_image
from imgbot.logger import logger
from imgbot.options import CommandError, is_help, parse_args, tokenize
from imgbot.output import (
    GENERIC_FAILURE,
    NEEDS_ONE_IMAGE,
    format_error,
    format_help,
    format_options,
)
from imgbot.pipeline import process_image


async def handle_message(
    message: discord.Message,
    client: httpx.AsyncClient,
    trigger: str = TRIGGER,
    max_content_length: int = MAX_CONTENT_LENGTH,
) -> None:
    """Handle one incoming message.

    Messages from bots and messages not starting with the trigger word are
    ignored without a reply.
    """
    if message.author.bot:
        return

    tokens = tokenize(message.content)
    if not tokens or tokens[0] != trigger:
        return
    command = tokens[1:]

    if is_help(command):
        await message.reply(format_help(trigger))
        return

    try:
        options = parse_args(command)
    except CommandError as e:
        logger.debug(f"Rejected command from {message.author}: {e}")
        await message.reply(format_error(e))
        return

    if options.input is None and len(message.attachments) != 1:
        await message.reply(NEEDS_ONE_IMAGE)
        return

    url = options.input or message.attachments[0].url
    logger.info(f"Processing image for {message.author}: {options.effective()}")

    try:
        async with message.channel.typing():
            data = await fetch_image(client, url, max_content_length)
            # Pillow work is blocking
            filename, output = await asyncio.to_thread(process_image, data, options)
    except Exception:
        logger.exception(f"Failed to process image from {url}")
        await message.reply(GENERIC_FAILURE)
        return

    await message.reply(
        content=format_options(options),
        file=discord.File(io.BytesIO(output), filename=filename),
    )


class ImgBot(discord.Client):
    """Discord client owning the HTTP client used to fetch images.

    The HTTP client is opened in setup_hook and closed with the bot, so use
    the bot as an async context manager:

        async with ImgBot() as bot:
            await bot.start(token)
    """

    def __init__(
        self,
        *,
        trigger: str = TRIGGER,
        max_content_length: int = MAX_CONTENT_LENGTH,
        fetch_timeout: float = FETCH_TIMEOUT,
        **kwargs,
    ):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(intents=intents, **kwargs)
        self.trigger = trigger
        self.max_content_length = max_content_length
        self.fetch_timeout = fetch_timeout
        self.http_client: httpx.AsyncClient | None = None

    async def setup_hook(self) -> None:
        self.http_client = httpx.AsyncClient(timeout=self.fetch_timeout)

    async def close(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
        await super().close()

    async def on_ready(self) -> None:
        logger.info(f"Logged in as {self.user}")

    async def on_message(self, message: discord.Message) -> None:
        if self.http_client is None:
            return
        await handle_message(
            message,
            self.http_client,
            trigger=self.trigger,
            max_content_length=self.max_content_length,
        )


async def run_bot(token: str) -> None:
    """Connect and serve until the process is stopped."""
    async with ImgBot() as bot:
        await bot.start(token)
