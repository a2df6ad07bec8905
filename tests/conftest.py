"""Pytest configuration and fixtures."""

from __future__ import annotations

import io
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image


@pytest.fixture
def test_image() -> Image.Image:
    """Create a simple test image."""
    return Image.new("RGBA", (100, 80), color=(128, 64, 32, 255))


@pytest.fixture
def png_bytes(test_image: Image.Image) -> bytes:
    """The test image encoded as PNG."""
    buffer = io.BytesIO()
    test_image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def make_message():
    """Build a mock Discord message."""

    def _make(content: str, attachments: int = 0, bot: bool = False) -> Mock:
        message = Mock()
        message.author.bot = bot
        message.content = content
        message.attachments = [
            Mock(url=f"https://cdn.example.com/{i}.png") for i in range(attachments)
        ]
        message.reply = AsyncMock()
        message.channel.typing = Mock(return_value=AsyncMock())
        return message

    return _make
