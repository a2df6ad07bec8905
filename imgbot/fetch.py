"""Image download with a size cap."""

from __future__ import annotations

import httpx

from imgbot.config import MAX_CONTENT_LENGTH
from imgbot.logger import logger


class FetchError(Exception):
    """Raised when an image cannot be downloaded."""


async def fetch_image(
    client: httpx.AsyncClient,
    url: str,
    max_content_length: int = MAX_CONTENT_LENGTH,
) -> bytes:
    """Download url, refusing bodies larger than max_content_length.

    Args:
        client: Open HTTP client.
        url: Image URL.
        max_content_length: Byte limit for the body.

    Returns:
        The response body.

    Raises:
        FetchError: On network errors, HTTP error statuses or oversize bodies.
    """
    logger.debug(f"Fetching {url}")
    try:
        async with client.stream("GET", url, follow_redirects=True) as response:
            response.raise_for_status()

            declared = response.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > max_content_length:
                raise FetchError(
                    f"Content length {declared} exceeds limit of {max_content_length}"
                )

            chunks = []
            total = 0
            async for chunk in response.aiter_bytes():
                total += len(chunk)
                if total > max_content_length:
                    raise FetchError(
                        f"Content length exceeds limit of {max_content_length}"
                    )
                chunks.append(chunk)
    except httpx.HTTPError as e:
        raise FetchError(f"Failed to fetch {url}: {e}") from e

    return b"".join(chunks)
