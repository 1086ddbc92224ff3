"""
Adrinolinks link shortener implementation.

Adrinolinks is an affiliate link shortener: users pass through its
ad page before reaching the bot deep link, which is how access is earned.

Setup:
1. Register at https://adrinolinks.in/
2. Copy your API key from the developer page
3. Add to .env:
   SHORTENER_PROVIDER=adrinolinks
   SHORTENER_API_KEY=your_api_key
"""

import asyncio
import logging

import aiohttp

from shortener.base import LinkShortener, ShortenerError

logger = logging.getLogger(__name__)


class AdrinolinksShortener(LinkShortener):
    """
    Shortener speaking the common "api?api=&url=&alias=" GET protocol.

    The same protocol is served by most affiliate shorteners, so api_url
    can point at any of them.
    """

    def __init__(self, api_url: str, api_key: str, timeout_s: float = 15.0):
        if not api_key:
            raise ValueError("SHORTENER_API_KEY not configured")
        self.api_url = api_url
        self.api_key = api_key
        self.timeout_s = timeout_s

    async def shorten(self, long_url: str, alias: str) -> str:
        params = {"api": self.api_key, "url": long_url, "alias": alias}
        req_timeout = aiohttp.ClientTimeout(total=self.timeout_s)

        try:
            async with aiohttp.ClientSession(timeout=req_timeout) as session:
                async with session.get(self.api_url, params=params) as resp:
                    # Some services answer with text/html content type
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ShortenerError(f"Shortener request failed: {e}") from e

        if not isinstance(data, dict):
            raise ShortenerError(f"Unexpected shortener response: {data!r}")

        short_url = data.get("shortenedUrl") or data.get("shorturl")
        if data.get("status") != "success" or not short_url:
            message = data.get("message") or data.get("status") or "no URL returned"
            raise ShortenerError(f"Shortener rejected request: {message}")

        logger.info(f"🔗 Short link created for alias {alias}")
        return str(short_url)
