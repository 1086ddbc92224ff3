"""
Mock link shortener for development and testing.

Returns the long URL unchanged so the access flow can be exercised
without an affiliate account.
"""

from typing import List, Tuple

from shortener.base import LinkShortener


class MockShortener(LinkShortener):
    """Mock shortener that records calls and returns the original URL."""

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []

    async def shorten(self, long_url: str, alias: str) -> str:
        self.calls.append((long_url, alias))
        return long_url
