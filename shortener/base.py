"""
Link shortener abstraction interface.

This module defines the abstract base class for link shorteners.
Implementations (Adrinolinks, mock, etc.) should inherit from LinkShortener.
"""

from abc import ABC, abstractmethod


class ShortenerError(Exception):
    """Raised when a link could not be shortened."""


class LinkShortener(ABC):
    """
    Abstract base class for link shorteners.

    The access flow only needs one operation: turn the bot deep link
    carrying a token into an affiliate short link.
    """

    @abstractmethod
    async def shorten(self, long_url: str, alias: str) -> str:
        """
        Shorten a URL.

        Args:
            long_url: URL to shorten (bot deep link with the token payload)
            alias: Alias requested from the service, unique per token

        Returns:
            The shortened URL

        Raises:
            ShortenerError: The service rejected the request or was unreachable
        """
        pass
