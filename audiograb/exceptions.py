from __future__ import annotations

from typing import List, Optional


class AudiograbError(Exception):
    """Base class for errors raised by audiograb."""


class UrlValidationError(AudiograbError, ValueError):
    """Raised when submitted URLs are missing or not recognised.

    ``invalid_urls`` lists every rejected entry (empty when nothing was
    submitted at all).
    """

    def __init__(self, message: str, invalid_urls: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.invalid_urls = list(invalid_urls or [])
