from __future__ import annotations

import re
from typing import Iterable, List

from audiograb.exceptions import UrlValidationError

YOUTUBE_URL_RE = re.compile(r"^(https?://)?(www\.)?(youtube\.com/watch\?v=|youtu\.be/)[\w-]+")


def is_valid_youtube_url(url: str) -> bool:
    return bool(YOUTUBE_URL_RE.match(url))


def split_url_lines(text: str) -> List[str]:
    """Split pasted multi-line input into trimmed, non-empty entries."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def validate_urls(urls: Iterable[str]) -> List[str]:
    """Return the cleaned URL list, or raise if any entry is invalid.

    Blank entries are skipped. Every invalid entry is reported at once so the
    user can fix the whole batch in one go.
    """
    valid: List[str] = []
    invalid: List[str] = []
    for raw in urls:
        url = raw.strip()
        if not url:
            continue
        if is_valid_youtube_url(url):
            valid.append(url)
        else:
            invalid.append(url)
    if invalid:
        raise UrlValidationError("Invalid YouTube URLs:\n" + "\n".join(invalid), invalid_urls=invalid)
    if not valid:
        raise UrlValidationError("No valid URLs provided")
    return valid
