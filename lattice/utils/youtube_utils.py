"""
YouTube reference helpers.

Only three URL shapes are accepted as video references: watch, short (youtu.be)
and embed links, matched at the start of the string.
"""
import re
from typing import Optional

_YOUTUBE_REFERENCE_PATTERNS = [
    r"^https?://(?:www\.)?youtube\.com/watch\?v=([\w-]+)",
    r"^https?://(?:www\.)?youtu\.be/([\w-]+)",
    r"^https?://(?:www\.)?youtube\.com/embed/([\w-]+)",
]
_REFERENCE_RES = [re.compile(p, re.ASCII) for p in _YOUTUBE_REFERENCE_PATTERNS]


def is_video_reference(url: str) -> bool:
    """True when ``url`` starts with one of the accepted YouTube link shapes."""
    if not isinstance(url, str):
        return False
    return any(regex.match(url) for regex in _REFERENCE_RES)


def extract_video_id(url: str) -> Optional[str]:
    """Extract the video id from an accepted YouTube link, or None."""
    if not isinstance(url, str):
        return None
    for regex in _REFERENCE_RES:
        m = regex.match(url)
        if m:
            return m.group(1)
    return None
