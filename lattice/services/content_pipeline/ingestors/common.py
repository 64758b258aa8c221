"""
Common helpers for ingestors.
"""

from __future__ import annotations

from urllib.parse import urlparse

import requests

from services.content_pipeline.constants import CAPTION_DOWNLOAD_TIMEOUT_SECONDS
from services.content_pipeline.errors import CaptionDownloadError

USER_AGENT = "LatticeContentBot/1.0"


def fetch_caption_payload(url: str, timeout_seconds: int = CAPTION_DOWNLOAD_TIMEOUT_SECONDS) -> bytes:
    """GET a caption track; anything other than HTTP 200 is a download failure."""
    parsed = urlparse((url or "").strip())
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise CaptionDownloadError(f"Caption URL is not an http(s) URL: {url!r}")
    try:
        response = requests.get(
            url,
            timeout=timeout_seconds,
            headers={"User-Agent": USER_AGENT},
        )
    except requests.RequestException as exc:
        raise CaptionDownloadError(f"Failed to download captions: {exc}") from exc
    if response.status_code != 200:
        raise CaptionDownloadError(
            f"Failed to download captions: status {response.status_code}",
            status_code=response.status_code,
        )
    return response.content
