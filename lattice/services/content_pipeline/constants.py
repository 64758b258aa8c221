"""
Constants for the video-to-learning-content pipeline.
"""

from typing import List, Tuple

from models.enums import CaptionEncoding, Platform

TOOL_TIMEOUT_SECONDS = 120
CAPTION_DOWNLOAD_TIMEOUT_SECONDS = 30
DERIVATION_TIMEOUT_SECONDS = 60

CAPTION_LANGUAGE = "en"

# Order in which caption collections are examined.
CAPTION_COLLECTIONS: Tuple[str, ...] = ("automatic_captions", "subtitles")

CAPTION_FORMAT_PREFERENCE: List[str] = [
    CaptionEncoding.JSON3.value,
    CaptionEncoding.VTT.value,
    CaptionEncoding.SRV3.value,
    CaptionEncoding.SRV2.value,
    CaptionEncoding.SRV1.value,
]

SRV_ENCODINGS = frozenset(
    (CaptionEncoding.SRV1.value, CaptionEncoding.SRV2.value, CaptionEncoding.SRV3.value)
)

NOISE_TOKENS: Tuple[str, ...] = ("[Music]", "[Applause]", "[Laughter]")

UNAVAILABLE_MARKERS: Tuple[str, ...] = (
    "Private video",
    "Video unavailable",
    "This video is not available",
)

# Platforms generated for every processed video, in this order.
PIPELINE_PLATFORMS: List[str] = [
    Platform.LINKEDIN.value,
    Platform.TWITTER.value,
    Platform.BLOG.value,
]

MAX_ATTEMPTS = 3
CONNECTION_BACKOFF_SECONDS = 2
RATE_LIMIT_BACKOFF_SECONDS = 10

ANTHROPIC_VERSION = "2023-06-01"
