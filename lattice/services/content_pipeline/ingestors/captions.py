"""
Caption track selection and decoding.

Metadata documents come from yt-dlp's ``--print-json`` output and have no
guaranteed shape, so they are read through MetadataView, where a missing key and
a key of the wrong type look the same to the caller.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Union

from models.enums import CaptionEncoding
from models.models import CaptionTrack
from services.content_pipeline.constants import (
    CAPTION_COLLECTIONS,
    CAPTION_FORMAT_PREFERENCE,
    CAPTION_LANGUAGE,
    NOISE_TOKENS,
    SRV_ENCODINGS,
)
from services.content_pipeline.errors import CaptionDecodeError
from utils.logger import get_logger

logger = get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_VTT_HEADER_RE = re.compile(r"\AWEBVTT[^\n]*(?:\n[^\n]+)*", re.IGNORECASE)
_VTT_NOTE_RE = re.compile(r"^NOTE(?:[ \t][^\n]*)?$(?:\n[^\n]+)*", re.MULTILINE)
_VTT_STYLE_RE = re.compile(r"^STYLE[ \t]*\n.*?(?:\n\n|\Z)", re.MULTILINE | re.DOTALL)
_NOISE_RE = re.compile("|".join(re.escape(token) for token in NOISE_TOKENS))


class MetadataView:
    """Read-only view over an untyped metadata document."""

    def __init__(self, data: Any) -> None:
        self._data = data if isinstance(data, dict) else {}

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "MetadataView":
        return cls(json.loads(raw))

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def mapping(self, key: str) -> Optional["MetadataView"]:
        value = self._data.get(key)
        return MetadataView(value) if isinstance(value, dict) else None

    def sequence(self, key: str) -> List[Any]:
        value = self._data.get(key)
        return list(value) if isinstance(value, list) else []

    def string(self, key: str) -> Optional[str]:
        value = self._data.get(key)
        return value if isinstance(value, str) else None

    def number(self, key: str) -> Optional[float]:
        value = self._data.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value

    def keys(self) -> List[str]:
        return list(self._data.keys())


def locate_caption_track(metadata: Union[MetadataView, Dict[str, Any], None]) -> Optional[CaptionTrack]:
    """
    Pick the English caption track to download.

    Automatic captions are examined before manual subtitles. Within a collection
    the first entry matching the format preference wins; otherwise the first
    entry of the English list is used, tagged with its declared ext.
    """
    view = metadata if isinstance(metadata, MetadataView) else MetadataView(metadata)
    for collection_key in CAPTION_COLLECTIONS:
        collection = view.mapping(collection_key)
        if collection is None:
            continue
        entries = [MetadataView(item) for item in collection.sequence(CAPTION_LANGUAGE) if isinstance(item, dict)]
        track = _pick_from_entries(entries)
        if track is not None:
            return track
    return None


def _pick_from_entries(entries: List[MetadataView]) -> Optional[CaptionTrack]:
    if not entries:
        return None
    for preferred in CAPTION_FORMAT_PREFERENCE:
        for entry in entries:
            url = entry.string("url")
            if entry.string("ext") == preferred and url:
                return CaptionTrack(url=url, encoding=preferred)
    first = entries[0]
    url = first.string("url")
    if not url:
        return None
    return CaptionTrack(url=url, encoding=first.string("ext") or CaptionEncoding.UNKNOWN.value)


def decode_captions(payload: Union[str, bytes], encoding: str) -> str:
    """Decode a caption payload into plain text according to its declared encoding."""
    text = _as_text(payload)
    encoding = (encoding or "").lower()
    if encoding == CaptionEncoding.JSON3.value:
        return parse_json3(text)
    if encoding == CaptionEncoding.VTT.value:
        return parse_vtt(text)
    if encoding == CaptionEncoding.SRT.value:
        return parse_srt(text)
    if encoding in SRV_ENCODINGS:
        try:
            return parse_json3(text)
        except CaptionDecodeError:
            logger.debug("srv payload is not segment json, decoding as vtt (encoding=%s)", encoding)
            return parse_vtt(text)
    return parse_vtt(text)


def parse_json3(text: str) -> str:
    try:
        document = json.loads(text)
    except ValueError as exc:
        raise CaptionDecodeError(f"failed to parse json3: {exc}") from exc
    if not isinstance(document, dict):
        raise CaptionDecodeError("failed to parse json3: document is not an object")

    parts: List[str] = []
    events = document.get("events")
    for event in events if isinstance(events, list) else []:
        if not isinstance(event, dict):
            continue
        segs = event.get("segs")
        for seg in segs if isinstance(segs, list) else []:
            if not isinstance(seg, dict):
                continue
            value = seg.get("utf8")
            if not isinstance(value, str) or value == "" or value == "\n":
                continue
            piece = _clean_line(value)
            if piece:
                parts.append(piece)
    return _join(parts)


def parse_srt(text: str) -> str:
    blocks = _normalize_newlines(text).strip().split("\n\n")
    parts: List[str] = []
    for block in blocks:
        lines = block.strip("\n").split("\n")
        if len(lines) < 3:
            continue
        block_lines = [_clean_line(line) for line in lines[2:]]
        block_text = " ".join(line for line in block_lines if line)
        if block_text:
            parts.append(block_text)
    return _join(parts)


def parse_vtt(text: str) -> str:
    content = _normalize_newlines(text).lstrip("\ufeff")
    content = _VTT_HEADER_RE.sub("", content, count=1)
    content = _VTT_STYLE_RE.sub("", content)
    content = _VTT_NOTE_RE.sub("", content)

    parts: List[str] = []
    for block in content.split("\n\n"):
        for line in block.split("\n"):
            piece = _clean_line(line)
            if piece:
                parts.append(piece)
    return _join(parts)


def clean_transcript(text: str) -> str:
    """Collapse whitespace and drop [Music]-style noise tokens."""
    cleaned = _WHITESPACE_RE.sub(" ", text or "")
    cleaned = _NOISE_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned)
    # Removing a token can splice a new one together ("[Mu[Music]sic]").
    while _NOISE_RE.search(cleaned):
        cleaned = _WHITESPACE_RE.sub(" ", _NOISE_RE.sub("", cleaned))
    return cleaned.strip()


def _clean_line(line: str) -> str:
    """Strip markup tags; time-range lines yield an empty string."""
    value = line
    while True:
        stripped = _TAG_RE.sub("", value)
        if stripped == value:
            break
        value = stripped
    if "-->" in value:
        return ""
    return value.strip()


def _join(parts: List[str]) -> str:
    """Join decoded pieces; markup spliced together across pieces is removed too."""
    text = " ".join(parts)
    while True:
        stripped = _TAG_RE.sub("", text).replace("-->", "")
        if stripped == text:
            return text
        text = stripped


def _normalize_newlines(text: str) -> str:
    return (text or "").replace("\r\n", "\n").replace("\r", "\n")


def _as_text(payload: Union[str, bytes]) -> str:
    if isinstance(payload, bytes):
        return payload.decode("utf-8", errors="replace")
    return payload or ""
