"""
YouTube ingestion: yt-dlp metadata, English caption download and decoding.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from typing import Callable, List, Optional, Union

from models.models import Transcript, VideoInfo, VideoMetadata
from services.content_pipeline.constants import (
    CAPTION_DOWNLOAD_TIMEOUT_SECONDS,
    CAPTION_LANGUAGE,
    TOOL_TIMEOUT_SECONDS,
    UNAVAILABLE_MARKERS,
)
from services.content_pipeline.errors import (
    AcquisitionError,
    InvalidReferenceError,
    NoTranscriptError,
    ToolExecutionError,
    ToolNotFoundError,
    VideoUnavailableError,
)
from services.content_pipeline.ingestors.captions import (
    MetadataView,
    clean_transcript,
    decode_captions,
    locate_caption_track,
)
from services.content_pipeline.ingestors.common import fetch_caption_payload
from utils.logger import get_logger, log_event
from utils.youtube_utils import is_video_reference

logger = get_logger(__name__)

METADATA_ARGS = ["--skip-download", "--print-json"]
TRANSCRIPT_ARGS = ["--skip-download", "--write-auto-subs", "--sub-lang", CAPTION_LANGUAGE, "--print-json"]

PayloadFetcher = Callable[[str, int], Union[str, bytes]]


def validate_video_reference(url: str) -> None:
    if not is_video_reference(url):
        raise InvalidReferenceError(url)


class YouTubeIngestor:
    def __init__(
        self,
        ytdlp_path: Optional[str] = None,
        runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
        fetch_payload: Optional[PayloadFetcher] = None,
        tool_timeout_seconds: int = TOOL_TIMEOUT_SECONDS,
        download_timeout_seconds: int = CAPTION_DOWNLOAD_TIMEOUT_SECONDS,
    ) -> None:
        self.ytdlp_path = ytdlp_path or os.getenv("YTDLP_PATH") or None
        self._runner = runner or subprocess.run
        self._fetch_payload = fetch_payload or fetch_caption_payload
        self.tool_timeout_seconds = tool_timeout_seconds
        self.download_timeout_seconds = download_timeout_seconds

    def fetch_video_info(self, url: str) -> VideoInfo:
        """
        Metadata is required; the transcript is best effort.

        A failed metadata call propagates. Any acquisition failure while getting
        the transcript is logged and reported as ``transcript=None``.
        """
        validate_video_reference(url)
        metadata = self._fetch_metadata(url)
        try:
            transcript = self._fetch_transcript(url)
        except AcquisitionError as exc:
            log_event(
                logger,
                "transcript_unavailable",
                level=logging.WARNING,
                url=url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return VideoInfo(metadata=metadata, transcript=None)
        return VideoInfo(metadata=metadata, transcript=transcript)

    def fetch_metadata(self, url: str) -> VideoMetadata:
        validate_video_reference(url)
        return self._fetch_metadata(url)

    def fetch_transcript(self, url: str) -> Transcript:
        validate_video_reference(url)
        return self._fetch_transcript(url)

    def _fetch_metadata(self, url: str) -> VideoMetadata:
        view = self._run_tool(METADATA_ARGS, url)
        duration = view.number("duration")
        return VideoMetadata(
            title=view.string("title") or "",
            duration_seconds=int(duration) if duration is not None else 0,
            channel_name=view.string("channel") or view.string("uploader") or "",
        )

    def _fetch_transcript(self, url: str) -> Transcript:
        view = self._run_tool(TRANSCRIPT_ARGS, url)
        track = locate_caption_track(view)
        if track is None:
            raise NoTranscriptError("No English captions available for this video")

        payload = self._fetch_payload(track.url, self.download_timeout_seconds)
        text = clean_transcript(decode_captions(payload, track.encoding))
        if not text:
            raise NoTranscriptError("Transcript is empty after parsing")
        log_event(
            logger,
            "transcript_acquired",
            url=url,
            encoding=track.encoding,
            chars=len(text),
        )
        return Transcript(text=text, language=CAPTION_LANGUAGE)

    def _resolve_binary(self) -> str:
        if self.ytdlp_path:
            return self.ytdlp_path
        found = shutil.which("yt-dlp")
        if not found:
            raise ToolNotFoundError("yt-dlp executable not found; install it or set YTDLP_PATH")
        return found

    def _run_tool(self, args: List[str], url: str) -> MetadataView:
        command = [self._resolve_binary(), *args, url]
        # Subtitle files written by --write-auto-subs land in a throwaway directory.
        with tempfile.TemporaryDirectory(prefix="lattice-ytdlp-") as workdir:
            try:
                completed = self._runner(
                    command,
                    capture_output=True,
                    text=True,
                    timeout=self.tool_timeout_seconds,
                    cwd=workdir,
                    check=False,
                )
            except FileNotFoundError as exc:
                raise ToolNotFoundError(f"yt-dlp executable not found: {command[0]}") from exc
            except subprocess.TimeoutExpired as exc:
                raise ToolExecutionError(
                    f"yt-dlp timed out after {self.tool_timeout_seconds}s",
                    stderr=_as_str(exc.stderr),
                ) from exc

        stderr = _as_str(completed.stderr)
        if completed.returncode != 0:
            if any(marker in stderr for marker in UNAVAILABLE_MARKERS):
                raise VideoUnavailableError("Video is private or unavailable")
            raise ToolExecutionError(f"yt-dlp failed: {stderr.strip()}", stderr=stderr)

        return _parse_tool_output(_as_str(completed.stdout))


def _parse_tool_output(stdout: str) -> MetadataView:
    text = (stdout or "").strip()
    if not text:
        raise ToolExecutionError("yt-dlp produced no output")
    try:
        return MetadataView.from_json(text)
    except ValueError:
        pass
    # --print-json emits one document per line; take the last complete one.
    lines = [line for line in text.splitlines() if line.strip()]
    try:
        return MetadataView.from_json(lines[-1])
    except ValueError as exc:
        raise ToolExecutionError(f"Failed to parse yt-dlp output: {exc}") from exc


def _as_str(value: Union[str, bytes, None]) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
