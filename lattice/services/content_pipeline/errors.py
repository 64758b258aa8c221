"""
Exception hierarchy for the content pipeline.

Every failure the pipeline surfaces derives from ContentPipelineError so the web
layer can map families to HTTP statuses without string matching.
"""

from __future__ import annotations

from typing import Optional


class ContentPipelineError(Exception):
    """Base class for all pipeline failures."""


# --- acquisition ---


class AcquisitionError(ContentPipelineError):
    pass


class InvalidReferenceError(AcquisitionError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid YouTube URL: {url}")
        self.url = url


class VideoUnavailableError(AcquisitionError):
    pass


class NoTranscriptError(AcquisitionError):
    pass


class ToolExecutionError(AcquisitionError):
    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class ToolNotFoundError(ToolExecutionError):
    pass


class CaptionDownloadError(AcquisitionError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CaptionDecodeError(AcquisitionError):
    pass


# --- derivation ---


class DerivationError(ContentPipelineError):
    pass


class AuthMissingError(DerivationError):
    pass


class RateLimitedError(DerivationError):
    pass


class DerivationTimeoutError(DerivationError):
    pass


class ServiceError(DerivationError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmptyResponseError(DerivationError):
    pass


class MalformedDerivationJSONError(DerivationError):
    pass


# --- persistence ---


class PersistenceError(ContentPipelineError):
    pass


class DuplicateSourceError(PersistenceError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Source content already exists for url: {url}")
        self.url = url


class PipelineCancelledError(ContentPipelineError):
    pass
