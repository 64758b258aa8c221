from enum import Enum


class SourceType(Enum):
    VIDEO = "video"
    PDF = "pdf"
    ARTICLE = "article"


class Platform(Enum):
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    BLOG = "blog"
    EMAIL = "email"


class ContentStatus(Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class CaptionEncoding(Enum):
    JSON3 = "json3"
    VTT = "vtt"
    SRT = "srt"
    SRV3 = "srv3"
    SRV2 = "srv2"
    SRV1 = "srv1"
    UNKNOWN = "unknown"
