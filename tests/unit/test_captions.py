import json
import re

import pytest

from models.models import CaptionTrack
from services.content_pipeline.errors import CaptionDecodeError
from services.content_pipeline.ingestors.captions import (
    MetadataView,
    clean_transcript,
    decode_captions,
    locate_caption_track,
    parse_json3,
    parse_srt,
    parse_vtt,
)

pytestmark = pytest.mark.unit


# --- locator ---


def test_locate_prefers_json3_over_vtt():
    metadata = {"automatic_captions": {"en": [{"ext": "json3", "url": "U1"}, {"ext": "vtt", "url": "U2"}]}}
    assert locate_caption_track(metadata) == CaptionTrack(url="U1", encoding="json3")


def test_locate_preference_is_independent_of_entry_order():
    metadata = {
        "automatic_captions": {
            "en": [
                {"ext": "srv1", "url": "S1"},
                {"ext": "srv3", "url": "S3"},
                {"ext": "vtt", "url": "V"},
            ]
        }
    }
    assert locate_caption_track(metadata) == CaptionTrack(url="V", encoding="vtt")


def test_locate_checks_automatic_captions_before_subtitles():
    metadata = {
        "subtitles": {"en": [{"ext": "json3", "url": "MANUAL"}]},
        "automatic_captions": {"en": [{"ext": "vtt", "url": "AUTO"}]},
    }
    assert locate_caption_track(metadata) == CaptionTrack(url="AUTO", encoding="vtt")


def test_locate_falls_through_to_subtitles_when_automatic_has_no_english():
    metadata = {
        "automatic_captions": {"de": [{"ext": "json3", "url": "DE"}]},
        "subtitles": {"en": [{"ext": "srv2", "url": "EN"}]},
    }
    assert locate_caption_track(metadata) == CaptionTrack(url="EN", encoding="srv2")


def test_locate_falls_back_to_first_entry_with_declared_ext():
    metadata = {"subtitles": {"en": [{"ext": "ttml", "url": "T"}, {"ext": "srt", "url": "S"}]}}
    assert locate_caption_track(metadata) == CaptionTrack(url="T", encoding="ttml")


def test_locate_fallback_without_ext_is_unknown():
    metadata = {"subtitles": {"en": [{"url": "X"}]}}
    assert locate_caption_track(metadata) == CaptionTrack(url="X", encoding="unknown")


def test_locate_skips_preferred_entry_without_string_url():
    metadata = {"automatic_captions": {"en": [{"ext": "json3", "url": 42}, {"ext": "vtt", "url": "V"}]}}
    assert locate_caption_track(metadata) == CaptionTrack(url="V", encoding="vtt")


@pytest.mark.parametrize(
    "metadata",
    [
        None,
        {},
        [],
        "not a mapping",
        {"automatic_captions": None, "subtitles": None},
        {"automatic_captions": [], "subtitles": "en"},
        {"automatic_captions": {"en": "json3"}},
        {"automatic_captions": {"en": [None, 3, "x"]}},
        {"automatic_captions": {"fr": [{"ext": "json3", "url": "F"}]}, "subtitles": {"es": []}},
        {"subtitles": {"en": [{"ext": "json3"}]}},
        {"subtitles": {"en": []}},
    ],
)
def test_locate_returns_none_without_english_track(metadata):
    assert locate_caption_track(metadata) is None


def test_metadata_view_accessors_treat_wrong_types_as_absent():
    view = MetadataView.from_json(json.dumps({"title": 7, "duration": True, "tags": {}, "sub": [1]}))
    assert view.string("title") is None
    assert view.number("duration") is None
    assert view.sequence("tags") == []
    assert view.mapping("sub") is None
    assert view.string("missing") is None


# --- decoder ---


def test_json3_joins_segments_with_spaces():
    payload = b'{"events":[{"segs":[{"utf8":"Hello"}]},{"segs":[{"utf8":"world"}]}]}'
    assert clean_transcript(decode_captions(payload, "json3")) == "Hello world"


def test_json3_skips_empty_and_newline_segments():
    payload = json.dumps(
        {
            "events": [
                {"tStartMs": 0},
                {"segs": [{"utf8": "one"}, {"utf8": "\n"}, {"utf8": ""}, {"utf8": "two"}]},
                {"segs": [{"other": "x"}, {"utf8": 5}]},
                "garbage",
            ]
        }
    )
    assert parse_json3(payload) == "one two"


@pytest.mark.parametrize("payload", ["not json", "[1, 2]", '"text"'])
def test_json3_rejects_invalid_documents(payload):
    with pytest.raises(CaptionDecodeError):
        parse_json3(payload)


def test_srt_scenario():
    payload = "1\n00:00:00,000 --> 00:00:02,000\nHi there\n\n2\n00:00:02,000 --> 00:00:04,000\nBye now\n"
    assert decode_captions(payload, "srt") == "Hi there Bye now"


def test_srt_handles_crlf_and_multiline_cues():
    payload = "1\r\n00:00:00,000 --> 00:00:02,000\r\n<i>First</i> line\r\nsecond line\r\n\r\n2\r\n00:00:03,000\r\n"
    assert parse_srt(payload) == "First line second line"


def test_vtt_strips_header_notes_styles_and_tags():
    payload = (
        "WEBVTT\n"
        "Kind: captions\n"
        "Language: en\n"
        "\n"
        "STYLE\n"
        "::cue { color: lime }\n"
        "\n"
        "NOTE this is a comment\n"
        "\n"
        "00:00:00.000 --> 00:00:01.500 align:start position:0%\n"
        "<c>Hello</c><00:00:00.500><c> there</c>\n"
        "\n"
        "00:00:01.500 --> 00:00:03.000\n"
        "general <b>Kenobi</b>\n"
    )
    assert parse_vtt(payload) == "Hello there general Kenobi"


def test_srv_payload_that_is_json_uses_json3_parser():
    payload = '{"events":[{"segs":[{"utf8":"from json"}]}]}'
    assert decode_captions(payload, "srv3") == "from json"


def test_srv_payload_that_is_not_json_falls_back_to_vtt():
    payload = "WEBVTT\n\n00:00:00.000 --> 00:00:01.000\nfrom vtt\n"
    assert decode_captions(payload, "srv1") == "from vtt"


def test_unknown_encoding_decodes_as_vtt():
    payload = "WEBVTT\n\n00:00:00.000 --> 00:00:01.000\nplain cue\n"
    assert decode_captions(payload, "unknown") == "plain cue"


@pytest.mark.parametrize(
    "payload,encoding",
    [
        ('{"events":[{"segs":[{"utf8":"a <b>bold</b> --> move"}]}]}', "json3"),
        ("1\n00:00:00,000 --> 00:00:02,000\n<font color=red>x</font>\n00:00:02,000 --> 00:00:03,000\n", "srt"),
        ("WEBVTT\n\n1\n00:00.000 --> 00:01.000\n<<v Bob>i>nested</i>\n", "vtt"),
    ],
)
def test_decoded_text_has_no_time_ranges_or_markup(payload, encoding):
    text = decode_captions(payload, encoding)
    assert "-->" not in text
    assert not re.search(r"<[^>]+>", text)


# --- clean ---


def test_clean_removes_noise_tokens_and_collapses_whitespace():
    raw = "  [Music]  Welcome\n\nback [Applause] everyone\t[Laughter]  "
    assert clean_transcript(raw) == "Welcome back everyone"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "[Music]",
        "[Mu[Music]sic] hello",
        "a  [Applause]  b",
        " spaced out ",
        "already clean",
    ],
)
def test_clean_is_idempotent(raw):
    once = clean_transcript(raw)
    assert clean_transcript(once) == once
