"""Tests for the event-driven XSPF parser."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import pytest

from xspf_kit.errors import ParseError
from xspf_kit.model import AttributionKind, XSPF_NAMESPACE
from xspf_kit.parser import (
    PlaylistHandler,
    parse_bytes,
    parse_file,
    parse_stream,
    parse_string,
)

HEADER = f'<playlist version="1" xmlns="{XSPF_NAMESPACE}">'


def _doc(body: str) -> str:
    return f"{HEADER}{body}</playlist>"


def test_parse_sample_document(sample_xspf: str) -> None:
    playlist = parse_string(sample_xspf)
    assert playlist.title == "Road Trip"
    assert playlist.creator == "Sam"
    assert playlist.location == "http://example.com/this.xspf"
    assert len(playlist.tracks) == 2
    first, second = playlist.tracks
    assert first.title == "Windowlicker"
    assert first.creator == "Aphex Twin"
    assert first.track_num == 1
    assert first.duration == 365000
    assert second.duration == 1500
    assert playlist.get_duration() == 366


def test_same_tag_routes_by_context(sample_xspf: str) -> None:
    playlist = parse_string(sample_xspf)
    assert [item.value for item in playlist.get_attributions()] == [
        "http://example.com/original.xspf",
        "urn:uuid:0f4c2a5e",
    ]
    identifiers = playlist.get_attributions(AttributionKind.IDENTIFIER)
    assert [item.value for item in identifiers] == ["urn:uuid:0f4c2a5e"]
    track = playlist.tracks[0]
    assert [item.value for item in track.locations] == [
        "http://example.com/song.mp3",
        "file:///music/song.mp3",
    ]
    assert track.identifier == "urn:isrc:USRC17607839"
    assert track.image == "http://example.com/cover.jpg"
    assert playlist.image is None


def test_parse_bytes_and_stream_agree(sample_xspf: str) -> None:
    data = sample_xspf.encode("utf-8")
    from_bytes = parse_bytes(data)
    from_stream = parse_stream(io.BytesIO(data))
    assert from_bytes == from_stream == parse_string(sample_xspf)


def test_parse_file(sample_file: Path) -> None:
    playlist = parse_file(sample_file)
    assert playlist.title == "Road Trip"
    assert parse_file(str(sample_file)) == playlist


def test_text_is_trimmed() -> None:
    playlist = parse_string(_doc("<title>\n   Mix  \n</title>"))
    assert playlist.title == "Mix"


def test_entities_are_decoded() -> None:
    playlist = parse_string(_doc("<title>Rock &amp; Roll &lt;live&gt;</title>"))
    assert playlist.title == "Rock & Roll <live>"


def test_links_and_metas() -> None:
    playlist = parse_string(
        _doc(
            '<link rel="http://example.com/rel/home">http://example.com/</link>'
            '<meta rel="http://example.com/rel/mood">calm</meta>'
            '<meta name="http://example.com/rel/bpm">120</meta>'
            "<trackList><track>"
            '<link rel="http://example.com/rel/lyrics">http://example.com/l</link>'
            '<meta rel="http://example.com/rel/key">Am</meta>'
            "</track></trackList>"
        )
    )
    assert playlist.links[0].rel == "http://example.com/rel/home"
    assert [(meta.name, meta.value) for meta in playlist.metas] == [
        ("http://example.com/rel/mood", "calm"),
        ("http://example.com/rel/bpm", "120"),
    ]
    track = playlist.tracks[0]
    assert track.links[0].value == "http://example.com/l"
    assert track.metas[0].value == "Am"


def test_extension_content_is_kept_verbatim() -> None:
    playlist = parse_string(
        _doc(
            '<extension application="http://example.com/app"'
            ' xmlns:app="http://example.com/app/ns">\n'
            '  <app:clip start="10" end="20">intro</app:clip>\n'
            "  <app:group><app:item>a</app:item>tail</app:group>\n"
            "</extension>"
        )
    )
    extension = playlist.extensions[0]
    assert extension.application == "http://example.com/app"
    assert extension.attributes == {"xmlns:app": "http://example.com/app/ns"}
    assert extension.text is None
    clip, group = extension.children
    assert clip.tag == "app:clip"
    assert clip.attributes == {"start": "10", "end": "20"}
    assert clip.text == "intro"
    assert clip.tail is None
    assert group.children[0].text == "a"
    assert group.children[0].tail == "tail"


def test_extension_content_is_not_interpreted() -> None:
    playlist = parse_string(
        _doc(
            '<extension application="http://example.com/app">'
            "<title>Not the playlist title</title>"
            "</extension>"
        )
    )
    assert playlist.title is None
    assert playlist.extensions[0].children[0].text == "Not the playlist title"


def test_track_extension() -> None:
    playlist = parse_string(
        _doc(
            "<trackList><track>"
            '<extension application="http://example.com/app"><x/></extension>'
            "</track></trackList>"
        )
    )
    assert playlist.tracks[0].extensions[0].children[0].tag == "x"


def test_split_character_data_is_joined() -> None:
    handler = PlaylistHandler()
    handler.start_element("playlist", {"version": "1", "xmlns": XSPF_NAMESPACE})
    handler.start_element("title", {})
    handler.character_data("Road ")
    handler.character_data("Trip")
    handler.end_element("title")
    handler.start_element("trackList", {})
    handler.start_element("track", {})
    handler.start_element("duration", {})
    handler.character_data("12")
    handler.character_data("34")
    handler.end_element("duration")
    handler.end_element("track")
    handler.end_element("trackList")
    handler.end_element("playlist")
    playlist = handler.close()
    assert playlist.title == "Road Trip"
    assert playlist.tracks[0].duration == 1234


def test_handler_tracks_current_path() -> None:
    handler = PlaylistHandler()
    handler.start_element("playlist", {})
    handler.start_element("attribution", {})
    handler.start_element("location", {})
    assert handler.depth == 3
    assert handler.current_path == ("playlist", "attribution", "location")


def test_handler_rejects_mismatched_close() -> None:
    handler = PlaylistHandler()
    handler.start_element("playlist", {})
    handler.start_element("title", {})
    with pytest.raises(ParseError) as excinfo:
        handler.end_element("creator")
    assert "mismatched" in str(excinfo.value)


def test_truncated_event_stream_fails() -> None:
    handler = PlaylistHandler()
    handler.start_element("playlist", {})
    handler.start_element("trackList", {})
    with pytest.raises(ParseError) as excinfo:
        handler.close()
    assert "playlist/trackList" in str(excinfo.value)
    assert excinfo.value.line is None


def test_empty_event_stream_fails() -> None:
    with pytest.raises(ParseError):
        PlaylistHandler().close()


def test_truncated_document_reports_position() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_string(f"{HEADER}\n<title>x</title>\n<trackList>")
    assert excinfo.value.line == 3


def test_malformed_xml_is_a_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_bytes(b"<playlist><title>x</playlist>")


def test_root_must_be_playlist() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_string("<rss/>")
    assert "playlist" in str(excinfo.value)


def test_empty_playlist() -> None:
    playlist = parse_string(f'<playlist version="1" xmlns="{XSPF_NAMESPACE}"/>')
    assert playlist.tracks == ()
    assert playlist.title is None


def test_lenient_mode_drops_invalid_values(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)
    playlist = parse_string(
        _doc(
            "<license>not a url</license>"
            "<title>Kept</title>"
            "<trackList><track>"
            "<location>song.mp3</location>"
            "<duration>abc</duration>"
            "<title>Track</title>"
            "</track></trackList>"
        )
    )
    assert playlist.license is None
    assert playlist.title == "Kept"
    track = playlist.tracks[0]
    assert track.locations == ()
    assert track.duration is None
    assert track.title == "Track"
    assert "license" in caplog.text
    assert "duration" in caplog.text


def test_lenient_mode_ignores_unknown_elements() -> None:
    playlist = parse_string(
        _doc("<bogus><title>Inner</title></bogus><title>Outer</title>")
    )
    assert playlist.title == "Outer"


def test_strict_mode_rejects_invalid_values() -> None:
    document = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f"{HEADER}\n"
        "  <trackList>\n"
        "    <track><duration>abc</duration></track>\n"
        "  </trackList>\n"
        "</playlist>\n"
    )
    with pytest.raises(ParseError) as excinfo:
        parse_string(document, strict=True)
    assert excinfo.value.line == 4
    assert "duration" in str(excinfo.value)


def test_strict_mode_rejects_unknown_elements() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_string(_doc("<bogus/>"), strict=True)
    assert "playlist/bogus" in str(excinfo.value)


def test_strict_mode_rejects_foreign_namespace() -> None:
    document = '<playlist version="1" xmlns="http://example.com/ns"/>'
    with pytest.raises(ParseError):
        parse_string(document, strict=True)
    assert parse_string(document).tracks == ()


def test_version_zero_is_accepted() -> None:
    playlist = parse_string(
        f'<playlist version="0" xmlns="{XSPF_NAMESPACE}"><title>Old</title>'
        "</playlist>",
        strict=True,
    )
    assert playlist.title == "Old"


def test_unsupported_version_in_strict_mode() -> None:
    with pytest.raises(ParseError):
        parse_string(
            f'<playlist version="7" xmlns="{XSPF_NAMESPACE}"/>', strict=True
        )


def test_root_namespace_declarations_are_kept() -> None:
    playlist = parse_string(
        '<playlist version="1" xmlns="http://xspf.org/ns/0/"'
        ' xmlns:vlc="http://www.videolan.org/vlc/playlist/ns/0/">'
        '<extension application="http://www.videolan.org/vlc/playlist/0">'
        '<vlc:item tid="0"/>'
        "</extension></playlist>"
    )
    assert playlist.namespaces == {
        "vlc": "http://www.videolan.org/vlc/playlist/ns/0/"
    }
    assert playlist.extensions[0].children[0].tag == "vlc:item"


@pytest.mark.parametrize("value", ["1_000", "١٢", "+5", "-1", "2.0"])
def test_counts_must_be_plain_ascii_digits(value: str) -> None:
    track = f"<track><duration>{value}</duration></track>"
    document = _doc(f"<trackList>{track}</trackList>")
    assert parse_string(document).tracks[0].duration is None
    with pytest.raises(ParseError):
        parse_string(document, strict=True)
