"""Catalog a music collection into an XSPF playlist using audio tags."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import re
from typing import Iterator, Optional

from mutagen import File as MutagenFile
from mutagen import MutagenError

from xspf_kit.model import Location, Playlist, Track

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".mp3", ".flac", ".wav", ".ogg", ".m4a", ".aac"}

_LEADING_NUMBER_RE = re.compile(r"^\s*(\d+)")


@dataclass(frozen=True)
class TrackMeta:
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    track_num: int | None = None
    duration_ms: int | None = None


def _extract_text(value: object | None) -> str | None:
    if value is None:
        return None
    if hasattr(value, "text"):
        value = value.text
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    if isinstance(value, bytes):
        text = value.decode("utf-8", errors="replace")
    else:
        text = str(value)
    text = text.strip()
    return text or None


def _read_tag(tags: object | None, keys: tuple[str, ...]) -> str | None:
    if tags is None:
        return None
    getter = getattr(tags, "get", None)
    if getter is None:
        return None
    for key in keys:
        try:
            value = getter(key)
        except (KeyError, ValueError):
            continue
        text = _extract_text(value)
        if text:
            return text
    return None


def _parse_track_number(text: str | None) -> int | None:
    """Read the leading number of tags such as ``"3"`` or ``"3/12"``."""
    if not text:
        return None
    match = _LEADING_NUMBER_RE.match(text)
    if match is None:
        return None
    return int(match.group(1))


def read_track_meta(path: Path) -> TrackMeta:
    """Best-effort tag extraction; unreadable files yield empty metadata."""
    try:
        audio = MutagenFile(path, easy=True)
    except (MutagenError, OSError) as exc:
        logger.warning("Could not read tags from %s: %s", path, exc)
        return TrackMeta()
    if not audio:
        return TrackMeta()
    tags = getattr(audio, "tags", None)
    length = getattr(getattr(audio, "info", None), "length", None)
    duration_ms = None
    if isinstance(length, (int, float)) and length > 0:
        duration_ms = int(round(length * 1000))
    return TrackMeta(
        title=_read_tag(tags, ("title", "TITLE", "TIT2", "\xa9nam")),
        artist=_read_tag(tags, ("artist", "ARTIST", "TPE1", "albumartist", "\xa9ART")),
        album=_read_tag(tags, ("album", "ALBUM", "TALB", "\xa9alb")),
        track_num=_parse_track_number(
            _read_tag(tags, ("tracknumber", "TRACKNUMBER", "TRCK", "trkn"))
        ),
        duration_ms=duration_ms,
    )


def track_from_file(path: Path) -> Track:
    """Create a Track pointing at ``path`` with whatever tags it carries."""
    meta = read_track_meta(path)
    return Track(
        title=meta.title or path.name,
        creator=meta.artist,
        album=meta.album,
        track_num=meta.track_num,
        duration=meta.duration_ms,
        locations=[Location(path.resolve().as_uri())],
    )


def iter_audio_files(directory: Path, recursive: bool = False) -> Iterator[Path]:
    """Yield supported audio files in a stable, sorted order."""
    pattern = "**/*" if recursive else "*"
    entries = sorted(
        (p for p in directory.glob(pattern) if p.is_file()),
        key=lambda p: p.relative_to(directory).as_posix().casefold(),
    )
    for path in entries:
        if path.suffix.lower() in SUPPORTED_EXTENSIONS:
            yield path


def build_from_directory(
    directory: Path,
    *,
    recursive: bool = False,
    title: Optional[str] = None,
) -> Playlist:
    """Build a playlist with one track per audio file under ``directory``."""
    if not directory.is_dir():
        raise NotADirectoryError(str(directory))
    playlist = Playlist(title=title or directory.resolve().name)
    for path in iter_audio_files(directory, recursive):
        playlist.add_track(track_from_file(path))
    logger.info("Cataloged %d tracks from %s", len(playlist.tracks), directory)
    return playlist
