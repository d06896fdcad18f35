"""Playlist export helpers (XSPF, M3U, SMIL)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, TextIO
import xml.etree.ElementTree as ET

from xspf_kit.config import AppConfig
from xspf_kit.errors import FileCloseError, FileOpenError, FileWriteError
from xspf_kit.model import Playlist
from xspf_kit.writer import render, to_string

logger = logging.getLogger(__name__)


def _open_sink(path: Path) -> TextIO:
    return path.open("w", encoding="utf-8", newline="\n")


def write_text(path: Path, text: str) -> Path:
    """Write ``text`` to ``path`` and close it.

    Each phase fails with its own exception: FileOpenError when nothing was
    written, FileWriteError when the file may be partial, FileCloseError when
    the data was handed over but the close (and flush) failed. The handle is
    closed on every path.
    """
    try:
        handle = _open_sink(path)
    except OSError as exc:
        raise FileOpenError(path, exc) from exc
    write_error: Optional[OSError] = None
    try:
        handle.write(text)
    except OSError as exc:
        write_error = exc
    try:
        handle.close()
    except OSError as exc:
        if write_error is None:
            raise FileCloseError(path, exc) from exc
        logger.warning("Failed to close %s after a write error: %s", path, exc)
    if write_error is not None:
        raise FileWriteError(path, write_error) from write_error
    logger.info("Wrote %s", path)
    return path


def m3u_text(playlist: Playlist, config: Optional[AppConfig] = None) -> str:
    """Flatten the playlist into one track location per line."""
    cfg = config or AppConfig()
    lines = ["#EXTM3U"] if cfg.m3u_header else []
    for track in playlist.tracks:
        lines.extend(location.value for location in track.locations)
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def smil_text(playlist: Playlist) -> str:
    """Render a minimal SMIL sequence with one ``audio`` per location."""
    root = ET.Element("smil")
    seq = ET.SubElement(ET.SubElement(root, "body"), "seq")
    for track in playlist.tracks:
        label = track.title or track.annotation
        for location in track.locations:
            attributes = {"title": label} if label else {}
            attributes["url"] = location.value
            ET.SubElement(seq, "audio", attributes)
    return render(root, AppConfig(xml_declaration=True))


def save_xspf(
    playlist: Playlist, dest: Path, config: Optional[AppConfig] = None
) -> Path:
    """Save the canonical XSPF document."""
    return write_text(dest, to_string(playlist, config))


def save_m3u(
    playlist: Playlist, dest: Path, config: Optional[AppConfig] = None
) -> Path:
    """Save a one-way M3U listing of every track location."""
    return write_text(dest, m3u_text(playlist, config))


def save_smil(playlist: Playlist, dest: Path) -> Path:
    """Save a one-way SMIL rendition of the playlist."""
    return write_text(dest, smil_text(playlist))
