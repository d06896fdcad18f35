"""Pytest configuration for XSPF Kit."""

from __future__ import annotations

from pathlib import Path

import pytest

SAMPLE_XSPF = """<?xml version="1.0" encoding="UTF-8"?>
<playlist version="1" xmlns="http://xspf.org/ns/0/">
  <title>Road Trip</title>
  <creator>Sam</creator>
  <attribution>
    <location>http://example.com/original.xspf</location>
    <identifier>urn:uuid:0f4c2a5e</identifier>
  </attribution>
  <location>http://example.com/this.xspf</location>
  <trackList>
    <track>
      <location>http://example.com/song.mp3</location>
      <location>file:///music/song.mp3</location>
      <identifier>urn:isrc:USRC17607839</identifier>
      <title>Windowlicker</title>
      <creator>Aphex Twin</creator>
      <image>http://example.com/cover.jpg</image>
      <trackNum>1</trackNum>
      <duration>365000</duration>
    </track>
    <track>
      <location>http://example.com/other.ogg</location>
      <title>Second</title>
      <duration>1500</duration>
    </track>
  </trackList>
</playlist>
"""


@pytest.fixture(autouse=True)
def isolated_user_dirs(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep config and log files out of the real home directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "appdata"))
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path / "localappdata"))
    monkeypatch.delenv("XSPF_KIT_LOG_LEVEL", raising=False)


@pytest.fixture
def sample_xspf() -> str:
    return SAMPLE_XSPF


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    path = tmp_path / "sample.xspf"
    path.write_text(SAMPLE_XSPF, encoding="utf-8")
    return path
