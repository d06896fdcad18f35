"""Canonical XSPF serialization built on ElementTree."""

from __future__ import annotations

from typing import Optional
import xml.etree.ElementTree as ET

from xspf_kit.config import AppConfig
from xspf_kit.model import (
    XSPF_NAMESPACE,
    XSPF_VERSION,
    Attribution,
    Extension,
    ExtensionNode,
    Link,
    Meta,
    Playlist,
    Track,
)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def _append_text(parent: ET.Element, tag: str, value: object) -> None:
    if value is None or value == "":
        return
    ET.SubElement(parent, tag).text = str(value)


def _append_attribution(parent: ET.Element, item: Attribution) -> None:
    ET.SubElement(parent, item.tag).text = item.value


def _append_link(parent: ET.Element, link: Link) -> None:
    ET.SubElement(parent, link.tag, {"rel": link.rel}).text = link.value


def _append_meta(parent: ET.Element, meta: Meta) -> None:
    ET.SubElement(parent, meta.tag, {"rel": meta.name}).text = meta.value


def _append_node(parent: ET.Element, node: ExtensionNode) -> None:
    element = ET.SubElement(parent, node.tag, dict(node.attributes))
    element.text = node.text
    element.tail = node.tail
    for child in node.children:
        _append_node(element, child)


def _append_extension(parent: ET.Element, extension: Extension) -> None:
    attributes = {"application": extension.application, **extension.attributes}
    element = ET.SubElement(parent, extension.tag, attributes)
    element.text = extension.text
    for child in extension.children:
        _append_node(element, child)


def track_element(track: Track) -> ET.Element:
    """Build the ``track`` element for one track."""
    element = ET.Element("track")
    for location in track.locations:
        _append_text(element, location.tag, location.value)
    for identifier in track.identifiers:
        _append_text(element, identifier.tag, identifier.value)
    _append_text(element, "title", track.title)
    _append_text(element, "creator", track.creator)
    _append_text(element, "annotation", track.annotation)
    _append_text(element, "info", track.info)
    _append_text(element, "image", track.image)
    _append_text(element, "album", track.album)
    _append_text(element, "trackNum", track.track_num)
    _append_text(element, "duration", track.duration)
    for link in track.links:
        _append_link(element, link)
    for meta in track.metas:
        _append_meta(element, meta)
    for extension in track.extensions:
        _append_extension(element, extension)
    return element


def playlist_element(playlist: Playlist) -> ET.Element:
    """Build the ``playlist`` root element in canonical child order."""
    attributes = {"version": str(XSPF_VERSION), "xmlns": XSPF_NAMESPACE}
    for prefix, uri in playlist.namespaces.items():
        attributes[f"xmlns:{prefix}"] = uri
    root = ET.Element("playlist", attributes)
    _append_text(root, "annotation", playlist.annotation)
    attributions = playlist.get_attributions()
    if attributions:
        wrapper = ET.SubElement(root, "attribution")
        for item in attributions:
            _append_attribution(wrapper, item)
    _append_text(root, "creator", playlist.creator)
    _append_text(root, "date", playlist.date)
    for extension in playlist.extensions:
        _append_extension(root, extension)
    _append_text(root, "identifier", playlist.identifier)
    _append_text(root, "image", playlist.image)
    _append_text(root, "info", playlist.info)
    _append_text(root, "license", playlist.license)
    for link in playlist.links:
        _append_link(root, link)
    _append_text(root, "location", playlist.location)
    for meta in playlist.metas:
        _append_meta(root, meta)
    _append_text(root, "title", playlist.title)
    if playlist.tracks:
        track_list = ET.SubElement(root, "trackList")
        for track in playlist.tracks:
            track_list.append(track_element(track))
    return root


def render(root: ET.Element, config: Optional[AppConfig] = None) -> str:
    """Serialize an element tree using the output settings in ``config``."""
    cfg = config or AppConfig()
    if cfg.pretty_print:
        ET.indent(root, space=" " * cfg.indent_width)
    body = ET.tostring(root, encoding="unicode")
    if cfg.xml_declaration:
        return f"{XML_DECLARATION}\n{body}\n"
    return f"{body}\n"


def to_string(playlist: Playlist, config: Optional[AppConfig] = None) -> str:
    """Return the canonical XSPF document for ``playlist``."""
    return render(playlist_element(playlist), config)
