"""Rebuild a Playlist from a stream of XML parse events.

:class:`PlaylistHandler` is a small state machine fed with start-element,
character-data and end-element events. It keeps an explicit stack of frames,
one per open element, and routes every closing tag by its full element path
(``playlist/trackList/track/location`` and ``playlist/attribution/location``
end up in different collections). The ``parse_*`` helpers drive it from
:mod:`xml.parsers.expat`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import IO, Any, Callable, ClassVar, Mapping, Optional, Union
from xml.parsers import expat

from xspf_kit.errors import InvalidValueError, ParseError
from xspf_kit.model import (
    XSPF_NAMESPACE,
    Extension,
    ExtensionNode,
    Identifier,
    Link,
    Location,
    Meta,
    Playlist,
    Track,
)

logger = logging.getLogger(__name__)

ElementPath = tuple[str, ...]

ROOT: ElementPath = ("playlist",)
ATTRIBUTION: ElementPath = ROOT + ("attribution",)
TRACK_LIST: ElementPath = ROOT + ("trackList",)
TRACK: ElementPath = TRACK_LIST + ("track",)

SUPPORTED_VERSIONS = frozenset({"0", "1"})

_TRACK_TEXT_FIELDS = ("title", "creator", "annotation", "info", "image", "album")
_TRACK_COUNT_FIELDS = {"trackNum": "track_num", "duration": "duration"}


@dataclass
class _Frame:
    """One open element on the parse stack."""

    path: ElementPath
    attributes: dict[str, str]
    text: list[str] = field(default_factory=list)
    entity: Any = None
    capture: bool = False
    ignored: bool = False

    @property
    def tag(self) -> str:
        return self.path[-1]

    def value(self) -> str:
        return "".join(self.text).strip()


def _append_content(owner: Union[Extension, ExtensionNode], data: str) -> None:
    if owner.children:
        last = owner.children[-1]
        last.tail = (last.tail or "") + data
    else:
        owner.text = (owner.text or "") + data


def _tidy_content(owner: Union[Extension, ExtensionNode]) -> None:
    if owner.text is not None and not owner.text.strip():
        owner.text = None
    for child in owner.children:
        if child.tail is not None and not child.tail.strip():
            child.tail = None


class PlaylistHandler:
    """Event sink that assembles a :class:`Playlist`.

    In the default lenient mode, values that fail validation and elements
    the XSPF schema does not define are dropped with a log message. With
    ``strict=True`` both raise :class:`ParseError`.
    """

    def __init__(self, *, strict: bool = False) -> None:
        self.strict = strict
        self.locator: Optional[Callable[[], tuple[int, int]]] = None
        self._stack: list[_Frame] = []
        self._playlist: Optional[Playlist] = None
        self._finished = False

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def current_path(self) -> ElementPath:
        return self._stack[-1].path if self._stack else ()

    # -- events ---------------------------------------------------------

    def start_element(self, tag: str, attributes: Mapping[str, str]) -> None:
        attrs = dict(attributes)
        if not self._stack:
            self._open_root(tag, attrs)
            return
        parent = self._stack[-1]
        path = parent.path + (tag,)
        if parent.ignored:
            frame = _Frame(path, attrs, ignored=True)
        elif parent.capture:
            node = ExtensionNode(tag, attrs)
            parent.entity.children.append(node)
            frame = _Frame(path, attrs, entity=node, capture=True)
        elif path in self._OPENERS:
            frame = self._OPENERS[path](self, path, attrs)
        elif path in self._CLOSERS:
            frame = _Frame(path, attrs)
        else:
            self._unknown(path)
            frame = _Frame(path, attrs, ignored=True)
        self._stack.append(frame)

    def character_data(self, data: str) -> None:
        if not self._stack:
            return
        frame = self._stack[-1]
        if frame.ignored:
            return
        if frame.capture:
            _append_content(frame.entity, data)
        else:
            frame.text.append(data)

    def end_element(self, tag: str) -> None:
        if not self._stack:
            raise self._error(f"unexpected closing tag </{tag}>")
        frame = self._stack[-1]
        if frame.tag != tag:
            raise self._error(f"mismatched tag </{tag}>, expected </{frame.tag}>")
        self._stack.pop()
        if frame.ignored:
            return
        if isinstance(frame.entity, ExtensionNode):
            _tidy_content(frame.entity)
            return
        self._CLOSERS[frame.path](self, frame)

    def close(self) -> Playlist:
        """Finish the parse and return the playlist."""
        if self._stack:
            open_path = "/".join(self._stack[-1].path)
            raise self._error(f"unexpected end of document inside {open_path}")
        if self._playlist is None or not self._finished:
            raise self._error("document has no playlist element")
        return self._playlist

    # -- helpers --------------------------------------------------------

    def _position(self) -> tuple[Optional[int], Optional[int]]:
        if self.locator is None:
            return None, None
        line, column = self.locator()
        return line, column

    def _error(self, message: str) -> ParseError:
        line, column = self._position()
        return ParseError(message, line, column)

    def _reject(self, exc: InvalidValueError) -> None:
        if self.strict:
            raise self._error(str(exc)) from exc
        line, _column = self._position()
        logger.warning("Dropping %s (line %s): %s", exc.field, line, exc.reason)

    def _unknown(self, path: ElementPath) -> None:
        where = "/".join(path)
        if self.strict:
            raise self._error(f"unexpected element {where}")
        logger.debug("Ignoring unknown element %s", where)

    def _owner(self) -> Union[Playlist, Track]:
        return self._stack[-1].entity

    def _open_root(self, tag: str, attrs: dict[str, str]) -> None:
        if self._playlist is not None:
            raise self._error(f"unexpected element <{tag}> after document end")
        if tag != "playlist":
            raise self._error(f"root element must be playlist, not {tag}")
        version = attrs.get("version")
        if version is not None and version not in SUPPORTED_VERSIONS:
            self._reject(InvalidValueError("version", version, "unsupported"))
        namespace = attrs.get("xmlns")
        if namespace is not None and namespace != XSPF_NAMESPACE:
            self._reject(
                InvalidValueError("xmlns", namespace, "not the XSPF namespace")
            )
        self._playlist = Playlist()
        for name, value in attrs.items():
            if name.startswith("xmlns:"):
                try:
                    self._playlist.declare_namespace(name[len("xmlns:") :], value)
                except InvalidValueError as exc:
                    self._reject(exc)
            elif name not in ("version", "xmlns"):
                logger.debug("Ignoring playlist attribute %s", name)
        self._stack.append(_Frame(ROOT, attrs, entity=self._playlist))

    # -- openers: elements that start a mutable entity --------------------

    def _open_track(self, path: ElementPath, attrs: dict[str, str]) -> _Frame:
        return _Frame(path, attrs, entity=Track())

    def _open_extension(self, path: ElementPath, attrs: dict[str, str]) -> _Frame:
        extra = {name: value for name, value in attrs.items() if name != "application"}
        try:
            extension = Extension(
                attrs.get("application"),  # type: ignore[arg-type]
                attributes=extra,
            )
        except InvalidValueError as exc:
            self._reject(exc)
            return _Frame(path, attrs, ignored=True)
        return _Frame(path, attrs, entity=extension, capture=True)

    # -- closers: one per element path ------------------------------------

    def _close_root(self, frame: _Frame) -> None:
        self._finished = True

    def _close_container(self, frame: _Frame) -> None:
        pass

    def _close_playlist_field(self, frame: _Frame) -> None:
        try:
            setattr(self._playlist, frame.tag, frame.value())
        except InvalidValueError as exc:
            self._reject(exc)

    def _close_attribution(self, frame: _Frame) -> None:
        kind = Location if frame.tag == "location" else Identifier
        try:
            item = kind(frame.value())
        except InvalidValueError as exc:
            self._reject(exc)
            return
        assert self._playlist is not None
        self._playlist.add_attribution(item)

    def _close_link(self, frame: _Frame) -> None:
        try:
            rel = frame.attributes.get("rel")
            link = Link(rel, frame.value())  # type: ignore[arg-type]
        except InvalidValueError as exc:
            self._reject(exc)
            return
        self._owner().add_link(link)

    def _close_meta(self, frame: _Frame) -> None:
        name = frame.attributes.get("rel", frame.attributes.get("name"))
        try:
            meta = Meta(name, frame.value())  # type: ignore[arg-type]
        except InvalidValueError as exc:
            self._reject(exc)
            return
        self._owner().add_meta(meta)

    def _close_extension(self, frame: _Frame) -> None:
        _tidy_content(frame.entity)
        self._owner().add_extension(frame.entity)

    def _close_track(self, frame: _Frame) -> None:
        assert self._playlist is not None
        self._playlist.add_track(frame.entity)

    def _close_track_field(self, frame: _Frame) -> None:
        track = self._owner()
        text = frame.value()
        try:
            if frame.tag in _TRACK_COUNT_FIELDS:
                attr = _TRACK_COUNT_FIELDS[frame.tag]
                setattr(track, attr, _parse_count(frame.tag, text))
            else:
                setattr(track, frame.tag, text)
        except InvalidValueError as exc:
            self._reject(exc)

    def _close_track_location(self, frame: _Frame) -> None:
        try:
            location = Location(frame.value())
        except InvalidValueError as exc:
            self._reject(exc)
            return
        self._owner().add_location(location)

    def _close_track_identifier(self, frame: _Frame) -> None:
        try:
            identifier = Identifier(frame.value())
        except InvalidValueError as exc:
            self._reject(exc)
            return
        self._owner().add_identifier(identifier)

    _OPENERS: ClassVar[dict[ElementPath, Callable[..., _Frame]]] = {
        TRACK: _open_track,
        ROOT + ("extension",): _open_extension,
        TRACK + ("extension",): _open_extension,
    }

    _CLOSERS: ClassVar[dict[ElementPath, Callable[..., None]]] = {
        ROOT: _close_root,
        **dict.fromkeys(
            [ROOT + (tag,) for tag in Playlist.SCALARS], _close_playlist_field
        ),
        ATTRIBUTION: _close_container,
        ATTRIBUTION + ("location",): _close_attribution,
        ATTRIBUTION + ("identifier",): _close_attribution,
        ROOT + ("link",): _close_link,
        ROOT + ("meta",): _close_meta,
        ROOT + ("extension",): _close_extension,
        TRACK_LIST: _close_container,
        TRACK: _close_track,
        **dict.fromkeys(
            [TRACK + (tag,) for tag in (*_TRACK_TEXT_FIELDS, *_TRACK_COUNT_FIELDS)],
            _close_track_field,
        ),
        TRACK + ("location",): _close_track_location,
        TRACK + ("identifier",): _close_track_identifier,
        TRACK + ("link",): _close_link,
        TRACK + ("meta",): _close_meta,
        TRACK + ("extension",): _close_extension,
    }


def _parse_count(tag: str, text: str) -> Optional[int]:
    if not text:
        return None
    # xsd:nonNegativeInteger, so no signs, separators or non-ASCII digits
    if not (text.isascii() and text.isdigit()):
        raise InvalidValueError(tag, text, "expected an integer")
    return int(text)


def _make_parser(handler: PlaylistHandler) -> Any:
    parser = expat.ParserCreate()
    parser.buffer_text = True
    parser.StartElementHandler = handler.start_element
    parser.EndElementHandler = handler.end_element
    parser.CharacterDataHandler = handler.character_data
    handler.locator = lambda: (parser.CurrentLineNumber, parser.CurrentColumnNumber)
    return parser


def _run(
    feed: Callable[[Any], None], handler: PlaylistHandler, parser: Any
) -> Playlist:
    try:
        feed(parser)
    except expat.ExpatError as exc:
        raise ParseError(expat.ErrorString(exc.code), exc.lineno, exc.offset) from exc
    return handler.close()


def parse_bytes(data: bytes, *, strict: bool = False) -> Playlist:
    """Parse an encoded XSPF document."""
    handler = PlaylistHandler(strict=strict)
    parser = _make_parser(handler)
    return _run(lambda p: p.Parse(data, True), handler, parser)


def parse_string(text: str, *, strict: bool = False) -> Playlist:
    """Parse an XSPF document held in a ``str``."""
    handler = PlaylistHandler(strict=strict)
    parser = _make_parser(handler)
    return _run(lambda p: p.Parse(text, True), handler, parser)


def parse_stream(stream: IO[bytes], *, strict: bool = False) -> Playlist:
    """Parse an XSPF document from a binary file object."""
    handler = PlaylistHandler(strict=strict)
    parser = _make_parser(handler)
    return _run(lambda p: p.ParseFile(stream), handler, parser)


def parse_file(path: Union[str, Path], *, strict: bool = False) -> Playlist:
    """Parse the XSPF document at ``path``."""
    source = Path(path)
    logger.debug("Parsing XSPF playlist %s", source)
    with source.open("rb") as stream:
        return parse_stream(stream, strict=strict)
