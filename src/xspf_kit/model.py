"""Playlist, track and value element modeling for XSPF documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
import enum
from pathlib import Path
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    ClassVar,
    Iterable,
    Optional,
    TextIO,
    Union,
)

from xspf_kit.errors import InvalidValueError
from xspf_kit.uri import ensure_uri, ensure_url, ensure_urn

if TYPE_CHECKING:
    from xspf_kit.config import AppConfig

XSPF_NAMESPACE = "http://xspf.org/ns/0/"
XSPF_VERSION = 1
CONTENT_TYPE = "application/xspf+xml"


class AttributionKind(enum.Flag):
    """Filter mask for :meth:`Playlist.get_attributions`."""

    LOCATION = 1
    IDENTIFIER = 2
    ANY = LOCATION | IDENTIFIER


def _ensure_text(field_name: str, value: object) -> str:
    if not isinstance(value, str):
        raise InvalidValueError(field_name, value, "expected a string")
    return value


def _ensure_count(field_name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValueError(field_name, value, "expected an integer")
    if value < 0:
        raise InvalidValueError(field_name, value, "must not be negative")
    return value


def _coerce_date(field_name: str, value: object) -> str:
    """Normalize a playlist date.

    Integers and all-digit strings are UNIX timestamps and become RFC 2822
    dates in UTC. ``datetime`` values are rendered as ISO 8601.
    """
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, int) and not isinstance(value, bool):
        timestamp = value
    elif isinstance(value, str) and value.isdigit():
        timestamp = int(value)
    elif isinstance(value, str):
        return value
    else:
        raise InvalidValueError(field_name, value, "expected a date string")
    try:
        stamp = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidValueError(field_name, value, "timestamp out of range") from exc
    return format_datetime(stamp)


class _Field:
    """Optional scalar attribute validated on assignment.

    ``None`` and the empty string both clear the field.
    """

    def __init__(
        self,
        tag: str,
        validate: Callable[[str, Any], Any],
    ) -> None:
        self.tag = tag
        self.validate = validate
        self.attr = f"_{tag}"

    def __set_name__(self, owner: type, name: str) -> None:
        self.attr = f"_{name}"

    def __get__(self, obj: object, objtype: Optional[type] = None) -> Any:
        if obj is None:
            return self
        return obj.__dict__.get(self.attr)

    def __set__(self, obj: object, value: Any) -> None:
        if value is None or value == "":
            obj.__dict__[self.attr] = None
            return
        obj.__dict__[self.attr] = self.validate(self.tag, value)


@dataclass(frozen=True)
class Location:
    """A URL pointing at a resource."""

    value: str

    kind: ClassVar[AttributionKind] = AttributionKind.LOCATION
    tag: ClassVar[str] = "location"

    def __post_init__(self) -> None:
        ensure_url(self.tag, self.value)


@dataclass(frozen=True)
class Identifier:
    """A URN naming a resource independently of where it lives."""

    value: str

    kind: ClassVar[AttributionKind] = AttributionKind.IDENTIFIER
    tag: ClassVar[str] = "identifier"

    def __post_init__(self) -> None:
        ensure_urn(self.tag, self.value)


Attribution = Union[Identifier, Location]


@dataclass(frozen=True)
class Meta:
    """Non-XSPF metadata keyed by a URI.

    ``name`` is written as the ``rel`` attribute of the ``meta`` element.
    """

    name: str
    value: str

    tag: ClassVar[str] = "meta"

    def __post_init__(self) -> None:
        ensure_uri("meta.name", self.name)
        _ensure_text("meta.value", self.value)


@dataclass(frozen=True)
class Link:
    """A related web resource classified by a ``rel`` URI."""

    rel: str
    value: str

    tag: ClassVar[str] = "link"

    def __post_init__(self) -> None:
        ensure_uri("link.rel", self.rel)
        ensure_url("link.value", self.value)


@dataclass
class ExtensionNode:
    """One element of application-defined extension content."""

    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None
    children: list[ExtensionNode] = field(default_factory=list)
    tail: Optional[str] = None


@dataclass
class Extension:
    """Application-specific content kept verbatim but never interpreted.

    ``attributes`` holds every attribute of the ``extension`` element other
    than ``application``, in document order. Prefix declarations such as
    ``xmlns:app`` live there so the content stays well scoped on output.
    """

    application: str
    children: list[ExtensionNode] = field(default_factory=list)
    text: Optional[str] = None
    attributes: dict[str, str] = field(default_factory=dict)
    _attached: bool = field(default=False, init=False, repr=False, compare=False)

    tag: ClassVar[str] = "extension"

    def __post_init__(self) -> None:
        ensure_uri("extension.application", self.application)
        if "application" in self.attributes:
            raise InvalidValueError(
                "extension.attributes", self.attributes, "application is reserved"
            )


def _ensure_prefix(field_name: str, value: object) -> str:
    text = _ensure_text(field_name, value)
    if not text or ":" in text or text.split() != [text] or text == "xmlns":
        raise InvalidValueError(field_name, value, "not a namespace prefix")
    return text


def _check_kind(method: str, item: object, expected: type) -> None:
    if not isinstance(item, expected):
        raise TypeError(
            f"{method}() expects {expected.__name__}, got {type(item).__name__}"
        )


def _attach(item: Union[Track, Extension]) -> None:
    if item._attached:
        raise ValueError(f"{type(item).__name__} already belongs to a collection")
    item._attached = True


class Track:
    """A single playable item with candidate locations and metadata."""

    title = _Field("title", _ensure_text)
    creator = _Field("creator", _ensure_text)
    annotation = _Field("annotation", _ensure_text)
    info = _Field("info", ensure_url)
    image = _Field("image", ensure_url)
    album = _Field("album", _ensure_text)
    track_num = _Field("trackNum", _ensure_count)
    duration = _Field("duration", _ensure_count)

    SCALARS: ClassVar[tuple[str, ...]] = (
        "title",
        "creator",
        "annotation",
        "info",
        "image",
        "album",
        "track_num",
        "duration",
    )

    def __init__(
        self,
        *,
        title: Optional[str] = None,
        creator: Optional[str] = None,
        annotation: Optional[str] = None,
        info: Optional[str] = None,
        image: Optional[str] = None,
        album: Optional[str] = None,
        track_num: Optional[int] = None,
        duration: Optional[int] = None,
        locations: Iterable[Location] = (),
        identifiers: Iterable[Identifier] = (),
    ) -> None:
        self._attached = False
        self._locations: list[Location] = []
        self._identifiers: list[Identifier] = []
        self._links: list[Link] = []
        self._metas: list[Meta] = []
        self._extensions: list[Extension] = []
        self.title = title
        self.creator = creator
        self.annotation = annotation
        self.info = info
        self.image = image
        self.album = album
        self.track_num = track_num
        self.duration = duration
        for location in locations:
            self.add_location(location)
        for identifier in identifiers:
            self.add_identifier(identifier)

    @property
    def identifier(self) -> Optional[str]:
        """The canonical identifier, i.e. the first in :attr:`identifiers`."""
        if not self._identifiers:
            return None
        return self._identifiers[0].value

    @identifier.setter
    def identifier(self, value: Optional[str]) -> None:
        if value is None or value == "":
            if self._identifiers:
                del self._identifiers[0]
            return
        item = Identifier(value)
        if self._identifiers:
            self._identifiers[0] = item
        else:
            self._identifiers.append(item)

    @property
    def locations(self) -> tuple[Location, ...]:
        return tuple(self._locations)

    @property
    def identifiers(self) -> tuple[Identifier, ...]:
        return tuple(self._identifiers)

    @property
    def links(self) -> tuple[Link, ...]:
        return tuple(self._links)

    @property
    def metas(self) -> tuple[Meta, ...]:
        return tuple(self._metas)

    @property
    def extensions(self) -> tuple[Extension, ...]:
        return tuple(self._extensions)

    def add_location(self, location: Location) -> None:
        _check_kind("add_location", location, Location)
        self._locations.append(location)

    def add_identifier(self, identifier: Identifier) -> None:
        _check_kind("add_identifier", identifier, Identifier)
        self._identifiers.append(identifier)

    def add_link(self, link: Link) -> None:
        _check_kind("add_link", link, Link)
        self._links.append(link)

    def add_meta(self, meta: Meta) -> None:
        _check_kind("add_meta", meta, Meta)
        self._metas.append(meta)

    def add_extension(self, extension: Extension) -> None:
        _check_kind("add_extension", extension, Extension)
        _attach(extension)
        self._extensions.append(extension)

    def _key(self) -> tuple[Any, ...]:
        return (
            tuple(getattr(self, name) for name in self.SCALARS),
            tuple(self._locations),
            tuple(self._identifiers),
            tuple(self._links),
            tuple(self._metas),
            tuple(self._extensions),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Track):
            return NotImplemented
        return self._key() == other._key()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        parts = [
            f"{name}={getattr(self, name)!r}"
            for name in self.SCALARS
            if getattr(self, name) is not None
        ]
        if self._locations:
            parts.append(f"locations={[item.value for item in self._locations]!r}")
        return f"Track({', '.join(parts)})"


class Playlist:
    """The root of an XSPF document."""

    annotation = _Field("annotation", _ensure_text)
    creator = _Field("creator", _ensure_text)
    date = _Field("date", _coerce_date)
    identifier = _Field("identifier", ensure_urn)
    image = _Field("image", ensure_url)
    info = _Field("info", ensure_url)
    license = _Field("license", ensure_url)
    location = _Field("location", ensure_url)
    title = _Field("title", _ensure_text)

    SCALARS: ClassVar[tuple[str, ...]] = (
        "annotation",
        "creator",
        "date",
        "identifier",
        "image",
        "info",
        "license",
        "location",
        "title",
    )

    version: ClassVar[int] = XSPF_VERSION
    namespace: ClassVar[str] = XSPF_NAMESPACE

    def __init__(
        self,
        *,
        title: Optional[str] = None,
        creator: Optional[str] = None,
        annotation: Optional[str] = None,
        info: Optional[str] = None,
        location: Optional[str] = None,
        identifier: Optional[str] = None,
        image: Optional[str] = None,
        date: Union[str, int, datetime, None] = None,
        license: Optional[str] = None,
        tracks: Iterable[Track] = (),
    ) -> None:
        self._attributions: list[Attribution] = []
        self._links: list[Link] = []
        self._metas: list[Meta] = []
        self._extensions: list[Extension] = []
        self._tracks: list[Track] = []
        self._namespaces: dict[str, str] = {}
        self.title = title
        self.creator = creator
        self.annotation = annotation
        self.info = info
        self.location = location
        self.identifier = identifier
        self.image = image
        self.date = date
        self.license = license
        for track in tracks:
            self.add_track(track)

    @property
    def tracks(self) -> tuple[Track, ...]:
        return tuple(self._tracks)

    @property
    def links(self) -> tuple[Link, ...]:
        return tuple(self._links)

    @property
    def metas(self) -> tuple[Meta, ...]:
        return tuple(self._metas)

    @property
    def extensions(self) -> tuple[Extension, ...]:
        return tuple(self._extensions)

    @property
    def namespaces(self) -> dict[str, str]:
        """Prefix declarations written on the root element, prefix to URI."""
        return dict(self._namespaces)

    def declare_namespace(self, prefix: str, uri: str) -> None:
        """Declare ``xmlns:prefix`` on the root for use inside extensions."""
        prefix = _ensure_prefix("namespace prefix", prefix)
        self._namespaces[prefix] = ensure_uri(f"xmlns:{prefix}", uri)

    def add_attribution(self, attribution: Attribution, append: bool = True) -> None:
        """Add a location or identifier to the attribution list.

        Attributions are kept in chronological order. ``append=False`` puts
        the item at the front, which is handy when recording an older source.
        """
        if not isinstance(attribution, (Identifier, Location)):
            raise TypeError(
                "add_attribution() expects Identifier or Location, "
                f"got {type(attribution).__name__}"
            )
        if append:
            self._attributions.append(attribution)
        else:
            self._attributions.insert(0, attribution)

    def add_extension(self, extension: Extension) -> None:
        _check_kind("add_extension", extension, Extension)
        _attach(extension)
        self._extensions.append(extension)

    def add_link(self, link: Link) -> None:
        _check_kind("add_link", link, Link)
        self._links.append(link)

    def add_meta(self, meta: Meta) -> None:
        _check_kind("add_meta", meta, Meta)
        self._metas.append(meta)

    def add_track(self, track: Track) -> None:
        _check_kind("add_track", track, Track)
        _attach(track)
        self._tracks.append(track)

    def get_attribution(self, offset: int = 0) -> Optional[Attribution]:
        if 0 <= offset < len(self._attributions):
            return self._attributions[offset]
        return None

    def get_attributions(
        self, kinds: Optional[AttributionKind] = None
    ) -> list[Attribution]:
        """Return attributions, optionally only those matching ``kinds``."""
        if kinds is None:
            return list(self._attributions)
        return [item for item in self._attributions if item.kind & kinds]

    def get_duration(self) -> int:
        """Total length of all tracks in whole seconds, rounded down."""
        total_ms = sum(track.duration or 0 for track in self._tracks)
        return total_ms // 1000

    def to_string(self, config: Optional[AppConfig] = None) -> str:
        from xspf_kit.writer import to_string

        return to_string(self, config)

    def write(self, stream: TextIO, config: Optional[AppConfig] = None) -> None:
        """Write the document to an open text stream."""
        stream.write(self.to_string(config))

    def to_file(
        self, path: Union[str, Path], config: Optional[AppConfig] = None
    ) -> Path:
        from xspf_kit.export import save_xspf

        return save_xspf(self, Path(path), config)

    def to_m3u(
        self, path: Union[str, Path], config: Optional[AppConfig] = None
    ) -> Path:
        from xspf_kit.export import save_m3u

        return save_m3u(self, Path(path), config)

    def to_smil(self, path: Union[str, Path]) -> Path:
        from xspf_kit.export import save_smil

        return save_smil(self, Path(path))

    def _key(self) -> tuple[Any, ...]:
        return (
            tuple(getattr(self, name) for name in self.SCALARS),
            tuple(self._attributions),
            tuple(self._links),
            tuple(self._metas),
            tuple(self._extensions),
            tuple(self._namespaces.items()),
            tuple(track._key() for track in self._tracks),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Playlist):
            return NotImplemented
        return self._key() == other._key()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Playlist(title={self.title!r}, tracks={len(self._tracks)})"
