"""
Source side of the conversion: an immutable GPX data model and the gpxpy
adapter that fills it from raw bytes.

lxml checks the document and collects the links, gpxpy reads everything
else. The fields the KML mapping needs are copied into frozen pydantic models
so that "absent" stays ``None`` all the way through.
"""
import logging
from datetime import datetime

import gpxpy
import gpxpy.gpx
from lxml import etree
from pydantic import BaseModel, ConfigDict

from .errors import ParseError


logger = logging.getLogger("gpxkml.source")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Link(_Frozen):
    href: str


class Author(_Frozen):
    name: str | None = None
    email: str | None = None
    link: Link | None = None


class Copyright(_Frozen):
    author: str | None = None
    year: str | None = None
    license: str | None = None


class Metadata(_Frozen):
    name: str | None = None
    author: Author | None = None
    links: tuple[Link, ...] = ()
    description: str | None = None
    time: datetime | None = None
    keywords: str | None = None
    copyright: Copyright | None = None


class Waypoint(_Frozen):
    longitude: float
    latitude: float
    elevation: float | None = None
    name: str | None = None
    links: tuple[Link, ...] = ()
    description: str | None = None
    comment: str | None = None
    time: datetime | None = None
    source: str | None = None
    type: str | None = None


class Route(_Frozen):
    points: tuple[Waypoint, ...] = ()
    name: str | None = None
    links: tuple[Link, ...] = ()
    description: str | None = None
    comment: str | None = None
    source: str | None = None
    type: str | None = None


class TrackSegment(_Frozen):
    points: tuple[Waypoint, ...] = ()


class Track(_Frozen):
    segments: tuple[TrackSegment, ...] = ()
    name: str | None = None
    links: tuple[Link, ...] = ()
    description: str | None = None
    comment: str | None = None
    source: str | None = None
    type: str | None = None


class SourceDocument(_Frozen):
    metadata: Metadata | None = None
    creator: str | None = None
    waypoints: tuple[Waypoint, ...] = ()
    routes: tuple[Route, ...] = ()
    tracks: tuple[Track, ...] = ()


# Entities stay unresolved and nothing is fetched over the network
_XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def _text(value) -> str | None:
    # gpxpy hands back '' for some empty elements
    if value is None:
        return None
    value = str(value)
    return value if value else None


def _links(href) -> tuple[Link, ...]:
    href = _text(href)
    return (Link(href=href),) if href else ()


def _children(el, name: str) -> list:
    if el is None:
        return []
    return [c for c in el if isinstance(c.tag, str) and etree.QName(c).localname == name]


def _nth(elements: list, i: int):
    return elements[i] if i < len(elements) else None


def _all_links(el, gpxpy_href) -> tuple[Link, ...]:
    """Every <link href> child of ``el`` in document order.

    gpxpy keeps only the first link, and only gpxpy knows the GPX 1.0 <url>,
    so its value is used when the element has no <link> children.
    """
    links = tuple(Link(href=h) for h in (c.get("href") for c in _children(el, "link")) if h)
    return links or _links(gpxpy_href)


def _waypoint(p, el=None) -> Waypoint:
    return Waypoint(
        longitude=p.longitude,
        latitude=p.latitude,
        elevation=p.elevation,
        name=_text(p.name),
        links=_all_links(el, getattr(p, "link", None)),
        description=_text(p.description),
        comment=_text(p.comment),
        time=p.time,
        source=_text(getattr(p, "source", None)),
        type=_text(getattr(p, "type", None)),
    )


def _metadata(gpx: gpxpy.gpx.GPX, el=None) -> Metadata | None:
    author = None
    author_name, author_email = _text(gpx.author_name), _text(gpx.author_email)
    author_link = _links(gpx.author_link)
    if author_name or author_email or author_link:
        author = Author(name=author_name, email=author_email, link=author_link[0] if author_link else None)

    copyright = None
    c_author, c_year, c_license = _text(gpx.copyright_author), _text(gpx.copyright_year), _text(gpx.copyright_license)
    if c_author or c_year or c_license:
        copyright = Copyright(author=c_author, year=c_year, license=c_license)

    metadata = Metadata(
        name=_text(gpx.name),
        author=author,
        links=_all_links(el, gpx.link),
        description=_text(gpx.description),
        time=gpx.time,
        keywords=_text(gpx.keywords),
        copyright=copyright,
    )
    if metadata == Metadata():
        return None
    return metadata


def _route(r, el=None) -> Route:
    points = _children(el, "rtept")
    return Route(
        points=tuple(_waypoint(p, _nth(points, i)) for i, p in enumerate(r.points)),
        name=_text(r.name),
        links=_all_links(el, getattr(r, "link", None)),
        description=_text(r.description),
        comment=_text(r.comment),
        source=_text(r.source),
        type=_text(getattr(r, "type", None)),
    )


def _track(t, el=None) -> Track:
    segments = []
    for i, s in enumerate(t.segments):
        points = _children(_nth(_children(el, "trkseg"), i), "trkpt")
        segments.append(TrackSegment(points=tuple(_waypoint(p, _nth(points, j)) for j, p in enumerate(s.points))))
    return Track(
        segments=tuple(segments),
        name=_text(t.name),
        links=_all_links(el, getattr(t, "link", None)),
        description=_text(t.description),
        comment=_text(t.comment),
        source=_text(t.source),
        type=_text(getattr(t, "type", None)),
    )


def from_gpxpy(gpx: gpxpy.gpx.GPX, root=None) -> SourceDocument:
    """Copy a parsed gpxpy document into the immutable source model.

    ``root`` is the lxml element of the same document; when given, links are
    read from it by element position.
    """
    wpts, rtes, trks = _children(root, "wpt"), _children(root, "rte"), _children(root, "trk")
    return SourceDocument(
        metadata=_metadata(gpx, _nth(_children(root, "metadata"), 0)),
        creator=_text(gpx.creator),
        waypoints=tuple(_waypoint(w, _nth(wpts, i)) for i, w in enumerate(gpx.waypoints)),
        routes=tuple(_route(r, _nth(rtes, i)) for i, r in enumerate(gpx.routes)),
        tracks=tuple(_track(t, _nth(trks, i)) for i, t in enumerate(gpx.tracks)),
    )


def parse(data: bytes) -> SourceDocument:
    """Parse GPX bytes. Raises ParseError on malformed XML or a non-GPX document."""
    try:
        # lxml honours the encoding declaration and a BOM
        root = etree.fromstring(data, parser=_XML_PARSER)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise ParseError(f"Invalid GPX: {e}") from e
    if root is None:
        raise ParseError("Invalid GPX: empty document")
    tag = etree.QName(root).localname
    if tag != "gpx":
        raise ParseError(f"Invalid GPX: root element is <{tag}>, expected <gpx>")
    try:
        gpx = gpxpy.parse(etree.tostring(root, encoding="unicode"))
    except gpxpy.gpx.GPXException as e:
        raise ParseError(f"Invalid GPX: {e}") from e
    doc = from_gpxpy(gpx, root)
    logger.debug(
        "Parsed GPX %s: %d waypoints, %d routes, %d tracks",
        gpx.version, len(doc.waypoints), len(doc.routes), len(doc.tracks),
    )
    return doc
