"""
KML serialization of a TargetDocument using lxml.

Output is ``<?xml version="1.0" encoding="UTF-8"?>``, a newline, the <kml>
root (default namespace KML 2.2, ``atom`` prefix for Atom) and a final newline.
"""
import logging
from decimal import Decimal
from typing import BinaryIO

from lxml import etree

from .errors import WriteError
from .target import (
    ATOM_NAMESPACE,
    KML_NAMESPACE,
    AtomAuthor,
    AtomLink,
    Coord,
    LineString,
    MultiGeometry,
    Placemark,
    Point,
    SimpleElement,
    TargetDocument,
)


logger = logging.getLogger("gpxkml.writer")

XML_HEAD = '<?xml version="1.0" encoding="UTF-8"?>'
NSMAP = {None: KML_NAMESPACE, "atom": ATOM_NAMESPACE}


def _kml(tag: str) -> str:
    return f"{{{KML_NAMESPACE}}}{tag}"


def _atom(tag: str) -> str:
    return f"{{{ATOM_NAMESPACE}}}{tag}"


def format_number(value: float) -> str:
    """Shortest round-trip digits of the double, never in exponent notation.

    Whole numbers lose their fraction: 2.0 is written as 2.
    """
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_coord(coord: Coord) -> str:
    parts = [format_number(coord.x), format_number(coord.y)]
    if coord.z is not None:
        parts.append(format_number(coord.z))
    return ",".join(parts)


def _text_element(parent, tag: str, text: str):
    el = etree.SubElement(parent, tag)
    el.text = text
    return el


def _bool(value: bool) -> str:
    return "1" if value else "0"


def _write_point(parent, point: Point):
    el = etree.SubElement(parent, _kml("Point"))
    _text_element(el, _kml("extrude"), "0")
    _text_element(el, _kml("altitudeMode"), point.altitude_mode)
    _text_element(el, _kml("coordinates"), format_coord(point.coord))


def _write_line_string(parent, line: LineString):
    el = etree.SubElement(parent, _kml("LineString"))
    _text_element(el, _kml("extrude"), "0")
    _text_element(el, _kml("tessellate"), _bool(line.tessellate))
    _text_element(el, _kml("altitudeMode"), line.altitude_mode)
    _text_element(el, _kml("coordinates"), "\n".join(format_coord(c) for c in line.coords))


def _write_geometry(parent, geometry):
    if isinstance(geometry, Point):
        _write_point(parent, geometry)
    elif isinstance(geometry, LineString):
        _write_line_string(parent, geometry)
    elif isinstance(geometry, MultiGeometry):
        el = etree.SubElement(parent, _kml("MultiGeometry"))
        for line in geometry.geometries:
            _write_line_string(el, line)
    else:
        raise TypeError(f"Unsupported geometry: {type(geometry).__name__}")


def _write_atom_link(parent, link: AtomLink):
    etree.SubElement(parent, _atom("link"), href=link.href)


def _write_child(parent, child):
    if isinstance(child, SimpleElement):
        _text_element(parent, _kml(child.tag), child.text)
    elif isinstance(child, AtomAuthor):
        el = etree.SubElement(parent, _atom("author"))
        if child.name is not None:
            _text_element(el, _atom("name"), child.name)
        if child.link is not None:
            _write_atom_link(el, child.link)
    elif isinstance(child, AtomLink):
        _write_atom_link(parent, child)
    elif isinstance(child, Placemark):
        el = etree.SubElement(parent, _kml("Placemark"))
        if child.name is not None:
            _text_element(el, _kml("name"), child.name)
        if child.description is not None:
            _text_element(el, _kml("description"), child.description)
        _write_geometry(el, child.geometry)
        for link in child.links:
            _write_atom_link(el, link)
    else:
        raise TypeError(f"Unsupported document child: {type(child).__name__}")


def to_element(document: TargetDocument) -> etree._Element:
    root = etree.Element(_kml("kml"), nsmap=NSMAP)
    doc = etree.SubElement(root, _kml("Document"))
    for child in document.children:
        _write_child(doc, child)
    return root


def serialize(document: TargetDocument, pretty: bool = False) -> bytes:
    try:
        root = to_element(document)
        body = etree.tostring(root, encoding="unicode", pretty_print=pretty)
    except ValueError as e:
        # lxml refuses control characters and NUL bytes in text
        raise WriteError(f"Cannot serialize KML: {e}") from e
    body = body.rstrip("\n")
    return f"{XML_HEAD}\n{body}\n".encode("utf-8")


def write(document: TargetDocument, sink: BinaryIO, pretty: bool = False) -> int:
    """Serialize and hand the bytes to ``sink`` in a single write call."""
    data = serialize(document, pretty=pretty)
    try:
        sink.write(data)
        sink.flush()
    except OSError as e:
        raise WriteError(f"Writing KML failed: {e}") from e
    logger.debug("Wrote %d bytes of KML", len(data))
    return len(data)
