"""
Mapping from the GPX source model to the KML document tree.

``convert`` is pure: it reads the immutable source document once and returns a
new tree. The Document children are always, in this order: the <open> marker,
the metadata block, one Placemark per waypoint, per route and per track.
"""
import logging

from . import geometry
from .describe import metadata_description
from .placemark import PlacemarkArgs, build_placemark
from .source import Author, Metadata, Route, SourceDocument, Track, Waypoint
from .target import (
    DEFAULT_OPEN,
    AtomAuthor,
    AtomLink,
    Placemark,
    SimpleElement,
    TargetDocument,
)


logger = logging.getLogger("gpxkml.engine")


def author_name(author: Author) -> str | None:
    """'Name <mail>', 'Name' or '<mail>'; None when both are missing or empty."""
    name = author.name or ""
    mail = author.email or ""
    if name and mail:
        name += " "
    if mail:
        name += f"<{mail}>"
    return name or None


def metadata_elements(metadata: Metadata | None, creator: str | None) -> list:
    metadata = metadata or Metadata()
    elements = []
    if metadata.name is not None:
        elements.append(SimpleElement(tag="name", text=metadata.name))

    if metadata.author is not None:
        name = author_name(metadata.author)
        link = AtomLink(href=metadata.author.link.href) if metadata.author.link is not None else None
        if name is not None or link is not None:
            elements.append(AtomAuthor(name=name, link=link))

    for link in metadata.links:
        elements.append(AtomLink(href=link.href))

    description = metadata_description(
        description=metadata.description,
        time=metadata.time,
        creator=creator,
        keywords=metadata.keywords,
        copyright=metadata.copyright,
    )
    if description is not None:
        elements.append(SimpleElement(tag="description", text=description))
    return elements


def convert_waypoint(waypoint: Waypoint) -> Placemark:
    return build_placemark(PlacemarkArgs(
        name=waypoint.name,
        links=waypoint.links,
        description=waypoint.description,
        comment=waypoint.comment,
        time=waypoint.time,
        source=waypoint.source,
        type=waypoint.type,
        geometry=geometry.point(waypoint),
    ))


def convert_route(route: Route) -> Placemark:
    return build_placemark(PlacemarkArgs(
        name=route.name,
        links=route.links,
        description=route.description,
        comment=route.comment,
        source=route.source,
        type=route.type,
        geometry=geometry.line_string(route.points),
    ))


def convert_track(track: Track) -> Placemark:
    return build_placemark(PlacemarkArgs(
        name=track.name,
        links=track.links,
        description=track.description,
        comment=track.comment,
        source=track.source,
        type=track.type,
        geometry=geometry.multi_geometry(track.segments),
    ))


def convert(source: SourceDocument) -> TargetDocument:
    children = [SimpleElement(tag="open", text=DEFAULT_OPEN)]
    children.extend(metadata_elements(source.metadata, source.creator))
    children.extend(convert_waypoint(w) for w in source.waypoints)
    children.extend(convert_route(r) for r in source.routes)
    children.extend(convert_track(t) for t in source.tracks)
    logger.debug(
        "Mapped %d waypoints, %d routes, %d tracks",
        len(source.waypoints), len(source.routes), len(source.tracks),
    )
    return TargetDocument(children=tuple(children))
