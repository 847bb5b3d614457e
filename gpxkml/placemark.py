from datetime import datetime
from typing import Sequence

from pydantic import BaseModel, ConfigDict

from .describe import feature_description
from .source import Link
from .target import AtomLink, Geometry, Placemark


class PlacemarkArgs(BaseModel):
    """Everything a waypoint, route or track contributes to its Placemark."""
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    links: Sequence[Link] = ()
    description: str | None = None
    comment: str | None = None
    # Routes and tracks have no time of their own
    time: datetime | None = None
    source: str | None = None
    type: str | None = None
    geometry: Geometry


def atom_link(link: Link) -> AtomLink:
    # Only href is carried over; text and type are dropped
    return AtomLink(href=link.href)


def build_placemark(args: PlacemarkArgs) -> Placemark:
    return Placemark(
        name=args.name,
        description=feature_description(
            description=args.description,
            comment=args.comment,
            time=args.time,
            source=args.source,
            type=args.type,
        ),
        geometry=args.geometry,
        links=tuple(atom_link(link) for link in args.links),
    )
