"""KML document tree produced by the mapping engine and consumed by the writer."""
from typing import Annotated, Literal, Union

import simplekml
from pydantic import BaseModel, ConfigDict, Field


KML_NAMESPACE = "http://www.opengis.net/kml/2.2"
ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"

# Value of the <open> element that leads every Document
DEFAULT_OPEN = "1"
DEFAULT_TESSELLATE = True

ABSOLUTE = simplekml.AltitudeMode.absolute
CLAMP_TO_GROUND = simplekml.AltitudeMode.clamptoground


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)


class Coord(_Node):
    """One coordinate tuple: longitude, latitude and optional elevation."""
    x: float
    y: float
    z: float | None = None


class Point(_Node):
    kind: Literal["point"] = "point"
    coord: Coord
    altitude_mode: str = CLAMP_TO_GROUND


class LineString(_Node):
    kind: Literal["line_string"] = "line_string"
    coords: tuple[Coord, ...] = ()
    tessellate: bool = DEFAULT_TESSELLATE
    altitude_mode: str = CLAMP_TO_GROUND


class MultiGeometry(_Node):
    kind: Literal["multi_geometry"] = "multi_geometry"
    geometries: tuple[LineString, ...] = ()


Geometry = Annotated[Union[Point, LineString, MultiGeometry], Field(discriminator="kind")]


class SimpleElement(_Node):
    """A KML element holding only text, e.g. <open>, <name>, <description>."""
    kind: Literal["element"] = "element"
    tag: str
    text: str


class AtomLink(_Node):
    kind: Literal["atom_link"] = "atom_link"
    href: str


class AtomAuthor(_Node):
    kind: Literal["atom_author"] = "atom_author"
    name: str | None = None
    link: AtomLink | None = None


class Placemark(_Node):
    kind: Literal["placemark"] = "placemark"
    name: str | None = None
    description: str | None = None
    geometry: Geometry
    links: tuple[AtomLink, ...] = ()


DocumentChild = Annotated[
    Union[SimpleElement, AtomAuthor, AtomLink, Placemark],
    Field(discriminator="kind"),
]


class TargetDocument(_Node):
    """The single KML <Document>; the writer wraps it in the <kml> root."""
    children: tuple[DocumentChild, ...] = ()

    @property
    def placemarks(self) -> list[Placemark]:
        return [c for c in self.children if isinstance(c, Placemark)]
