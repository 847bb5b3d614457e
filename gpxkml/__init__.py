"""
gpxkml: convert GPX waypoints, routes and tracks to KML for visualization.

    from gpxkml import convert
    kml_bytes = convert(gpx_bytes)
"""

__version__ = "1.0.0"

from .converter import convert, convert_stream
from .errors import ConversionError, ParseError, WriteError

__all__ = [
    "convert", "convert_stream",
    "ConversionError", "ParseError", "WriteError",
    "__version__",
]
