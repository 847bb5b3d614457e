import logging
from io import BytesIO
from typing import BinaryIO

from . import engine, source, writer
from .errors import ConversionError, ParseError


logger = logging.getLogger("gpxkml.converter")


def convert_stream(src: BinaryIO, sink: BinaryIO, pretty: bool = False) -> None:
    """Read a complete GPX document from ``src`` and write the KML to ``sink``.

    Parsing finishes before anything is written. On a WriteError the sink may
    already hold a partial document and must not be used.
    """
    try:
        data = src.read()
    except OSError as e:
        raise ParseError(f"Reading GPX failed: {e}") from e
    try:
        document = engine.convert(source.parse(data))
        writer.write(document, sink, pretty=pretty)
    except ConversionError as e:
        logger.warning("Conversion failed in %s phase: %s", e.phase, e.message)
        raise


def convert(data: bytes, pretty: bool = False) -> bytes:
    sink = BytesIO()
    convert_stream(BytesIO(data), sink, pretty=pretty)
    return sink.getvalue()
