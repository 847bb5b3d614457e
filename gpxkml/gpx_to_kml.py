"""
Command line converter: GPX on stdin (or a file), KML on stdout (or a file).

    gpx2kml < track.gpx > track.kml
    gpx2kml track.gpx -o track.kml
"""
import argparse
import contextlib
import sys

from .config import Settings, setup_logging
from .converter import convert, convert_stream
from .errors import ConversionError


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gpx2kml", description="Convert GPX to KML")
    p.add_argument("input", nargs="?", help="GPX file to read (default: stdin, or $GPX_FILE)")
    p.add_argument("-o", "--output", help="KML file to write (default: stdout, or $KML_FILE)")
    p.add_argument("--pretty", action="store_true", help="Indent the KML output")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return p


def main(argv=None) -> int:
    settings = Settings.from_env()
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else settings.log_level)

    input_path = args.input or settings.gpx_file
    output_path = args.output or settings.kml_file
    pretty = args.pretty or settings.pretty

    try:
        if input_path in (None, "-"):
            src = contextlib.nullcontext(sys.stdin.buffer)
        else:
            src = open(input_path, "rb")
    except OSError as e:
        print(f"Cannot open {input_path}: {e}", file=sys.stderr)
        return 1

    try:
        with src as stream:
            if output_path in (None, "-"):
                convert_stream(stream, sys.stdout.buffer, pretty=pretty)
            else:
                # Convert fully before opening, a bad GPX file must not truncate an existing KML file
                data = convert(stream.read(), pretty=pretty)
                with open(output_path, "wb") as sink:
                    sink.write(data)
    except (ConversionError, OSError) as e:
        print(f"Conversion failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
