class ConversionError(Exception):
    """Base error for a failed GPX → KML conversion, tagged with the failing phase."""

    phase = "convert"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.phase} failed: {self.message}"


class ParseError(ConversionError):
    """The source bytes are not a readable GPX document."""

    phase = "parse"


class WriteError(ConversionError):
    """The KML tree could not be serialized or written to the sink."""

    phase = "write"
