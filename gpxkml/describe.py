"""
Description text for the KML <description> element.

GPX carries a handful of descriptive fields that have no KML counterpart.
They are folded into one multi-line text, one line per present field, always
in the order of ``CLAUSE_ORDER``. Metadata and placemarks use different subsets
of the clauses but share this order and the composing function.
"""
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict

from .source import Copyright


class Clause(Enum):
    DESCRIPTION = "description"
    COMMENT = "comment"
    CREATED = "created"
    # " by <creator>" suffix of the CREATED line
    CREATOR = "creator"
    KEYWORDS = "keywords"
    COPYRIGHT = "copyright"
    SOURCE = "source"
    TYPE = "type"


CLAUSE_ORDER = (
    Clause.DESCRIPTION,
    Clause.COMMENT,
    Clause.CREATED,
    Clause.KEYWORDS,
    Clause.COPYRIGHT,
    Clause.SOURCE,
    Clause.TYPE,
)

METADATA_CLAUSES = frozenset({
    Clause.DESCRIPTION, Clause.CREATED, Clause.CREATOR, Clause.KEYWORDS, Clause.COPYRIGHT,
})
FEATURE_CLAUSES = frozenset({
    Clause.DESCRIPTION, Clause.COMMENT, Clause.CREATED, Clause.SOURCE, Clause.TYPE,
})


class DescriptionFields(BaseModel):
    """Every optional field a description can be built from."""
    model_config = ConfigDict(frozen=True)

    description: str | None = None
    comment: str | None = None
    time: datetime | None = None
    creator: str | None = None
    keywords: str | None = None
    copyright: Copyright | None = None
    source: str | None = None
    type: str | None = None


def format_time(value: datetime) -> str:
    """RFC 3339 rendering; naive times are taken as UTC and a zero offset is written as Z.

    Fractional seconds keep only their significant digits (.5, not .500000).
    """
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat(timespec="seconds")
    if value.microsecond:
        # date and time part is always YYYY-MM-DDTHH:MM:SS
        fraction = f"{value.microsecond:06d}".rstrip("0")
        text = f"{text[:19]}.{fraction}{text[19:]}"
    if value.utcoffset().total_seconds() == 0 and text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def _created(fields: DescriptionFields, clauses: frozenset) -> str | None:
    time = fields.time
    creator = fields.creator if Clause.CREATOR in clauses else None
    if time is None and creator is None:
        return None
    line = "Created"
    if time is not None:
        line += f" {format_time(time)}"
    if creator is not None:
        line += f" by {creator}"
    return line


def _copyright(copyright: Copyright | None) -> str | None:
    if copyright is None:
        return None
    parts = []
    if copyright.author is not None:
        parts.append(copyright.author)
    if copyright.year is not None:
        parts.append(copyright.year)
    if copyright.license is not None:
        parts.append(f"under {copyright.license}")
    if not parts:
        return None
    return " ".join(["Copyright", *parts])


def _line(clause: Clause, fields: DescriptionFields, clauses: frozenset) -> str | None:
    if clause is Clause.DESCRIPTION:
        return fields.description
    if clause is Clause.COMMENT:
        return fields.comment
    if clause is Clause.CREATED:
        return _created(fields, clauses)
    if clause is Clause.KEYWORDS:
        return None if fields.keywords is None else f"Keywords: {fields.keywords}"
    if clause is Clause.COPYRIGHT:
        return _copyright(fields.copyright)
    if clause is Clause.SOURCE:
        return None if fields.source is None else f"Source: {fields.source}"
    if clause is Clause.TYPE:
        return None if fields.type is None else f"Type: {fields.type}"
    raise ValueError(f"Unknown description clause: {clause!r}")


def compose(fields: DescriptionFields, clauses: frozenset) -> str | None:
    """Join the lines of the selected clauses, each terminated by a newline.

    Returns None when no selected clause has a value; never an empty string.
    """
    lines = []
    for clause in CLAUSE_ORDER:
        if clause not in clauses:
            continue
        line = _line(clause, fields, clauses)
        if line is not None:
            lines.append(line + "\n")
    return "".join(lines) or None


def metadata_description(
    description: str | None = None,
    time: datetime | None = None,
    creator: str | None = None,
    keywords: str | None = None,
    copyright: Copyright | None = None,
) -> str | None:
    return compose(
        DescriptionFields(
            description=description, time=time, creator=creator, keywords=keywords, copyright=copyright,
        ),
        METADATA_CLAUSES,
    )


def feature_description(
    description: str | None = None,
    comment: str | None = None,
    time: datetime | None = None,
    source: str | None = None,
    type: str | None = None,
) -> str | None:
    return compose(
        DescriptionFields(description=description, comment=comment, time=time, source=source, type=type),
        FEATURE_CLAUSES,
    )
