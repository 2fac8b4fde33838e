"""Note aggregation - ordered notes to one canonical markdown document.

The output is the Generator's input, so it must be byte-identical for the
same set of notes: retrying a failed pipeline over unchanged notes then sends
exactly the same document again.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from src.planforge.models import Note, NoteType

DOCUMENT_HEADING = "# Subproject Notes"
EMPTY_SENTINEL = "_No notes._"
SECTION_SEPARATOR = "---"

_LABELS = {
    NoteType.TEXT: "Text",
    NoteType.IMAGE: "Image",
}


def note_sort_key(note: Note) -> tuple[datetime, str]:
    """Total order over notes: created_at, then id ascending."""
    return (_as_utc(note.created_at), str(note.id))


def format_timestamp(value: datetime, timezone: str = "UTC") -> str:
    """Render a timestamp as ISO-8601 in the given IANA zone.

    Naive datetimes are taken to be UTC (that is how they are stored).
    Millisecond precision; UTC renders with a trailing Z, other zones with
    their numeric offset.
    """
    moment = _as_utc(value)
    if timezone == "UTC":
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return moment.astimezone(ZoneInfo(timezone)).isoformat(timespec="milliseconds")


def aggregate_notes(notes: Iterable[Note], timezone: str = "UTC") -> str:
    """Build the markdown document handed to the Generator.

    Args:
        notes: Notes of one subproject, in any order.
        timezone: IANA zone used for the section timestamps.

    Returns:
        "# Subproject Notes" followed by one "## Note <n> - <label> (<ts>)"
        section per note, separated by "---" lines. With no notes the body
        is a single sentinel line.
    """
    ordered = sorted(notes, key=note_sort_key)
    if not ordered:
        return f"{DOCUMENT_HEADING}\n\n{EMPTY_SENTINEL}\n"

    sections = [
        _render_section(index, note, timezone) for index, note in enumerate(ordered, start=1)
    ]
    body = f"\n\n{SECTION_SEPARATOR}\n\n".join(sections)
    return f"{DOCUMENT_HEADING}\n\n{body}\n"


def _render_section(index: int, note: Note, timezone: str) -> str:
    label = _LABELS[NoteType(note.type)]
    timestamp = format_timestamp(note.created_at, timezone)
    heading = f"## Note {index} - {label} ({timestamp})"
    return f"{heading}\n\n{note.content}"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
