"""Tests for note aggregation."""

from datetime import UTC, datetime, timedelta, timezone
from uuid import UUID

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from src.planforge.models import Note, NoteType
from src.planforge.pipeline.aggregator import (
    aggregate_notes,
    format_timestamp,
    note_sort_key,
)

pytestmark = pytest.mark.unit

SUBPROJECT_ID = UUID("00000000-0000-4000-8000-000000000001")
START = datetime(2024, 3, 1, 9, 30, 0)


def make_note(index: int, content: str, type: NoteType = NoteType.TEXT, **kwargs) -> Note:
    return Note(
        id=kwargs.pop("id", UUID(int=index + 1)),
        subproject_id=SUBPROJECT_ID,
        type=type.value,
        content=content,
        created_at=kwargs.pop("created_at", START + timedelta(minutes=index)),
    )


class TestAggregateNotes:
    def test_two_text_notes(self):
        notes = [make_note(0, "spec v1"), make_note(1, "must support CSV")]

        document = aggregate_notes(notes)

        assert document == (
            "# Subproject Notes\n"
            "\n"
            "## Note 1 - Text (2024-03-01T09:30:00.000Z)\n"
            "\n"
            "spec v1\n"
            "\n"
            "---\n"
            "\n"
            "## Note 2 - Text (2024-03-01T09:31:00.000Z)\n"
            "\n"
            "must support CSV\n"
        )

    def test_image_note_label(self):
        document = aggregate_notes([make_note(0, "https://example.com/a.png", NoteType.IMAGE)])

        assert "## Note 1 - Image (2024-03-01T09:30:00.000Z)" in document
        assert "https://example.com/a.png" in document

    def test_no_notes_renders_sentinel(self):
        document = aggregate_notes([])

        assert document == "# Subproject Notes\n\n_No notes._\n"

    def test_input_order_does_not_matter(self):
        notes = [make_note(i, f"note {i}") for i in range(4)]

        assert aggregate_notes(reversed(notes)) == aggregate_notes(notes)

    def test_equal_timestamps_ordered_by_id(self):
        same_time = START
        later_id = make_note(0, "second", id=UUID(int=20), created_at=same_time)
        earlier_id = make_note(1, "first", id=UUID(int=10), created_at=same_time)

        document = aggregate_notes([later_id, earlier_id])

        assert document.index("first") < document.index("second")

    def test_content_is_not_escaped(self):
        content = "# heading inside\n\n- a list\n---"
        document = aggregate_notes([make_note(0, content)])

        assert content in document

    def test_timezone_renders_offset(self):
        document = aggregate_notes([make_note(0, "x")], timezone="Europe/Paris")

        assert "(2024-03-01T10:30:00.000+01:00)" in document


class TestFormatTimestamp:
    def test_naive_is_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05.000Z"

    def test_aware_is_converted_to_utc(self):
        value = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))

        assert format_timestamp(value) == "2024-01-02T03:04:05.000Z"

    def test_microseconds_truncated_to_milliseconds(self):
        value = datetime(2024, 1, 2, 3, 4, 5, 123_999, tzinfo=UTC)

        assert format_timestamp(value) == "2024-01-02T03:04:05.123Z"


def test_sort_key_matches_naive_and_aware():
    naive = make_note(0, "a", created_at=START)
    aware = make_note(0, "a", created_at=START.replace(tzinfo=UTC))

    assert note_sort_key(naive) == note_sort_key(aware)


note_contents = st.lists(
    st.tuples(
        st.text(min_size=1, max_size=40).filter(lambda s: s.strip()),
        st.sampled_from(list(NoteType)),
        st.integers(min_value=0, max_value=10_000),
    ),
    max_size=8,
)


@given(items=note_contents, seed=st.randoms())
@settings(max_examples=50)
def test_aggregation_is_deterministic(items, seed):
    """Same notes in any order give byte-identical documents."""
    notes = [
        make_note(i, content, type, created_at=START + timedelta(seconds=offset))
        for i, (content, type, offset) in enumerate(items)
    ]
    shuffled = list(notes)
    seed.shuffle(shuffled)

    document = aggregate_notes(notes)

    assert aggregate_notes(shuffled) == document
    assert document.startswith("# Subproject Notes\n\n")
    assert document.endswith("\n")
    assert document.count("## Note ") >= len(notes)
