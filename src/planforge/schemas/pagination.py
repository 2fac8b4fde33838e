"""Cursor pagination envelope used by list endpoints."""

import base64
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of results plus the cursor to fetch the next one.

    The cursor encodes the created_at of the last item returned; clients pass
    it back unchanged.
    """

    items: list[T]
    next_cursor: str | None = Field(
        default=None,
        description="Cursor for the next page, null on the last page.",
    )
    has_more: bool = Field(default=False, description="True when another page follows.")


def encode_cursor(value: str) -> str:
    """Wrap a raw position (an ISO timestamp) as a URL-safe cursor."""
    return base64.urlsafe_b64encode(value.encode()).decode()


def decode_cursor(cursor: str) -> str:
    """Unwrap a cursor produced by encode_cursor.

    Raises:
        ValueError: If the cursor is not valid base64 text
    """
    try:
        return base64.urlsafe_b64decode(cursor.encode()).decode()
    except (ValueError, UnicodeDecodeError) as e:
        raise ValueError("Invalid cursor") from e
