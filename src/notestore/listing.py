"""NoteList: an ordered, paginated snapshot of notes."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, overload

from notestore.errors import OutOfBoundsError

if TYPE_CHECKING:
    import polars as pl

    from notestore.note import Note
    from notestore.tree import TreeNode


class SortBy(Enum):
    TITLE = "title"
    DATE = "date"


def _title_key(note: "Note") -> list[tuple[str, str]]:
    # Per character: case-insensitive first, then the original character.
    return [(ch.lower(), ch) for ch in note.title]


def _date_key(note: "Note") -> tuple[bool, datetime]:
    return (note.date is not None, note.date or datetime.min)


class NoteList:
    """An ordered list of notes, independent of the collection it came from.

    Every operation returns a new list; none of them modify this one.
    """

    def __init__(self, notes: Iterable["Note"] = ()) -> None:
        self._notes: list["Note"] = list(notes)

    def __len__(self) -> int:
        return len(self._notes)

    def __iter__(self) -> Iterator["Note"]:
        return iter(self._notes)

    @overload
    def __getitem__(self, index: int) -> "Note": ...
    @overload
    def __getitem__(self, index: slice) -> "NoteList": ...

    def __getitem__(self, index: int | slice) -> "Note | NoteList":
        if isinstance(index, slice):
            return NoteList(self._notes[index])
        return self._notes[index]

    def __repr__(self) -> str:
        return f"NoteList({[n.path for n in self._notes]!r})"

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    def from_offset(self, offset: int, n: int) -> "NoteList":
        """Return up to *n* notes starting at *offset*.

        Raises :class:`OutOfBoundsError` when *offset* is past the end.
        """
        if offset < 0 or offset >= len(self._notes):
            raise OutOfBoundsError(offset, len(self._notes))
        return NoteList(self._notes[offset : offset + n])

    def first(self, n: int) -> "NoteList":
        return NoteList(self._notes[: max(n, 0)])

    def last(self, n: int) -> "NoteList":
        if n <= 0:
            return NoteList()
        return NoteList(self._notes[-n:])

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def reverse(self) -> "NoteList":
        return NoteList(reversed(self._notes))

    def sort(self, by: SortBy = SortBy.TITLE) -> "NoteList":
        """Return a sorted copy, alphabetically by title or by date.

        Undated notes sort before dated ones.
        """
        if by is SortBy.TITLE:
            return NoteList(sorted(self._notes, key=_title_key))
        if by is SortBy.DATE:
            return NoteList(sorted(self._notes, key=_date_key))
        raise ValueError(f"unknown sort order {by!r}")

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_list(self) -> list["Note"]:
        return list(self._notes)

    def to_frame(self) -> "pl.DataFrame":
        """Return the notes as a Polars DataFrame, one row per note."""
        import polars as pl

        return pl.DataFrame(
            {
                "path": [n.path for n in self._notes],
                "title": [n.title for n in self._notes],
                "date": [n.date for n in self._notes],
                "tags": [list(n.tags) for n in self._notes],
                "length": [len(n.contents) for n in self._notes],
            },
            schema={
                "path": pl.Utf8,
                "title": pl.Utf8,
                "date": pl.Datetime,
                "tags": pl.List(pl.Utf8),
                "length": pl.Int64,
            },
        )

    def tree(self) -> "TreeNode":
        """Arrange the notes into a hierarchy by path."""
        from notestore.tree import build_tree

        return build_tree(self._notes)
