"""Collection: in-memory index of notes by path and by title."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from notestore.errors import AlreadyExistsError, DoesNotExistError
from notestore.filters import Filter, and_
from notestore.listing import NoteList
from notestore.note import Link, Note

if TYPE_CHECKING:
    import networkx as nx

_logger = logging.getLogger(__name__)


class Collection:
    """A searchable set of notes that can resolve links between them.

    Paths are unique; titles are not, so the title index maps each title to
    a bucket of notes. Only one thread may mutate a collection at a time.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._by_path: dict[str, Note] = {}
        self._by_title: dict[str, list[Note]] = {}
        self._log = logger or _logger

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, note: Note) -> None:
        """Index *note*; raises :class:`AlreadyExistsError` if its path is taken."""
        if note.path in self._by_path:
            raise AlreadyExistsError(note.path, note.title)
        bucket = self._by_title.get(note.title, [])
        if any(existing.path == note.path for existing in bucket):
            raise AlreadyExistsError(note.path, note.title)

        self._by_path[note.path] = note
        self._by_title.setdefault(note.title, []).append(note)
        self._log.debug("Indexed %s (%r)", note.path, note.title)

    def add_many(self, *notes: Note) -> None:
        """Add each note in turn, stopping at the first failure."""
        for note in notes:
            self.add(note)

    def delete(self, note: Note) -> None:
        """Remove *note*; raises :class:`DoesNotExistError` if it isn't indexed."""
        if note.path not in self._by_path:
            raise DoesNotExistError(note.path, note.title)
        bucket = self._by_title.get(note.title)
        if not bucket:
            raise DoesNotExistError(note.path, note.title)

        for i, existing in enumerate(bucket):
            if existing.path == note.path:
                break
        else:
            raise DoesNotExistError(note.path, note.title)

        # Buckets are unordered: swap with the last element and pop.
        bucket[i] = bucket[-1]
        bucket.pop()
        if not bucket:
            del self._by_title[note.title]
        del self._by_path[note.path]
        self._log.debug("Removed %s (%r)", note.path, note.title)

    def copy(self) -> "Collection":
        """Return a structural copy sharing the same note objects."""
        new = Collection(logger=self._log)
        new._by_path = dict(self._by_path)
        new._by_title = {title: list(bucket) for title, bucket in self._by_title.items()}
        return new

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._by_path)

    def __iter__(self) -> Iterator[Note]:
        return iter(list(self._by_path.values()))

    def __contains__(self, note: object) -> bool:
        return isinstance(note, Note) and note.path in self._by_path

    def contains(self, note: Note) -> bool:
        return note in self

    def get(self, path: str) -> Note | None:
        return self._by_path.get(path)

    def by_title(self, title: str) -> list[Note]:
        """Every note with exactly this title, in no particular order."""
        return list(self._by_title.get(title, []))

    def resolve_link(self, link: Link) -> Note | None:
        """Return the note *link* points to, or ``None``.

        Title links may be ambiguous. The first note in the title's bucket
        wins: the earliest added note, unless a delete from that bucket has
        since swapped another note into first place.
        """
        if link.is_path_link:
            return self._by_path.get(link.target)
        bucket = self._by_title.get(link.target)
        if not bucket:
            return None
        return bucket[0]

    def find_links_to(self, note: Note) -> list[Link]:
        """Return every link in the collection that points at *note*.

        Each returned link's ``parent`` is the note it was found in. This is a
        linear scan over all outbound links.
        """
        found: list[Link] = []
        for existing in self._by_path.values():
            for link in existing.outbound_links:
                if link.is_path_link and link.target == note.path:
                    found.append(link)
                elif link.is_title_link and link.target == note.title:
                    found.append(link)
        return found

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def filter(self, *filters: Filter) -> "Collection":
        """Return a new collection holding only notes that pass every filter.

        The collection itself is left untouched.
        """
        predicate = and_(*filters)
        filtered = self.copy()
        for note in self._by_path.values():
            if not predicate(note):
                filtered.delete(note)
        return filtered

    def to_list(self) -> NoteList:
        """All notes in index order (insertion order until sorted)."""
        return NoteList(self._by_path.values())

    def graph(self) -> "nx.DiGraph":
        """Directed graph of the links between notes in this collection."""
        from notestore.graph import link_graph

        return link_graph(self)

    def __repr__(self) -> str:
        return f"Collection({len(self)} notes)"
