"""Core Note, Link and Attachment dataclasses."""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any


class LinkKind(Enum):
    """How a link names its target.

    - ``TITLE``            ``[[Pizza]]``
    - ``TITLE_WITH_NAME``  ``[[Pizza](Alternate name)]``
    - ``PATH``             ``{{food/pizza}}``
    - ``PATH_WITH_NAME``   ``{{food/pizza}(Alternate name)}``
    """

    PATH = "path"
    PATH_WITH_NAME = "path-with-name"
    TITLE = "title"
    TITLE_WITH_NAME = "title-with-name"


@dataclass(eq=False)
class Link:
    """An outbound link from one note's body to another note."""

    kind: LinkKind
    #: Path or title of the note being linked to, depending on ``kind``.
    target: str
    name: str | None = None
    #: ``(start, end)`` offsets of the link markup within the parent's contents.
    span: tuple[int, int] = (0, 0)
    _parent: weakref.ReferenceType[Note] | None = field(default=None, repr=False)

    @property
    def parent(self) -> Note | None:
        """The note this link was parsed from, if it is still alive."""
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, note: Note | None) -> None:
        self._parent = weakref.ref(note) if note is not None else None

    @property
    def is_path_link(self) -> bool:
        return self.kind in (LinkKind.PATH, LinkKind.PATH_WITH_NAME)

    @property
    def is_title_link(self) -> bool:
        return self.kind in (LinkKind.TITLE, LinkKind.TITLE_WITH_NAME)

    @property
    def display(self) -> str:
        """Text a renderer should show for this link."""
        return self.name or self.target

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Link):
            return NotImplemented
        return (self.kind, self.target, self.name, self.span) == (
            other.kind,
            other.target,
            other.name,
            other.span,
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.target, self.name, self.span))

    def to_dict(self) -> dict[str, Any]:
        parent = self.parent
        return {
            "kind": self.kind.value,
            "target": self.target,
            "name": self.name,
            "span": list(self.span),
            "parent": parent.path if parent is not None else None,
        }


@dataclass
class Attachment:
    """A non-note file stored in the same folder as a note."""

    name: str
    #: Slash-separated path relative to the store root.
    rel_path: str
    abs_path: Path

    @property
    def ext(self) -> str:
        return PurePosixPath(self.name).suffix

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "rel_path": self.rel_path, "ext": self.ext}


@dataclass(eq=False)
class Note:
    """A single parsed note.

    Notes are compared by identity; two notes are "the same note" in a
    :class:`~notestore.collection.Collection` when their ``path`` matches.
    """

    path: str
    title: str
    contents: str
    original_contents: str = ""
    date: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    outbound_links: list[Link] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    mod_time: datetime | None = None
    #: Set for notes that were built in memory rather than read from disk.
    synthetic: bool = False

    def __post_init__(self) -> None:
        for link in self.outbound_links:
            link.parent = self

    @property
    def name(self) -> str:
        """Last component of the path."""
        return PurePosixPath(self.path).name

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "title": self.title,
            "date": self.date.isoformat() if self.date else None,
            "contents": self.contents,
            "metadata": self.metadata,
            "tags": self.tags,
            "links": [link.to_dict() for link in self.outbound_links],
            "attachments": [a.to_dict() for a in self.attachments],
            "synthetic": self.synthetic,
        }
