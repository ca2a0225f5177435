"""Arrange notes into a folder hierarchy.

Intermediate folders that hold no note of their own still get a node (a
"passthrough") so that, for example::

    school                      note
    └── further-maths           passthrough
        └── syllabus            note
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from notestore.note import Note


@dataclass(eq=False)
class TreeNode:
    path: str
    note: "Note | None" = None
    level: int = 0
    parent: "TreeNode | None" = field(default=None, repr=False)
    children: list["TreeNode"] = field(default_factory=list)

    @property
    def is_note(self) -> bool:
        return self.note is not None

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def walk(self) -> Iterator["TreeNode"]:
        """Yield this node and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, path: str) -> "TreeNode | None":
        for node in self.walk():
            if node.path == path:
                return node
        return None


def _ancestors(path: str) -> list[str]:
    parts = path.split("/")
    return ["/".join(parts[:i]) for i in range(1, len(parts))]


def build_tree(notes: Iterable["Note"]) -> TreeNode:
    """Return the root node (path ``""``) of a tree holding *notes*."""
    root = TreeNode(path="")
    nodes: dict[str, TreeNode] = {"": root}

    for note in notes:
        if note.path == "":
            root.note = note
            continue
        for path in [*_ancestors(note.path), note.path]:
            nodes.setdefault(path, TreeNode(path=path))
        nodes[note.path].note = note

    for path, node in nodes.items():
        if path == "":
            continue
        parent_path = path.rsplit("/", 1)[0] if "/" in path else ""
        node.parent = nodes[parent_path]
        node.parent.children.append(node)

    for node in root.walk():
        node.children.sort(key=lambda n: n.path)
        for child in node.children:
            child.level = node.level + 1

    return root
