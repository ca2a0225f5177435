"""Link graph: the notes of a collection as a :mod:`networkx` digraph.

Nodes are note paths (with a ``title`` attribute); an edge ``a -> b`` means
note ``a`` links to note ``b`` at least once, and its ``links`` attribute
counts how many times.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import networkx as nx

if TYPE_CHECKING:
    from notestore.collection import Collection


def link_graph(collection: "Collection") -> nx.DiGraph:
    """Return the directed link graph of *collection*.

    Links are matched the same way as
    :meth:`~notestore.collection.Collection.find_links_to`, so a title link
    produces an edge to every note sharing that title.
    """
    G: nx.DiGraph = nx.DiGraph()
    for note in collection:
        G.add_node(note.path, title=note.title)

    for note in collection:
        for link in collection.find_links_to(note):
            parent = link.parent
            if parent is None or parent.path not in G:
                continue
            if G.has_edge(parent.path, note.path):
                G.edges[parent.path, note.path]["links"] += 1
            else:
                G.add_edge(parent.path, note.path, links=1)
    return G


def orphans(collection: "Collection") -> list[str]:
    """Paths of notes with no links in or out, sorted."""
    G = link_graph(collection)
    return sorted(path for path in G.nodes if G.degree(path) == 0)
