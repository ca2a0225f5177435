"""Composable note filters and the declarative :class:`Query`.

A filter is any ``Callable[[Note], bool]``. Filters combine with
:func:`and_`, :func:`or_` and :func:`not_`::

    from notestore import filters as f

    school = f.and_(f.path_prefix("school/"), f.not_(f.has_tag("@!archived")))
    recent = collection.filter(school, f.date_from(datetime(2021, 1, 1)))

Every primitive accepts several arguments and matches if *any* of them does.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from notestore.note import Note

Filter = Callable[["Note"], bool]


# ---------------------------------------------------------------------------
# Combinators
# ---------------------------------------------------------------------------


def and_(*filters: Filter) -> Filter:
    """True iff every filter is true. With no filters, always true."""

    def _and(note: "Note") -> bool:
        return all(f(note) for f in filters)

    return _and


def or_(*filters: Filter) -> Filter:
    """True iff any filter is true. With no filters, always false."""

    def _or(note: "Note") -> bool:
        return any(f(note) for f in filters)

    return _or


def not_(filter_: Filter) -> Filter:
    def _not(note: "Note") -> bool:
        return not filter_(note)

    return _not


def _any_of(name: str, values: tuple[Any, ...], test: Callable[["Note", Any], bool]) -> Filter:
    if not values:
        raise ValueError(f"{name}() needs at least one argument")
    return or_(*(lambda note, v=v: test(note, v) for v in values))


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


def path_prefix(*prefixes: str) -> Filter:
    return _any_of("path_prefix", prefixes, lambda note, p: note.path.startswith(p))


def path_exact(*paths: str) -> Filter:
    return _any_of("path_exact", paths, lambda note, p: note.path == p)


def title_contains(*substrings: str) -> Filter:
    return _any_of("title_contains", substrings, lambda note, s: s in note.title)


def title_exact(*titles: str) -> Filter:
    return _any_of("title_exact", titles, lambda note, t: note.title == t)


def content_contains(*substrings: str) -> Filter:
    return _any_of("content_contains", substrings, lambda note, s: s in note.contents)


def content_exact(*contents: str) -> Filter:
    return _any_of("content_exact", contents, lambda note, c: note.contents == c)


def has_tag(*tags: str) -> Filter:
    return _any_of("has_tag", tags, lambda note, t: t in note.tags)


def date_from(*dates: datetime) -> Filter:
    """Notes dated on or after any of *dates*. Undated notes never match."""
    return _any_of("date_from", dates, lambda note, d: note.date is not None and note.date >= d)


def date_until(*dates: datetime) -> Filter:
    """Notes dated on or before any of *dates*. Undated notes never match."""
    return _any_of("date_until", dates, lambda note, d: note.date is not None and note.date <= d)


def length_min(*lengths: int) -> Filter:
    """Notes whose contents are at least *n* characters long."""
    return _any_of("length_min", lengths, lambda note, n: len(note.contents) >= n)


def length_max(*lengths: int) -> Filter:
    """Notes whose contents are shorter than *n* characters.

    This is ``not_(length_min(n))``, so the bound is exclusive while
    :func:`length_min` is inclusive.
    """
    if not lengths:
        raise ValueError("length_max() needs at least one argument")
    return or_(*(not_(length_min(n)) for n in lengths))


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------

_Groups = list[list[Any]]


@dataclass
class Query:
    """Declarative filter in conjunctive normal form.

    Each attribute holds a list of OR-groups; all groups must match. The
    ``exclude_*`` attributes reject notes matching any value of a group::

        Query(tags=[["@!food", "@!drink"], ["@?favourite"]]).filter()

    keeps notes tagged (``@!food`` or ``@!drink``) and ``@?favourite``.
    """

    path_prefixes: _Groups = field(default_factory=list)
    paths: _Groups = field(default_factory=list)
    title_contains: _Groups = field(default_factory=list)
    titles: _Groups = field(default_factory=list)
    content_contains: _Groups = field(default_factory=list)
    contents: _Groups = field(default_factory=list)
    tags: _Groups = field(default_factory=list)
    dates_from: _Groups = field(default_factory=list)
    dates_until: _Groups = field(default_factory=list)
    lengths_min: _Groups = field(default_factory=list)
    lengths_max: _Groups = field(default_factory=list)

    exclude_path_prefixes: _Groups = field(default_factory=list)
    exclude_paths: _Groups = field(default_factory=list)
    exclude_title_contains: _Groups = field(default_factory=list)
    exclude_titles: _Groups = field(default_factory=list)
    exclude_content_contains: _Groups = field(default_factory=list)
    exclude_contents: _Groups = field(default_factory=list)
    exclude_tags: _Groups = field(default_factory=list)

    def filter(self) -> Filter:
        """Compile the query into a single filter."""
        clauses: list[Filter] = []
        for name, primitive in _INCLUDE.items():
            for group in getattr(self, name):
                if group:
                    clauses.append(primitive(*group))
        for name, primitive in _EXCLUDE.items():
            for group in getattr(self, name):
                if group:
                    clauses.append(not_(primitive(*group)))
        return and_(*clauses)

    def is_empty(self) -> bool:
        return not any(any(getattr(self, f.name)) for f in fields(self))

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Iterable[str]],
        date_format: str = "%Y-%m-%d %H:%M",
    ) -> "Query":
        """Build a query from flat, repeatable parameters.

        Keys are attribute names; each value is a sequence of strings, every
        string being one comma-separated OR-group::

            Query.from_params({"tags": ["@!food,@!drink", "@?favourite"]})

        Raises ``ValueError`` for unknown keys or malformed dates/lengths.
        """
        query = cls()
        known = {f.name for f in fields(cls)}
        for key, raw_groups in params.items():
            if key not in known:
                raise ValueError(f"unknown query parameter {key!r}")
            groups = getattr(query, key)
            for raw in raw_groups:
                values = [v.strip() for v in raw.split(",") if v.strip()]
                if not values:
                    continue
                if key in ("dates_from", "dates_until"):
                    groups.append([datetime.strptime(v, date_format) for v in values])
                elif key in ("lengths_min", "lengths_max"):
                    groups.append([int(v) for v in values])
                else:
                    groups.append(values)
        return query


_INCLUDE: dict[str, Callable[..., Filter]] = {
    "path_prefixes": path_prefix,
    "paths": path_exact,
    "title_contains": title_contains,
    "titles": title_exact,
    "content_contains": content_contains,
    "contents": content_exact,
    "tags": has_tag,
    "dates_from": date_from,
    "dates_until": date_until,
    "lengths_min": length_min,
    "lengths_max": length_max,
}

_EXCLUDE: dict[str, Callable[..., Filter]] = {
    "exclude_path_prefixes": path_prefix,
    "exclude_paths": path_exact,
    "exclude_title_contains": title_contains,
    "exclude_titles": title_exact,
    "exclude_content_contains": content_contains,
    "exclude_contents": content_exact,
    "exclude_tags": has_tag,
}
