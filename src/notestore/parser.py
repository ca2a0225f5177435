"""Front-matter, tag and link parser.

A note's source text looks like::

    ---
    title: "Pizza"
    date: "2020-08-08 20:00"
    tags: ["@!food"]
    ---

    Pizza is great. See {{food/beans}(beans)} or [[Hunger]]. @?cheesy

The parser is pure: it never touches the filesystem. Dates missing from the
front matter are left as ``None`` for the loader to fill in.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

import yaml

from notestore.errors import ParseFailedError
from notestore.note import Link, LinkKind, Note

if TYPE_CHECKING:
    from notestore.config import StoreConfig

_logger = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M"
DEFAULT_BUILTIN_TAG_PREFIX = "@!"
DEFAULT_CUSTOM_TAG_PREFIX = "@?"

# Opening delimiter line
_FRONTMATTER_OPEN_RE = re.compile(r"\A---[ \t]*(?:\r?\n|\Z)")
# Complete YAML front-matter block, plus the blank lines after it
_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)(?:[ \t]*\r?\n)*",
    re.DOTALL | re.MULTILINE,
)
_INITIAL_NEWLINES_RE = re.compile(r"\A(?:[ \t]*\r?\n)+")
# Sentence must end on the first line of the body
_FIRST_SENTENCE_RE = re.compile(r"\A(.*?)[.!?](?:\s|\Z)")

# [[Title](Name)] | [[Title]] | {{path}(Name)} | {{path}}
_LINK_RE = re.compile(
    r"\[\[(?P<title_n>[^\[\]]+?)\]\((?P<title_name>[^()]+?)\)\]"
    r"|\[\[(?P<title>[^\[\]]+?)\]\]"
    r"|\{\{(?P<path_n>[^{}]+?)\}\((?P<path_name>[^()]+?)\)\}"
    r"|\{\{(?P<path>[^{}]+?)\}\}"
)

_RESERVED_KEYS = ("title", "date", "tags")

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that leaves timestamp-looking scalars as strings."""


_FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


@dataclass
class FrontMatter:
    """The recognised front-matter keys plus everything else, verbatim."""

    title: str | None = None
    date: datetime | None = None
    tags: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)


def split_front_matter(text: str, path: str = "") -> tuple[str | None, str]:
    """Split raw YAML front matter from body text.

    Returns ``(yaml_text, body)``; ``yaml_text`` is ``None`` when the text
    does not open with a ``---`` line. Raises :class:`ParseFailedError` for
    an unterminated block.
    """
    if not _FRONTMATTER_OPEN_RE.match(text):
        return None, _INITIAL_NEWLINES_RE.sub("", text)
    match = _FRONTMATTER_RE.match(text)
    if not match:
        raise ParseFailedError(path, "front matter is not terminated by a '---' line")
    return match.group(1), text[match.end() :]


def parse_front_matter(text: str, path: str = "") -> tuple[dict[str, Any], str]:
    """Split YAML front matter from body text and decode it.

    Returns ``(metadata_dict, body)``; ``metadata_dict`` is empty when there
    is no front-matter block.
    """
    raw, body = split_front_matter(text, path)
    if raw is None:
        return {}, body
    try:
        meta = yaml.load(raw, Loader=_FrontMatterLoader)  # noqa: S506
    except (yaml.YAMLError, ValueError) as exc:
        raise ParseFailedError(path, f"couldn't decode front matter: {exc}") from exc
    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise ParseFailedError(path, "front matter must be a mapping")
    return meta, body


def decode_front_matter(meta: dict[str, Any], date_format: str, path: str = "") -> FrontMatter:
    """Pull ``title``, ``date`` and ``tags`` out of a decoded mapping."""
    fm = FrontMatter(extra={str(k): v for k, v in meta.items() if k not in _RESERVED_KEYS})

    title = meta.get("title")
    if title is not None:
        if not isinstance(title, str):
            raise ParseFailedError(path, "'title' in front matter must be a string")
        fm.title = title if title.strip() else None

    raw_date = meta.get("date")
    if isinstance(raw_date, str):
        try:
            parsed = datetime.strptime(raw_date, date_format)
        except ValueError as exc:
            raise ParseFailedError(
                path, f"couldn't parse 'date' with format {date_format!r}: {exc}"
            ) from exc
        # Aware dates (%z layouts) are kept as local naive time, like mod times.
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        fm.date = parsed
    elif raw_date is not None:
        raise ParseFailedError(path, "'date' in front matter must be a string")

    tags = meta.get("tags")
    if isinstance(tags, str):
        tags = [t.strip() for t in tags.split(",") if t.strip()]
    if tags is not None:
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise ParseFailedError(path, "'tags' in front matter must be a list of strings")
        fm.tags = list(tags)

    return fm


def first_sentence(text: str) -> str:
    """Return the first sentence of *text* without its closing punctuation.

    Returns an empty string when no sentence terminator is found.
    """
    match = _FIRST_SENTENCE_RE.match(text)
    if not match:
        return ""
    return " ".join(match.group(1).split()).rstrip(".!? ")


def tag_pattern(builtin_prefix: str, custom_prefix: str) -> re.Pattern[str]:
    """Compile the inline-tag regex for the two prefixes."""
    # Longest prefix first so "@!!" is not swallowed by "@!".
    prefixes = sorted({builtin_prefix, custom_prefix} - {""}, key=len, reverse=True)
    if not prefixes:
        raise ValueError("at least one tag prefix must be non-empty")
    alternation = "|".join(re.escape(p) for p in prefixes)
    return re.compile(rf"(?:{alternation})[\w-]+")


def parse_tags(
    text: str,
    builtin_prefix: str = DEFAULT_BUILTIN_TAG_PREFIX,
    custom_prefix: str = DEFAULT_CUSTOM_TAG_PREFIX,
) -> list[str]:
    """Return every inline tag in *text*, prefix included, in textual order."""
    return tag_pattern(builtin_prefix, custom_prefix).findall(text)


def parse_links(text: str) -> list[Link]:
    """Return every link in *text*, in textual order."""
    links: list[Link] = []
    for m in _LINK_RE.finditer(text):
        if m.group("title_n") is not None:
            kind, target, name = LinkKind.TITLE_WITH_NAME, m.group("title_n"), m.group("title_name")
        elif m.group("title") is not None:
            kind, target, name = LinkKind.TITLE, m.group("title"), None
        elif m.group("path_n") is not None:
            kind, target, name = LinkKind.PATH_WITH_NAME, m.group("path_n"), m.group("path_name")
        else:
            kind, target, name = LinkKind.PATH, m.group("path"), None
        links.append(Link(kind=kind, target=target, name=name, span=m.span()))
    return links


def replace_links(note: Note, replacement: Callable[[Link], str]) -> str:
    """Return ``note.contents`` with every link's markup replaced.

    *replacement* is called once per link; spans recorded at parse time are
    used directly so the contents are not re-scanned.
    """
    parts: list[str] = []
    cursor = 0
    for link in sorted(note.outbound_links, key=lambda lk: lk.span[0]):
        start, end = link.span
        parts.append(note.contents[cursor:start])
        parts.append(replacement(link))
        cursor = end
    parts.append(note.contents[cursor:])
    return "".join(parts)


class Parser:
    """Turns note text into :class:`Note` records."""

    def __init__(
        self,
        date_format: str = DEFAULT_DATE_FORMAT,
        builtin_tag_prefix: str = DEFAULT_BUILTIN_TAG_PREFIX,
        custom_tag_prefix: str = DEFAULT_CUSTOM_TAG_PREFIX,
        logger: logging.Logger | None = None,
    ) -> None:
        self.date_format = date_format
        self.builtin_tag_prefix = builtin_tag_prefix
        self.custom_tag_prefix = custom_tag_prefix
        self._tag_re = tag_pattern(builtin_tag_prefix, custom_tag_prefix)
        self._log = logger or _logger

    @classmethod
    def from_config(cls, config: "StoreConfig", logger: logging.Logger | None = None) -> "Parser":
        return cls(
            date_format=config.date_format,
            builtin_tag_prefix=config.builtin_tag_prefix,
            custom_tag_prefix=config.custom_tag_prefix,
            logger=logger,
        )

    def parse(self, path: str, text: str) -> Note:
        """Parse *text* into a note stored at *path*.

        Raises :class:`ParseFailedError` on malformed front matter, an
        unparseable date, or when no title can be derived.
        """
        meta, body = parse_front_matter(text, path)
        if not meta:
            self._log.debug("Empty or missing front matter in %s", path)
        fm = decode_front_matter(meta, self.date_format, path)

        title = fm.title
        if title is None:
            title = first_sentence(body)
            if not title:
                raise ParseFailedError(
                    path, "could not locate title as front matter or initial sentence"
                )
            self._log.debug("Derived title %r for %s from first sentence", title, path)

        return Note(
            path=path,
            title=title,
            contents=body,
            original_contents=text,
            date=fm.date,
            metadata=fm.extra,
            tags=fm.tags + self._tag_re.findall(body),
            outbound_links=parse_links(body),
        )
