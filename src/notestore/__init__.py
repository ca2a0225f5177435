"""notestore: an in-memory, queryable index over a folder of notes."""

import logging

from notestore.collection import Collection
from notestore.config import StoreConfig, load_config
from notestore.errors import (
    AlreadyExistsError,
    ConfigError,
    DoesNotExistError,
    NoteStoreError,
    OutOfBoundsError,
    ParseFailedError,
    ReadFailedError,
)
from notestore.filters import Filter, Query
from notestore.listing import NoteList, SortBy
from notestore.loader import LoadResult, load_directory, load_directory_sequential, load_from_config
from notestore.note import Attachment, Link, LinkKind, Note
from notestore.parser import Parser

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Attachment",
    "Collection",
    "Filter",
    "Link",
    "LinkKind",
    "LoadResult",
    "Note",
    "NoteList",
    "Parser",
    "Query",
    "SortBy",
    "StoreConfig",
    "load_config",
    "load_directory",
    "load_directory_sequential",
    "load_from_config",
    "AlreadyExistsError",
    "ConfigError",
    "DoesNotExistError",
    "NoteStoreError",
    "OutOfBoundsError",
    "ParseFailedError",
    "ReadFailedError",
]
