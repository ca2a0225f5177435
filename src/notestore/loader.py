"""Load a directory of notes into a :class:`Collection`.

Every folder holding an ``entry.md`` file is a note; its path is the folder
path relative to the root (``food/pizza``). Any other file in that folder is
an attachment of the note.

:func:`load_directory` parses files on a small pool of worker threads:

* a walker thread discovers note files and feeds a bounded job queue, then
  puts one stop marker per worker;
* each worker reads and parses one file at a time and posts either a note
  or a diagnostic to the results queue, then a done marker when it stops;
* the calling thread drains the results queue until every worker is done.

Only the calling thread ever touches the collection. Unreadable or
malformed note files become diagnostics; errors walking the directory
itself abort the load.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from notestore.collection import Collection
from notestore.errors import (
    AlreadyExistsError,
    ConfigError,
    NoteStoreError,
    ParseFailedError,
    ReadFailedError,
)
from notestore.note import Attachment, Note
from notestore.parser import Parser

if TYPE_CHECKING:
    from notestore.config import StoreConfig

_logger = logging.getLogger(__name__)

ENTRY_FILENAME = "entry.md"
#: Directories that are never descended into.
RESERVED_DIRS = frozenset({".git"})
DEFAULT_WORKERS = 3


class LoadResult(NamedTuple):
    collection: Collection
    #: Per-file read/parse failures that did not stop the load.
    diagnostics: list[NoteStoreError]


@dataclass
class EntryFile:
    """A discovered note file and the attachments beside it."""

    path: str
    file: Path
    attachments: list[Attachment] = field(default_factory=list)


class _Fatal:
    """Wraps an exception that must abort the load once workers drain."""

    def __init__(self, exc: BaseException) -> None:
        self.exc = exc


_STOP = object()
_DONE = object()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def _raise(exc: OSError) -> None:
    raise exc


def discover(root: Path, logger: logging.Logger | None = None) -> Iterator[EntryFile]:
    """Yield a job for every note file under *root*, with its attachments.

    Raises ``OSError`` if any directory cannot be listed.
    """
    log = logger or _logger
    root = Path(root)
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames[:] = sorted(d for d in dirnames if d not in RESERVED_DIRS)
        rel = Path(dirpath).relative_to(root).as_posix()
        rel = "" if rel == "." else rel

        others = sorted(name for name in filenames if name != ENTRY_FILENAME)
        if ENTRY_FILENAME not in filenames:
            if others:
                log.debug("Ignoring %d file(s) in %r: folder has no %s", len(others), rel, ENTRY_FILENAME)
            continue

        attachments = [
            Attachment(
                name=name,
                rel_path=f"{rel}/{name}" if rel else name,
                abs_path=Path(dirpath) / name,
            )
            for name in others
        ]
        yield EntryFile(path=rel, file=Path(dirpath) / ENTRY_FILENAME, attachments=attachments)


def load_entry(job: EntryFile, parser: Parser) -> Note:
    """Read and parse one note file.

    The note's date falls back to the file's modification time.
    """
    try:
        text = job.file.read_text(encoding="utf-8")
        stat = job.file.stat()
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadFailedError(job.path, exc) from exc

    note = parser.parse(job.path, text)
    note.mod_time = datetime.fromtimestamp(stat.st_mtime)
    if note.date is None:
        note.date = note.mod_time
    note.attachments = job.attachments
    return note


def _check_root(root: Path) -> Path:
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(f"{root} is not a directory")
    return root


# ---------------------------------------------------------------------------
# Threads
# ---------------------------------------------------------------------------


def _walk(root: Path, jobs: queue.Queue, results: queue.Queue, workers: int, log: logging.Logger) -> None:
    try:
        for job in discover(root, log):
            jobs.put(job)
    except Exception as exc:  # noqa: BLE001
        results.put(_Fatal(exc))
    finally:
        for _ in range(workers):
            jobs.put(_STOP)


def _work(jobs: queue.Queue, results: queue.Queue, parser: Parser) -> None:
    try:
        while True:
            job = jobs.get()
            if job is _STOP:
                break
            try:
                results.put(load_entry(job, parser))
            except (ReadFailedError, ParseFailedError) as exc:
                results.put(exc)
    except Exception as exc:  # noqa: BLE001
        # Re-raised by the coordinating thread.
        results.put(_Fatal(exc))
        # Drain up to the stop marker.
        while jobs.get() is not _STOP:
            pass
    finally:
        results.put(_DONE)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_directory(
    root: Path | str,
    parser: Parser | None = None,
    *,
    workers: int = DEFAULT_WORKERS,
    logger: logging.Logger | None = None,
) -> LoadResult:
    """Load every note under *root* using *workers* parsing threads.

    Notes are added in no particular order. Raises ``OSError`` if the
    directory tree cannot be walked.
    """
    if workers < 1:
        raise ValueError("workers must be at least 1")
    log = logger or _logger
    root = _check_root(Path(root))
    parser = parser or Parser(logger=log)
    start = time.perf_counter()

    jobs: queue.Queue = queue.Queue(maxsize=workers * 4)
    results: queue.Queue = queue.Queue()
    threads = [
        threading.Thread(target=_walk, args=(root, jobs, results, workers, log), name="notestore-walker", daemon=True)
    ]
    threads += [
        threading.Thread(target=_work, args=(jobs, results, parser), name=f"notestore-worker-{i}", daemon=True)
        for i in range(workers)
    ]
    for thread in threads:
        thread.start()

    collection = Collection(logger=log)
    diagnostics: list[NoteStoreError] = []
    fatal: BaseException | None = None
    live = workers
    while live:
        item = results.get()
        if item is _DONE:
            live -= 1
        elif isinstance(item, _Fatal):
            fatal = fatal or item.exc
        elif isinstance(item, NoteStoreError):
            log.warning("%s", item)
            diagnostics.append(item)
        else:
            try:
                collection.add(item)
            except AlreadyExistsError as exc:
                fatal = fatal or exc

    for thread in threads:
        thread.join()

    if fatal is not None:
        raise fatal

    log.info(
        "Loaded %d notes from %s (%d problems) in %.3fs",
        len(collection),
        root,
        len(diagnostics),
        time.perf_counter() - start,
    )
    return LoadResult(collection, diagnostics)


def load_directory_sequential(
    root: Path | str,
    parser: Parser | None = None,
    *,
    logger: logging.Logger | None = None,
) -> LoadResult:
    """Single-threaded equivalent of :func:`load_directory`."""
    log = logger or _logger
    root = _check_root(Path(root))
    parser = parser or Parser(logger=log)
    start = time.perf_counter()

    collection = Collection(logger=log)
    diagnostics: list[NoteStoreError] = []
    for job in discover(root, log):
        try:
            note = load_entry(job, parser)
        except (ReadFailedError, ParseFailedError) as exc:
            log.warning("%s", exc)
            diagnostics.append(exc)
            continue
        collection.add(note)

    log.info(
        "Loaded %d notes from %s (%d problems) in %.3fs",
        len(collection),
        root,
        len(diagnostics),
        time.perf_counter() - start,
    )
    return LoadResult(collection, diagnostics)


def load_from_config(config: "StoreConfig", logger: logging.Logger | None = None) -> LoadResult:
    """Load the store described by *config*."""
    if config.path is None:
        raise ConfigError("<config>", "no store path configured")
    parser = Parser.from_config(config, logger=logger)
    return load_directory(config.path, parser, workers=config.workers, logger=logger)
