"""Lexical entries persisted in a single LIFT file."""

from __future__ import annotations

import copy
import datetime
import logging
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from lxml import etree

from lift_editor import dates as _dates
from lift_editor import exporter as _exporter
from lift_editor import importer as _importer
from lift_editor.exceptions import (
    DuplicateEntityError,
    EntityNotFoundError,
    RepositoryClosedError,
    StorageError,
)
from lift_editor.lift_schema import DEFAULT_PRODUCER, LIFT_VERSION
from lift_editor.models import LexEntry
from lift_editor.xmlhelpers import detach_element

logger = logging.getLogger(__name__)


class LiftRepository:
    """Entries loaded from a LIFT file, written back in place on save.

    The repository keeps the parsed document alongside the entries. Saving
    edits a copy of that document, replaces the file atomically and only then
    adopts the copy, so a failed save leaves both the file and the in-memory
    document as they were. One lock serializes every read and write.

    The repository assumes it is the only writer of its file.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        producer: str = DEFAULT_PRODUCER,
        lift_version: str = LIFT_VERSION,
    ) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()
        self._closed = False

        if self._path.exists():
            try:
                data = self._path.read_bytes()
            except OSError as e:
                raise StorageError(f"Failed to read {self._path}: {e}") from e
            self._tree = _importer.parse_document(data, str(self._path))
        else:
            logger.info("No file at %s; starting an empty document", self._path)
            self._tree = _importer.new_document(producer, lift_version)

        entries = _importer.read_entries(self._tree.getroot())
        self._entries: dict[str, LexEntry] = {e.id: e for e in entries}
        self._persisted: set[str] = set(self._entries)
        self._last_modified = self._compute_last_modified()
        logger.info("Loaded %d entries from %s", len(self._entries), self._path)

    @classmethod
    def load(cls, path: str | Path, **kwargs: Any) -> LiftRepository:
        """Open the repository stored at *path*."""
        return cls(path, **kwargs)

    def close(self) -> None:
        """Release the in-memory state. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._entries = {}
            self._persisted = set()
            logger.debug("Closed repository %s", self._path)

    def __enter__(self) -> LiftRepository:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_modified(self) -> datetime.datetime:
        """Newest ``date_modified`` over all entries as of the last load or save."""
        with self._lock:
            self._check_open()
            return self._last_modified

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        with self._lock:
            self._check_open()
            return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        with self._lock:
            self._check_open()
            return entry_id in self._entries

    def get(self, entry_id: str) -> LexEntry:
        with self._lock:
            self._check_open()
            try:
                return self._entries[entry_id]
            except KeyError:
                raise EntityNotFoundError(f"Entry not found: {entry_id!r}") from None

    def get_all(self) -> list[LexEntry]:
        with self._lock:
            self._check_open()
            return list(self._entries.values())

    def find_entries(
        self,
        *,
        form: str | None = None,
        lang: str | None = None,
        trait: tuple[str, str] | None = None,
    ) -> list[LexEntry]:
        """Entries matching every given criterion.

        *form* matches a lexical form exactly, restricted to *lang* when
        given; *lang* alone matches entries with a form in that language.
        *trait* is a ``(name, value)`` pair carried by the entry or one of
        its senses.
        """
        with self._lock:
            self._check_open()
            return [
                e for e in self._entries.values()
                if _matches(e, form=form, lang=lang, trait=trait)
            ]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_entry(self, id: str | None = None, guid: str | None = None) -> LexEntry:
        """Register a new entry. It reaches the file on its first save."""
        return self.add_entry(LexEntry(id, guid))

    def add_entry(self, entry: LexEntry) -> LexEntry:
        """Register an entry built by the caller. It reaches the file on its first save."""
        with self._lock:
            self._check_open()
            if entry.id in self._entries:
                raise DuplicateEntityError(f"Entry already exists: {entry.id!r}")
            self._entries[entry.id] = entry
            return entry

    def save_item(self, entry: LexEntry) -> None:
        """Persist one entry."""
        self.save_items([entry])

    def save_items(self, entries: Iterable[LexEntry]) -> None:
        """Persist several entries with a single flush of the file."""
        entries = list(entries)
        if not entries:
            return

        with self._lock:
            self._check_open()
            tree = copy.deepcopy(self._tree)
            root = tree.getroot()
            for entry in entries:
                self._write_entry(root, entry)

            _exporter.write_document(tree, self._path)

            self._tree = tree
            for entry in entries:
                self._persisted.add(entry.id)
                entry.mark_clean()
            self._last_modified = self._compute_last_modified()
            logger.info("Saved %d entries to %s", len(entries), self._path)

    def delete(self, entry_id: str) -> None:
        """Remove an entry from memory and from the file."""
        with self._lock:
            self._check_open()
            if entry_id not in self._entries:
                raise EntityNotFoundError(f"Entry not found: {entry_id!r}")

            tree = copy.deepcopy(self._tree)
            node = _exporter.find_entry_node(tree.getroot(), entry_id)
            if node is not None:
                detach_element(node)
            _exporter.write_document(tree, self._path)

            self._tree = tree
            del self._entries[entry_id]
            self._persisted.discard(entry_id)
            self._last_modified = self._compute_last_modified()
            logger.info("Deleted entry %s from %s", entry_id, self._path)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write_entry(self, root: etree._Element, entry: LexEntry) -> None:
        if self._entries.get(entry.id) is not entry:
            raise EntityNotFoundError(
                f"Entry not found in this repository: {entry.id!r}"
            )

        node = _exporter.find_entry_node(root, entry.id)
        if node is None:
            if entry.id in self._persisted:
                raise EntityNotFoundError(
                    f"Entry {entry.id!r} has no node in {self._path}"
                )
            node = _exporter.create_entry_node(root)
            _exporter.write_entry(node, entry)
            logger.debug("Created <entry> %s", entry.id)
        elif entry.is_dirty:
            _exporter.write_entry(node, entry)

    def _compute_last_modified(self) -> datetime.datetime:
        if not self._entries:
            return _dates.EPOCH
        return max(e.date_modified for e in self._entries.values())

    def _check_open(self) -> None:
        if self._closed:
            raise RepositoryClosedError(f"Repository is closed: {self._path}")


def _matches(
    entry: LexEntry,
    *,
    form: str | None,
    lang: str | None,
    trait: tuple[str, str] | None,
) -> bool:
    forms = entry.lexical_form
    if lang is not None:
        if lang not in forms:
            return False
        if form is not None and forms[lang] != form:
            return False
    elif form is not None and form not in forms.values():
        return False

    if trait is not None:
        name, value = trait
        owners = [entry, *entry.senses]
        if not any(value in owner.trait_values(name) for owner in owners):
            return False
    return True
