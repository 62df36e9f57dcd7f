"""Domain model for lexical entries, with change tracking.

Entries are mutable. Every mutator returns whether it changed anything; an
effective change anywhere inside an entry (its lexical form, one of its
senses, a trait) marks the entry dirty and stamps ``date_modified``. Setting
a value that is already there is a no-op and leaves both untouched.
"""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from lift_editor import dates as _dates
from lift_editor.exceptions import DuplicateEntityError, EntityNotFoundError


@dataclass(frozen=True, slots=True)
class Trait:
    """A free-form name/value pair. Names may repeat on one owner."""

    name: str
    value: str


class MultiText(Mapping[str, str]):
    """Text keyed by language tag, in insertion order."""

    __slots__ = ("_forms", "_on_change")

    def __init__(self, forms: Mapping[str, str] | None = None) -> None:
        self._forms: dict[str, str] = {}
        self._on_change: Callable[[], None] | None = None
        for lang, text in (forms or {}).items():
            if text:
                self._forms[lang] = text

    def __getitem__(self, lang: str) -> str:
        return self._forms[lang]

    def __iter__(self) -> Iterator[str]:
        return iter(self._forms)

    def __len__(self) -> int:
        return len(self._forms)

    def __repr__(self) -> str:
        return f"MultiText({self._forms!r})"

    def set(self, lang: str, text: str | None) -> bool:
        """Set the text for *lang*; an empty text removes the language."""
        if not text:
            return self.remove(lang)
        if self._forms.get(lang) == text:
            return False
        self._forms[lang] = text
        self._changed()
        return True

    def remove(self, lang: str) -> bool:
        if lang not in self._forms:
            return False
        del self._forms[lang]
        self._changed()
        return True

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()


class _TraitBearer:
    """Shared trait handling for entries and senses."""

    _traits: list[Trait]

    @property
    def traits(self) -> tuple[Trait, ...]:
        return tuple(self._traits)

    def trait_values(self, name: str) -> list[str]:
        return [t.value for t in self._traits if t.name == name]

    def add_trait(self, name: str, value: str) -> bool:
        """Append a trait; traits of the same name may repeat."""
        self._traits.append(Trait(name, value))
        self._changed()
        return True

    def set_trait(self, name: str, value: str) -> bool:
        """Replace every trait called *name* with a single one.

        The new trait takes the position of the first existing one, or is
        appended when there was none.
        """
        new = Trait(name, value)
        current = [t for t in self._traits if t.name == name]
        if current == [new]:
            return False

        traits: list[Trait] = []
        placed = False
        for t in self._traits:
            if t.name != name:
                traits.append(t)
            elif not placed:
                traits.append(new)
                placed = True
        if not placed:
            traits.append(new)
        self._traits = traits
        self._changed()
        return True

    def remove_traits(self, name: str) -> bool:
        traits = [t for t in self._traits if t.name != name]
        if len(traits) == len(self._traits):
            return False
        self._traits = traits
        self._changed()
        return True

    def _changed(self) -> None:
        raise NotImplementedError


class Sense(_TraitBearer):
    """One meaning of a lexical entry."""

    def __init__(
        self,
        id: str | None = None,
        *,
        definition: Mapping[str, str] | None = None,
        traits: Iterable[Trait] = (),
    ) -> None:
        self._id = id or str(uuid.uuid4())
        self._definition = MultiText(definition)
        self._definition._on_change = self._changed
        self._traits = list(traits)
        self._on_change: Callable[[], None] | None = None

    @property
    def id(self) -> str:
        return self._id

    @property
    def definition(self) -> MultiText:
        return self._definition

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sense):
            return NotImplemented
        return (
            self._id == other._id
            and self._definition == other._definition
            and self._traits == other._traits
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Sense(id={self._id!r}, definition={dict(self._definition)!r}, "
            f"traits={self._traits!r})"
        )

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()


class LexEntry(_TraitBearer):
    """A lexical entry: identity, timestamps, forms, senses and traits."""

    def __init__(
        self,
        id: str | None = None,
        guid: str | None = None,
        *,
        date_created: datetime.datetime | None = None,
        date_modified: datetime.datetime | None = None,
        lexical_form: Mapping[str, str] | None = None,
        senses: Iterable[Sense] = (),
        traits: Iterable[Trait] = (),
    ) -> None:
        self._guid = guid or str(uuid.uuid4())
        self._id = id or self._guid

        created = _dates.truncate(date_created or date_modified or _dates.utcnow())
        modified = _dates.truncate(date_modified or created)
        self._date_created = created
        self._date_modified = max(modified, created)

        self._lexical_form = MultiText(lexical_form)
        self._lexical_form._on_change = self._changed
        self._senses: list[Sense] = []
        for sense in senses:
            self._attach(sense)
        self._traits = list(traits)
        self._dirty = False

    # ------------------------------------------------------------------
    # Identity and state
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def guid(self) -> str:
        return self._guid

    @property
    def date_created(self) -> datetime.datetime:
        return self._date_created

    @property
    def date_modified(self) -> datetime.datetime:
        return self._date_modified

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def mark_clean(self) -> None:
        """Called by the repository once the entry has been flushed."""
        self._dirty = False

    @property
    def lexical_form(self) -> MultiText:
        return self._lexical_form

    # ------------------------------------------------------------------
    # Senses
    # ------------------------------------------------------------------

    @property
    def senses(self) -> tuple[Sense, ...]:
        return tuple(self._senses)

    def get_sense(self, sense_id: str) -> Sense:
        for sense in self._senses:
            if sense.id == sense_id:
                return sense
        raise EntityNotFoundError(f"Sense not found: {sense_id!r}")

    def add_sense(self, sense: Sense | None = None) -> Sense:
        """Append *sense* (or a new empty one) and return it."""
        sense = sense or Sense()
        if any(s.id == sense.id for s in self._senses):
            raise DuplicateEntityError(f"Sense already exists: {sense.id!r}")
        self._attach(sense)
        self._changed()
        return sense

    def replace_sense(self, sense: Sense) -> bool:
        """Swap in *sense* for the existing sense with the same id."""
        for i, existing in enumerate(self._senses):
            if existing.id != sense.id:
                continue
            if existing == sense:
                return False
            existing._on_change = None
            self._senses[i] = sense
            sense._on_change = self._changed
            self._changed()
            return True
        raise EntityNotFoundError(f"Sense not found: {sense.id!r}")

    def remove_sense(self, sense_id: str) -> bool:
        for i, sense in enumerate(self._senses):
            if sense.id == sense_id:
                sense._on_change = None
                del self._senses[i]
                self._changed()
                return True
        return False

    def _attach(self, sense: Sense) -> None:
        sense._on_change = self._changed
        self._senses.append(sense)

    # ------------------------------------------------------------------
    # Change tracking
    # ------------------------------------------------------------------

    def _changed(self) -> None:
        self._dirty = True
        now = _dates.truncate(_dates.utcnow())
        self._date_modified = max(now, self._date_modified)

    def __repr__(self) -> str:
        return f"LexEntry(id={self._id!r}, dirty={self._dirty})"

    def snapshot(self) -> dict[str, Any]:
        """Observable state as plain data, for comparisons and reporting."""
        return {
            "id": self._id,
            "guid": self._guid,
            "date_created": _dates.format_datetime(self._date_created),
            "date_modified": _dates.format_datetime(self._date_modified),
            "lexical_form": dict(self._lexical_form),
            "senses": [
                {
                    "id": s.id,
                    "definition": dict(s.definition),
                    "traits": [(t.name, t.value) for t in s.traits],
                }
                for s in self._senses
            ],
            "traits": [(t.name, t.value) for t in self._traits],
        }
