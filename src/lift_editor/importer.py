"""Read LIFT documents into lexical entries."""

from __future__ import annotations

import datetime
import logging
import uuid

from lxml import etree

from lift_editor import dates as _dates
from lift_editor.exceptions import CorruptEntryError, UnreadableError
from lift_editor.lift_schema import (
    DEFINITION,
    ENTRY,
    FORM,
    LEXICAL_UNIT,
    ROOT,
    SENSE,
    TEXT,
    TRAIT,
)
from lift_editor.models import LexEntry, Sense, Trait
from lift_editor.xmlhelpers import get_optional_attribute_value

logger = logging.getLogger(__name__)


def parse_document(data: bytes, source: str = "<bytes>") -> etree._ElementTree:
    """Parse LIFT bytes into an element tree.

    Blank text is dropped so that serialization with pretty printing is
    deterministic.
    """
    parser = etree.XMLParser(remove_blank_text=True, resolve_entities=False)
    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise UnreadableError(f"Failed to parse XML in {source}: {e}") from e

    if not isinstance(root.tag, str) or etree.QName(root).localname != ROOT:
        raise UnreadableError(
            f"{source} is not a LIFT document (root element {root.tag!r})"
        )
    return root.getroottree()


def new_document(producer: str, lift_version: str) -> etree._ElementTree:
    """An empty LIFT document."""
    root = etree.Element(ROOT)
    root.set("version", lift_version)
    root.set("producer", producer)
    return etree.ElementTree(root)


def read_entries(root: etree._Element) -> list[LexEntry]:
    """Build one entry per ``<entry>`` child of *root*."""
    entries: list[LexEntry] = []
    seen: set[str] = set()
    for node in root.iterchildren(ENTRY):
        entry = read_entry(node)
        if entry.id in seen:
            raise CorruptEntryError(
                f"Duplicate entry id: {entry.id!r}", entry_id=entry.id
            )
        seen.add(entry.id)
        entries.append(entry)
    return entries


def read_entry(node: etree._Element) -> LexEntry:
    guid = get_optional_attribute_value(node, "guid")
    entry_id = get_optional_attribute_value(node, "id", guid)
    if not entry_id:
        raise CorruptEntryError("Entry has neither an id nor a guid")

    created = _read_date(node, "dateCreated", entry_id)
    modified = _read_date(node, "dateModified", entry_id)
    if created is None:
        created = modified or _dates.EPOCH
    if modified is None:
        modified = created
    if modified < created:
        logger.warning(
            "Entry %s was modified (%s) before it was created (%s); "
            "using the creation time",
            entry_id,
            _dates.format_datetime(modified),
            _dates.format_datetime(created),
        )
        modified = created

    senses = [read_sense(s) for s in node.iterchildren(SENSE)]
    sense_ids = [s.id for s in senses]
    if len(set(sense_ids)) != len(sense_ids):
        raise CorruptEntryError(
            f"Entry {entry_id!r} has senses with duplicate ids", entry_id=entry_id
        )

    return LexEntry(
        entry_id,
        guid,
        date_created=created,
        date_modified=modified,
        lexical_form=read_multitext(node.find(LEXICAL_UNIT)),
        senses=senses,
        traits=read_traits(node),
    )


def read_sense(node: etree._Element) -> Sense:
    sense_id = node.get("id")
    if not sense_id:
        # Give the node an id so later saves can find it again.
        sense_id = str(uuid.uuid4())
        node.set("id", sense_id)
        logger.debug("Assigned id %s to a sense without one", sense_id)
    return Sense(
        sense_id,
        definition=read_multitext(node.find(DEFINITION)),
        traits=read_traits(node),
    )


def read_multitext(container: etree._Element | None) -> dict[str, str]:
    """Language tag to text for the ``<form>`` children of *container*."""
    forms: dict[str, str] = {}
    if container is None:
        return forms
    for form in container.iterchildren(FORM):
        lang = form.get("lang")
        if not lang:
            logger.warning("Skipping <form> without a lang attribute")
            continue
        if lang in forms:
            logger.warning("Skipping repeated <form> for lang %s", lang)
            continue
        text = form.find(TEXT)
        forms[lang] = "".join(text.itertext()) if text is not None else ""
    return forms


def read_traits(node: etree._Element) -> list[Trait]:
    return [
        Trait(t.get("name", ""), t.get("value", ""))
        for t in node.iterchildren(TRAIT)
    ]


def _read_date(
    node: etree._Element, attribute_name: str, entry_id: str
) -> datetime.datetime | None:
    value = get_optional_attribute_value(node, attribute_name)
    if value is None:
        return None
    try:
        return _dates.parse_datetime(value)
    except ValueError as e:
        raise CorruptEntryError(
            f"Entry {entry_id!r} has an unparsable {attribute_name}: {value!r}",
            entry_id=entry_id,
        ) from e
