"""Write lexical entries into a LIFT tree and flush it to disk."""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from collections.abc import Mapping, Sequence
from contextlib import suppress
from pathlib import Path

from lxml import etree

from lift_editor import dates as _dates
from lift_editor.exceptions import StorageError
from lift_editor.lift_schema import (
    DEFINITION,
    ENTRY,
    FORM,
    LEXICAL_UNIT,
    SENSE,
    TEXT,
    TRAIT,
    entry_attribute_order,
    entry_element_order,
    form_attribute_order,
    sense_attribute_order,
    sense_element_order,
    trait_attribute_order,
)
from lift_editor.models import LexEntry, Sense, Trait
from lift_editor.xmlhelpers import (
    NodeOrder,
    add_or_update_attribute,
    detach_element,
    get_or_create_element,
    insert_node_using_defined_order,
)

logger = logging.getLogger(__name__)


def find_entry_node(root: etree._Element, entry_id: str) -> etree._Element | None:
    """The ``<entry>`` with this id, or the id-less one whose guid matches."""
    found = root.xpath("entry[@id=$id]", id=entry_id)
    if not found:
        found = root.xpath("entry[not(@id) and @guid=$id]", id=entry_id)
    return found[0] if found else None


def create_entry_node(root: etree._Element) -> etree._Element:
    node = root.makeelement(ENTRY)
    root.append(node)
    return node


def write_entry(node: etree._Element, entry: LexEntry) -> None:
    """Bring *node* in line with *entry*, leaving unmodelled content alone."""
    add_or_update_attribute(node, "id", entry.id, entry_attribute_order)
    add_or_update_attribute(
        node,
        "dateCreated",
        _dates.format_datetime(entry.date_created),
        entry_attribute_order,
    )
    add_or_update_attribute(
        node,
        "dateModified",
        _dates.format_datetime(entry.date_modified),
        entry_attribute_order,
    )
    add_or_update_attribute(node, "guid", entry.guid, entry_attribute_order)

    _write_multitext(node, LEXICAL_UNIT, entry.lexical_form, entry_element_order)
    _write_senses(node, entry.senses)
    _write_traits(node, entry.traits, entry_element_order)


def _write_senses(node: etree._Element, senses: Sequence[Sense]) -> None:
    wanted = {s.id for s in senses}
    for el in list(node.iterchildren(SENSE)):
        if el.get("id") not in wanted:
            detach_element(el)

    previous = None
    for sense in senses:
        found = node.xpath("sense[@id=$id]", id=sense.id)
        if found:
            el = found[0]
        else:
            el = node.makeelement(SENSE)
            insert_node_using_defined_order(node, el, entry_element_order)
            logger.debug("Created <sense> %s", sense.id)
        if previous is not None and el.getprevious() is not previous:
            previous.addnext(el)
        previous = el

        add_or_update_attribute(el, "id", sense.id, sense_attribute_order)
        _write_multitext(el, DEFINITION, sense.definition, sense_element_order)
        _write_traits(el, sense.traits, sense_element_order)


def _write_multitext(
    parent: etree._Element,
    container_name: str,
    forms: Mapping[str, str],
    order: NodeOrder,
) -> None:
    container = parent.find(container_name)
    if container is None:
        if not forms:
            return
        container = get_or_create_element(parent, ".", container_name, order=order)

    # Forms without a lang are not modelled and stay as they are.
    for form in list(container.iterchildren(FORM)):
        lang = form.get("lang")
        if lang and lang not in forms:
            detach_element(form)
    if not forms:
        if len(container) == 0:
            detach_element(container)
        return

    for lang, value in forms.items():
        # The first form of a language is the one read on load.
        found = container.xpath("form[@lang=$lang][1]", lang=lang)
        if found:
            form = found[0]
        else:
            form = container.makeelement(FORM)
            add_or_update_attribute(form, "lang", lang, form_attribute_order)
            container.append(form)
        text = get_or_create_element(form, ".", TEXT)
        if "".join(text.itertext()) != value:
            # Replacing the value drops any inline markup.
            for child in list(text):
                text.remove(child)
            text.text = value


def _write_traits(
    node: etree._Element, traits: Sequence[Trait], order: NodeOrder
) -> None:
    existing = list(node.iterchildren(TRAIT))
    current = [(el.get("name", ""), el.get("value", "")) for el in existing]
    if current == [(t.name, t.value) for t in traits]:
        return

    for el in existing:
        detach_element(el)
    for trait in traits:
        el = node.makeelement(TRAIT)
        add_or_update_attribute(el, "name", trait.name, trait_attribute_order)
        add_or_update_attribute(el, "value", trait.value, trait_attribute_order)
        insert_node_using_defined_order(node, el, order)


def serialize(tree: etree._ElementTree) -> bytes:
    return etree.tostring(
        tree, xml_declaration=True, encoding="utf-8", pretty_print=True
    )


def write_document(tree: etree._ElementTree, destination: str | Path) -> None:
    """Atomically replace *destination* with the serialized tree.

    The document is written to a temporary file beside the destination and
    moved into place, so readers see either the old or the new file.
    """
    destination = Path(destination)
    data = serialize(tree)

    try:
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
        )
    except OSError as e:
        raise StorageError(f"Failed to write {destination}: {e}") from e

    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        if destination.exists():
            os.chmod(tmp_path, stat.S_IMODE(destination.stat().st_mode))
        os.replace(tmp_path, destination)
    except OSError as e:
        with suppress(OSError):
            os.unlink(tmp_path)
        raise StorageError(f"Failed to write {destination}: {e}") from e

    logger.info("Wrote %s (%d bytes)", destination, len(data))
