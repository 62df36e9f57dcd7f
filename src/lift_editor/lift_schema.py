"""LIFT element names and the canonical sibling orders used when writing."""

from __future__ import annotations

from lift_editor.xmlhelpers import order_by_names

LIFT_VERSION = "0.13"
DEFAULT_PRODUCER = "lift-editor"

ROOT = "lift"
ENTRY = "entry"
LEXICAL_UNIT = "lexical-unit"
SENSE = "sense"
DEFINITION = "definition"
FORM = "form"
TEXT = "text"
TRAIT = "trait"

ENTRY_ATTRIBUTE_ORDER = (
    "id",
    "dateCreated",
    "dateModified",
    "guid",
    "order",
    "dateDeleted",
)

ENTRY_ELEMENT_ORDER = (
    "lexical-unit",
    "citation",
    "pronunciation",
    "variant",
    "sense",
    "note",
    "relation",
    "etymology",
    "field",
    "trait",
    "annotation",
)

SENSE_ATTRIBUTE_ORDER = ("id", "order", "dateCreated", "dateModified")

SENSE_ELEMENT_ORDER = (
    "grammatical-info",
    "gloss",
    "definition",
    "relation",
    "note",
    "example",
    "reversal",
    "illustration",
    "subsense",
    "field",
    "trait",
    "annotation",
)

FORM_ATTRIBUTE_ORDER = ("lang",)

TRAIT_ATTRIBUTE_ORDER = ("name", "value")

entry_attribute_order = order_by_names(ENTRY_ATTRIBUTE_ORDER)
entry_element_order = order_by_names(ENTRY_ELEMENT_ORDER)
sense_attribute_order = order_by_names(SENSE_ATTRIBUTE_ORDER)
sense_element_order = order_by_names(SENSE_ELEMENT_ORDER)
form_attribute_order = order_by_names(FORM_ATTRIBUTE_ORDER)
trait_attribute_order = order_by_names(TRAIT_ATTRIBUTE_ORDER)
