"""Tests for the path-based, order-preserving tree edits."""

import pytest
from lxml import etree

from lift_editor import InvalidPathError, PathNotFoundError
from lift_editor.xmlhelpers import (
    Attribute,
    add_or_update_attribute,
    get_boolean_attribute_value,
    get_optional_attribute_value,
    get_or_create_element,
    insert_node_using_defined_order,
    order_by_names,
    remove_element,
)

ELEMENT_ORDER = order_by_names(["lexical-unit", "sense", "note", "trait"])
ATTRIBUTE_ORDER = order_by_names(["id", "dateCreated", "dateModified", "guid"])


def _tags(parent):
    return [
        c.tag if isinstance(c.tag, str) else "#comment"
        for c in parent
    ]


class TestOrderByNames:

    def test_listed_names_compare_by_position(self):
        assert ATTRIBUTE_ORDER(Attribute("id", ""), Attribute("guid", "")) < 0
        assert ATTRIBUTE_ORDER(Attribute("guid", ""), Attribute("id", "")) > 0
        assert ATTRIBUTE_ORDER(Attribute("id", "a"), Attribute("id", "b")) == 0

    def test_unknown_names_sort_last_and_tie(self):
        assert ATTRIBUTE_ORDER(Attribute("zzz", ""), Attribute("guid", "")) > 0
        assert ATTRIBUTE_ORDER(Attribute("zzz", ""), Attribute("aaa", "")) == 0

    def test_elements_compare_by_local_name(self):
        a = etree.Element("{urn:x}sense")
        b = etree.Element("note")
        assert ELEMENT_ORDER(a, b) < 0


class TestGetOrCreateElement:

    def test_returns_existing_unchanged(self):
        root = etree.fromstring("<entry><sense id='1'/><sense id='2'/></entry>")
        found = get_or_create_element(root, ".", "sense", order=ELEMENT_ORDER)
        assert found.get("id") == "1"
        assert len(root) == 2

    def test_appends_without_order(self):
        root = etree.fromstring("<entry><trait/></entry>")
        created = get_or_create_element(root, ".", "lexical-unit")
        assert root[-1] is created
        assert _tags(root) == ["trait", "lexical-unit"]

    def test_inserts_in_canonical_position(self):
        root = etree.fromstring("<entry><lexical-unit/><trait/></entry>")
        get_or_create_element(root, ".", "note", order=ELEMENT_ORDER)
        assert _tags(root) == ["lexical-unit", "note", "trait"]

    def test_inserts_before_first_element_when_smallest(self):
        root = etree.fromstring("<entry><!-- c --><sense/></entry>")
        get_or_create_element(root, ".", "lexical-unit", order=ELEMENT_ORDER)
        assert _tags(root) == ["#comment", "lexical-unit", "sense"]

    def test_comments_are_skipped_when_scanning(self):
        root = etree.fromstring("<entry><lexical-unit/><!-- c --><trait/></entry>")
        get_or_create_element(root, ".", "sense", order=ELEMENT_ORDER)
        assert _tags(root) == ["lexical-unit", "sense", "#comment", "trait"]

    def test_resolves_nested_path(self):
        root = etree.fromstring("<lift><entry id='a'/><entry id='b'/></lift>")
        created = get_or_create_element(
            root, "entry[@id=$id]", "lexical-unit", variables={"id": "b"}
        )
        assert created.getparent().get("id") == "b"

    def test_missing_parent_is_not_created(self):
        root = etree.fromstring("<lift/>")
        with pytest.raises(PathNotFoundError):
            get_or_create_element(root, "entry/sense", "trait")
        assert len(root) == 0

    def test_malformed_path(self):
        root = etree.fromstring("<lift/>")
        with pytest.raises(InvalidPathError):
            get_or_create_element(root, "entry[", "trait")

    def test_path_selecting_text_is_invalid(self):
        root = etree.fromstring("<lift><entry>x</entry></lift>")
        with pytest.raises(InvalidPathError):
            get_or_create_element(root, "entry/text()", "trait")

    def test_namespaced_element(self):
        root = etree.fromstring("<doc xmlns:x='urn:x'><x:a/></doc>")
        ns = {"x": "urn:x"}
        found = get_or_create_element(root, ".", "a", namespace="x", namespaces=ns)
        assert found is root[0]
        created = get_or_create_element(root, ".", "b", namespace="x", namespaces=ns)
        assert created.tag == "{urn:x}b"

    def test_unknown_namespace_prefix(self):
        root = etree.fromstring("<doc/>")
        with pytest.raises(InvalidPathError):
            get_or_create_element(root, ".", "a", namespace="x", namespaces={})


class TestInsertNodeUsingDefinedOrder:

    def test_equal_keys_append_after_last_equal(self):
        root = etree.fromstring("<entry><sense id='1'/><sense id='2'/><note/></entry>")
        new = etree.Element("sense", id="3")
        insert_node_using_defined_order(root, new, ELEMENT_ORDER)
        assert [c.get("id") for c in root.iterchildren("sense")] == ["1", "2", "3"]
        assert root[2] is new

    def test_empty_parent(self):
        root = etree.Element("entry")
        new = etree.Element("sense")
        insert_node_using_defined_order(root, new, ELEMENT_ORDER)
        assert root[0] is new

    def test_reverse_insertion_matches_canonical_insertion(self):
        forward = etree.Element("entry")
        for tag in ("lexical-unit", "sense", "trait"):
            insert_node_using_defined_order(forward, etree.Element(tag), ELEMENT_ORDER)
        backward = etree.Element("entry")
        for tag in ("trait", "sense", "lexical-unit"):
            insert_node_using_defined_order(backward, etree.Element(tag), ELEMENT_ORDER)
        assert etree.tostring(forward) == etree.tostring(backward)


class TestAddOrUpdateAttribute:

    def test_existing_value_replaced_in_place(self):
        node = etree.fromstring("<entry guid='g' id='a'/>")
        add_or_update_attribute(node, "id", "b", ATTRIBUTE_ORDER)
        assert list(node.attrib.items()) == [("guid", "g"), ("id", "b")]

    def test_appends_without_order(self):
        node = etree.fromstring("<entry guid='g'/>")
        add_or_update_attribute(node, "id", "a")
        assert list(node.attrib.keys()) == ["guid", "id"]

    def test_inserts_in_canonical_position(self):
        node = etree.fromstring("<entry id='a' guid='g'/>")
        add_or_update_attribute(node, "dateModified", "2008", ATTRIBUTE_ORDER)
        assert list(node.attrib.keys()) == ["id", "dateModified", "guid"]
        assert node.get("guid") == "g"

    def test_unknown_attributes_keep_their_place(self):
        node = etree.fromstring("<entry id='a' custom='c'/>")
        add_or_update_attribute(node, "guid", "g", ATTRIBUTE_ORDER)
        assert list(node.attrib.keys()) == ["id", "guid", "custom"]

    def test_reverse_insertion_matches_canonical_insertion(self):
        forward = etree.Element("entry")
        for name in ("id", "dateCreated", "dateModified", "guid"):
            add_or_update_attribute(forward, name, name.upper(), ATTRIBUTE_ORDER)
        backward = etree.Element("entry")
        for name in ("guid", "dateModified", "dateCreated", "id"):
            add_or_update_attribute(backward, name, name.upper(), ATTRIBUTE_ORDER)
        assert etree.tostring(forward) == etree.tostring(backward)


class TestRemoveElement:

    def test_removes_first_match_only(self):
        root = etree.fromstring("<entry><sense id='1'/><sense id='2'/></entry>")
        remove_element(root, "sense")
        assert [c.get("id") for c in root] == ["2"]

    def test_no_match_is_a_no_op(self):
        root = etree.fromstring("<entry><sense/></entry>")
        before = etree.tostring(root)
        remove_element(root, "note")
        assert etree.tostring(root) == before

    def test_with_variables(self):
        root = etree.fromstring("<entry><sense id=\"it's\"/><sense id='b'/></entry>")
        remove_element(root, "sense[@id=$id]", variables={"id": "it's"})
        assert [c.get("id") for c in root] == ["b"]

    def test_removes_attribute(self):
        root = etree.fromstring("<entry id='a' guid='g'/>")
        remove_element(root, "@guid")
        assert dict(root.attrib) == {"id": "a"}

    def test_keeps_tail_text(self):
        root = etree.fromstring("<text>the <span>big</span> sun</text>")
        remove_element(root, "span")
        assert root.text == "the  sun"

    def test_malformed_path(self):
        root = etree.fromstring("<entry/>")
        with pytest.raises(InvalidPathError):
            remove_element(root, "sense[[")


class TestAttributeAccessors:

    def test_optional_value_and_default(self):
        node = etree.fromstring("<form lang='en'/>")
        assert get_optional_attribute_value(node, "lang") == "en"
        assert get_optional_attribute_value(node, "missing") is None
        assert get_optional_attribute_value(node, "missing", "x") == "x"
        assert get_optional_attribute_value(None, "lang", "x") == "x"

    def test_boolean_value(self):
        node = etree.fromstring("<a yes='YES' t='True' f='no'/>")
        assert get_boolean_attribute_value(node, "yes")
        assert get_boolean_attribute_value(node, "t")
        assert not get_boolean_attribute_value(node, "f")
        assert not get_boolean_attribute_value(node, "missing")
        assert get_boolean_attribute_value(node, "missing", default=True)
