"""Path-based, order-preserving edits on lxml element trees.

Every function works on the subtree rooted at the node it is given. Paths are
XPath 1.0 expressions evaluated relative to that node. Where an *order* rule
is supplied, a newly inserted element or attribute lands immediately after
the last existing sibling of the same kind that does not sort after it, so
siblings stay in a caller-defined canonical order and equal keys append.

An order rule is a ``cmp``-style callable returning a negative number, zero
or a positive number. Elements are compared as lxml elements; attributes are
compared as :class:`Attribute` tuples.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, NamedTuple

from lxml import etree

from lift_editor.exceptions import InvalidPathError, PathNotFoundError

NodeOrder = Callable[[Any, Any], int]


class Attribute(NamedTuple):
    """An attribute as seen by an order rule."""

    name: str
    value: str


def order_by_names(names: Sequence[str]) -> NodeOrder:
    """Build an order rule ranking nodes by their position in *names*.

    Element nodes are ranked by local tag name, attributes by name. Names
    not in the sequence rank after every listed name and tie with each other.
    """
    rank = {name: i for i, name in enumerate(names)}
    unknown = len(rank)

    def compare(a: Any, b: Any) -> int:
        ra = rank.get(_node_name(a), unknown)
        rb = rank.get(_node_name(b), unknown)
        return (ra > rb) - (ra < rb)

    return compare


def _node_name(node: Any) -> str:
    if isinstance(node, Attribute):
        return node.name
    return etree.QName(node).localname


def _is_element(node: Any) -> bool:
    # Comments and processing instructions have a callable tag.
    return isinstance(node, etree._Element) and isinstance(node.tag, str)


def _select(
    node: etree._Element,
    xpath: str,
    namespaces: Mapping[str, str] | None,
    variables: Mapping[str, Any] | None,
) -> list[Any]:
    try:
        result = node.xpath(
            xpath, namespaces=dict(namespaces or {}), **dict(variables or {})
        )
    except etree.XPathError as e:
        raise InvalidPathError(f"Invalid path {xpath!r}: {e}") from e
    if not isinstance(result, list):
        raise InvalidPathError(f"Path {xpath!r} does not select nodes")
    return result


def get_or_create_element(
    node: etree._Element,
    xpath_not_including_element: str,
    element_name: str,
    namespace: str | None = None,
    namespaces: Mapping[str, str] | None = None,
    order: NodeOrder | None = None,
    variables: Mapping[str, Any] | None = None,
) -> etree._Element:
    """Return the child *element_name* of the node at the given path.

    The element is created when missing, appended as the last child or
    placed according to *order*. The parent path itself is never created:
    if it resolves to nothing :class:`PathNotFoundError` is raised.
    """
    found = _select(node, xpath_not_including_element, namespaces, variables)
    parent = found[0] if found else None
    if parent is None:
        raise PathNotFoundError(
            f"The path {xpath_not_including_element!r} could not be found"
        )
    if not _is_element(parent):
        raise InvalidPathError(
            f"Path {xpath_not_including_element!r} does not select an element"
        )

    if namespace:
        try:
            uri = (namespaces or {})[namespace]
        except KeyError:
            raise InvalidPathError(f"Unknown namespace prefix: {namespace!r}") from None
        tag = f"{{{uri}}}{element_name}"
    else:
        tag = element_name

    existing = parent.find(tag)
    if existing is not None:
        return existing

    child = parent.makeelement(tag)
    if order is None:
        parent.append(child)
    else:
        insert_node_using_defined_order(parent, child, order)
    return child


def insert_node_using_defined_order(
    parent: etree._Element,
    child: etree._Element,
    order: NodeOrder,
) -> None:
    """Insert *child* after the last element sibling not sorting after it."""
    insert_after = None
    first = None
    for sibling in parent:
        if sibling is child or not _is_element(sibling):
            continue
        if first is None:
            first = sibling
        if order(child, sibling) < 0:
            break
        insert_after = sibling

    if insert_after is not None:
        insert_after.addnext(child)
    elif first is not None:
        first.addprevious(child)
    else:
        parent.append(child)


def add_or_update_attribute(
    node: etree._Element,
    attribute_name: str,
    value: str,
    order: NodeOrder | None = None,
) -> None:
    """Set an attribute, keeping existing attributes where they are.

    An existing attribute has its value replaced in place. A new attribute is
    appended, or positioned according to *order*.
    """
    attrib = node.attrib
    if attribute_name in attrib or order is None:
        attrib[attribute_name] = value
        return

    items = list(attrib.items())
    new = Attribute(attribute_name, value)
    position = 0
    for i, (name, existing_value) in enumerate(items):
        if order(new, Attribute(name, existing_value)) < 0:
            break
        position = i + 1
    items.insert(position, (attribute_name, value))

    attrib.clear()
    for name, existing_value in items:
        attrib[name] = existing_value


def remove_element(
    node: etree._Element,
    xpath: str,
    namespaces: Mapping[str, str] | None = None,
    variables: Mapping[str, Any] | None = None,
) -> None:
    """Remove the first node selected by *xpath*; do nothing if none is."""
    found = _select(node, xpath, namespaces, variables)
    if not found:
        return
    target = found[0]

    if getattr(target, "is_attribute", False):
        del target.getparent().attrib[target.attrname]
        return
    if not isinstance(target, etree._Element):
        raise InvalidPathError(f"Path {xpath!r} does not select a node")

    parent = target.getparent()
    if parent is None:
        raise InvalidPathError(f"Path {xpath!r} selects the document root")
    detach_element(target)


def detach_element(element: etree._Element) -> None:
    """Remove *element* from its parent, keeping any non-whitespace tail text."""
    tail = element.tail
    parent = element.getparent()
    if tail and tail.strip():
        previous = element.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + tail
        else:
            parent.text = (parent.text or "") + tail
    parent.remove(element)


def get_optional_attribute_value(
    node: etree._Element | None,
    attribute_name: str,
    default: str | None = None,
) -> str | None:
    """Value of an attribute, or *default* when the node or attribute is absent."""
    if node is None:
        return default
    return node.get(attribute_name, default)


def get_boolean_attribute_value(
    node: etree._Element | None,
    attribute_name: str,
    default: bool = False,
) -> bool:
    """True if the attribute reads 'true' or 'yes' (case ignored)."""
    value = get_optional_attribute_value(node, attribute_name)
    if value is None:
        return default
    return value.strip().lower() in ("true", "yes")
