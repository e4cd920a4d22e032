"""Namespace-agnostic XML navigation.

Producers mix prefixed and unprefixed tags for the same logical element
(``a:rPr`` vs ``rPr``), so every extractor looks nodes up by their local
name only.  Lookups never raise on a miss: they return ``None`` or ``[]``.
"""

from lxml import etree


def local_name(node) -> str:
    """Unqualified tag name of an element ('' for comments and PIs)."""
    if not isinstance(node.tag, str):
        return ""
    return etree.QName(node).localname


def first_child_by_local_name(node, name: str):
    """First descendant (document order) whose local name is ``name``."""
    if node is None:
        return None
    for el in node.iterdescendants(etree.Element):
        if local_name(el) == name:
            return el
    return None


def all_children_by_local_name(node, name: str) -> list:
    """Every descendant (document order) whose local name is ``name``."""
    if node is None:
        return []
    return [el for el in node.iterdescendants(etree.Element)
            if local_name(el) == name]


def direct_child_by_local_name(node, name: str):
    """First immediate child whose local name is ``name``."""
    if node is None:
        return None
    for el in node.iterchildren(etree.Element):
        if local_name(el) == name:
            return el
    return None


def qualified_attribute(node, name: str) -> str | None:
    """Value of the first namespace-qualified attribute whose local name is ``name``.

    Matches ``r:embed`` whatever URI the ``r`` prefix is bound to; an
    unqualified ``embed`` attribute is not matched.
    """
    if node is None:
        return None
    for key, value in node.attrib.items():
        if key.startswith("{") and etree.QName(key).localname == name:
            return value
    return None
