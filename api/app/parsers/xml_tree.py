# api/app/parsers/xml_tree.py
"""
XML text -> plain dict tree.

The tree mirrors what the upload clients have always produced: the document
root is dropped, attributes sit next to child tags, a tag seen once is kept as
a single value and only repeated tags become lists. Extractors walk it with
the helpers below instead of guarding every level by hand.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as SafeET

TEXT_KEY = "_"

_NAMESPACE_RE = re.compile(r"^\{[^}]*\}")


class XMLParseError(ValueError):
    """Raised when the uploaded document is not well-formed XML."""


def _local_name(tag: str) -> str:
    return _NAMESPACE_RE.sub("", tag)


def _add(node: Dict[str, Any], key: str, value: Any) -> None:
    if key not in node:
        node[key] = value
    elif isinstance(node[key], list):
        node[key].append(value)
    else:
        node[key] = [node[key], value]


def _build_value(element, converted: Dict[int, Any]) -> Any:
    children = list(element)
    if not children and not element.attrib:
        return (element.text or "").strip()

    node: Dict[str, Any] = {}
    for name, value in element.attrib.items():
        _add(node, _local_name(name), value)

    text_parts = [element.text or ""]
    for child in children:
        _add(node, _local_name(child.tag), converted.pop(id(child)))
        text_parts.append(child.tail or "")

    text = "".join(text_parts).strip()
    if text:
        node[TEXT_KEY] = text
    return node


def _element_to_value(root) -> Any:
    """
    Convert without recursion so nesting depth is bounded by memory only.
    Elements are visited parent-first, then built in reverse so every child
    is converted before its parent.
    """
    order = []
    stack = [root]
    while stack:
        element = stack.pop()
        order.append(element)
        stack.extend(element)

    converted: Dict[int, Any] = {}
    for element in reversed(order):
        converted[id(element)] = _build_value(element, converted)
    return converted[id(root)]


def parse_xml(xml_content: str | bytes) -> Dict[str, Any]:
    """Parse XML text into a dict keyed by the root element's children."""
    data = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
    if data.startswith(b"\xef\xbb\xbf"):
        data = data[3:]

    try:
        root = SafeET.fromstring(data)
    except SafeET.ParseError as exc:
        raise XMLParseError(str(exc)) from exc
    except DefusedXmlException as exc:
        raise XMLParseError(f"Forbidden XML construct: {exc}") from exc

    tree = _element_to_value(root)
    if isinstance(tree, str):
        return {_local_name(root.tag): tree}
    return tree


def get_path(data: Any, *keys: str, default: Any = None) -> Any:
    """Walk nested mappings; any missing or non-mapping step yields ``default``."""
    current = data
    for key in keys:
        if not isinstance(current, Mapping):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def as_list(value: Any) -> List[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def first_present(data: Any, fields: Iterable[str]) -> Any:
    """Value of the first field that is present and truthy on ``data``."""
    if not isinstance(data, Mapping):
        return None
    for field in fields:
        value = data.get(field)
        if value:
            return value
    return None


def text_of(value: Any) -> Optional[str]:
    """Scalar text of a tree value; elements carrying attributes expose it under ``_``."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        inner = value.get(TEXT_KEY)
        return str(inner) if inner is not None else None
    if isinstance(value, list):
        return None
    return str(value)
