# nvr_bridge/utils/xml_parser.py
"""
Helpers for parsing Hikvision ISAPI XML documents.
Namespace agnostic: NVRs answer with either the isapi.org or the hikvision.com schema.

Elements are mapped to plain Python values:
  - leaf element             -> str
  - element with children    -> dict keyed by local tag name
  - repeated sibling tags    -> list (only when the tag actually repeats)
  - attributes               -> "@name" keys, mixed text -> "#text"
"""

import xml.etree.ElementTree as ET
from typing import Any, Optional

TEXT_KEY = "#text"
ATTR_PREFIX = "@"


def local_name(tag: str) -> str:
    """Return tag name without XML namespace."""
    if "}" in tag:
        return tag.rsplit("}", 1)[1]
    return tag


def find_text(root: ET.Element, tag: str) -> Optional[str]:
    """Find a direct child by local name and return its stripped text."""
    for child in root:
        if local_name(child.tag) == tag:
            return child.text.strip() if child.text else None
    return None


def element_to_dict(el: ET.Element) -> Any:
    children = list(el)
    attrs = {
        f"{ATTR_PREFIX}{local_name(k)}": v
        for k, v in el.attrib.items()
        if not k.startswith("{http://www.w3.org/2000/xmlns/}")
    }
    text = el.text.strip() if el.text else ""

    if not children and not attrs:
        return text

    result: dict[str, Any] = dict(attrs)
    for child in children:
        key = local_name(child.tag)
        value = element_to_dict(child)
        if key in result:
            existing = result[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[key] = [existing, value]
        else:
            result[key] = value

    if text:
        result[TEXT_KEY] = text
    return result


def parse_document(xml_text: str) -> dict[str, Any]:
    """
    Parse a full XML document into {root_name: mapping}.
    Raises ET.ParseError on malformed input.
    """
    root = ET.fromstring(xml_text)
    return {local_name(root.tag): element_to_dict(root)}


def as_list(value: Any) -> list:
    """List view of a field the schema says can repeat (None -> [], scalar -> [scalar])."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]
