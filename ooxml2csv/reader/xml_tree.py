"""
XML Tree Materializer
=====================

Turns single elements of a pull-parsed OOXML part into plain ``XmlNode``
trees. Tag and attribute names are lowercased so lookups downstream are
case-insensitive. Names from a prefixed namespace keep their prefix
(``x14ac:dydescent``); names from the default namespace and from the
SpreadsheetML namespace are bare (``row``, ``c``, ``v``). Text is trimmed
unless the element declares ``xml:space="preserve"``.

Worksheets can be very large, so parts are never loaded completely.
``iter_nodes`` walks a part with ``ElementTree.iterparse`` and hands out one
materialized node per matching element, releasing the element afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Collection, Dict, Generator, List, Mapping, Optional, Tuple
from xml.etree import ElementTree as ET
from xml.etree.ElementTree import Element as XmlElement

from ooxml2csv.exceptions import XmlParseError

logger = logging.getLogger(__name__)

# the xml prefix is bound implicitly and never shows up as a start-ns event
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
_IMPLICIT_PREFIXES = {XML_NAMESPACE: "xml"}
_XML_SPACE = f"{{{XML_NAMESPACE}}}space"

# SpreadsheetML names are always bare, whatever prefix a writer binds them to
SPREADSHEETML_NAMESPACES = (
    "http://schemas.openxmlformats.org/spreadsheetml/2006/main",
    "http://purl.oclc.org/ooxml/spreadsheetml/main",
)


@dataclass
class XmlNode:
    text: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    children: Dict[str, List[XmlNode]] = field(default_factory=dict)

    def attr(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def first(self, name: str) -> Optional[XmlNode]:
        nodes = self.children.get(name)
        return nodes[0] if nodes else None

    def child_text(self, name: str) -> Optional[str]:
        """Text of the first child called ``name``, None if absent or empty."""
        node = self.first(name)
        return node.text if node is not None else None


def _split_name(name: str) -> Tuple[str, str]:
    if name.startswith("{"):
        uri, _, local = name[1:].partition("}")
        return uri, local
    return "", name


def _qualified_name(name: str, prefixes: Mapping[str, str]) -> str:
    uri, local = _split_name(name)
    local = local.strip().lower()
    prefix = prefixes.get(uri, "") if uri else ""
    return f"{prefix}:{local}" if prefix else local


def _direct_text(element: XmlElement) -> Optional[str]:
    parts = [element.text or ""]
    parts.extend(child.tail or "" for child in element)
    text = "".join(parts)
    if element.get(_XML_SPACE) != "preserve":
        text = text.strip()
    return text or None


def _build(element: XmlElement, prefixes: Mapping[str, str]) -> XmlNode:
    node = XmlNode(text=_direct_text(element))
    for name, value in element.attrib.items():
        node.attributes[_qualified_name(name, prefixes)] = value.strip()
    for child in element:
        if not isinstance(child.tag, str):
            # comments and processing instructions
            continue
        key = _qualified_name(child.tag, prefixes)
        node.children.setdefault(key, []).append(_build(child, prefixes))
    return node


def materialize(
    element: XmlElement, prefixes: Mapping[str, str] | None = None
) -> XmlNode:
    """
    Build an XmlNode from an element and all of its descendants.

    Args:
        element: A completely parsed element.
        prefixes: Namespace URI to prefix mapping as declared by the document.
            URIs mapped to the empty prefix (the default namespace) produce
            bare names.

    Returns:
        The node tree. Text is trimmed unless ``xml:space="preserve"`` is set;
        empty text collapses to None.
    """
    resolved = dict(_IMPLICIT_PREFIXES)
    if prefixes:
        resolved.update(prefixes)
    for uri in SPREADSHEETML_NAMESPACES:
        resolved[uri] = ""
    return _build(element, resolved)


def parse_fragment(xml_text: str | bytes) -> XmlNode:
    """Parse a standalone XML fragment into an XmlNode."""
    parser = ET.XMLPullParser(events=("start-ns", "start"))
    prefixes: Dict[str, str] = {}
    root = None
    try:
        parser.feed(xml_text)
        parser.close()
        # syntax errors are queued as events by the pull parser
        for event, payload in parser.read_events():
            if event == "start-ns":
                prefix, uri = payload
                prefixes.setdefault(uri, prefix)
            elif root is None:
                root = payload
    except ET.ParseError as exc:
        raise XmlParseError(f"Malformed XML fragment: {exc}", cause=exc) from exc
    return materialize(root, prefixes)


def iter_nodes(
    path: str | Path, tags: Collection[str]
) -> Generator[Tuple[str, XmlNode], Any, None]:
    """
    Stream a part and yield ``(tag, node)`` for every element whose lowercase
    local name is in ``tags``.

    Elements are materialized once their end tag has been read, then cleared
    and detached from their parent so memory stays bounded by the size of a
    single matching element.

    Raises:
        XmlParseError: The part is not well-formed XML.
    """
    prefixes: Dict[str, str] = {}
    open_elements: List[XmlElement] = []

    with open(path, "rb") as f:
        events = ET.iterparse(f, events=("start-ns", "start", "end"))
        try:
            for event, payload in events:
                if event == "start-ns":
                    prefix, uri = payload
                    prefixes.setdefault(uri, prefix)
                elif event == "start":
                    open_elements.append(payload)
                else:
                    open_elements.pop()
                    local = _split_name(payload.tag)[1].lower()
                    if local not in tags:
                        continue
                    yield local, materialize(payload, prefixes)
                    payload.clear()
                    if open_elements:
                        open_elements[-1].remove(payload)
        except ET.ParseError as exc:
            raise XmlParseError(
                f"Malformed XML in {Path(path).name}: {exc}", cause=exc
            ) from exc
