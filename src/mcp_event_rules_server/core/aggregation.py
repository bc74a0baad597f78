"""Merge XML fragments from successive spec fetches into one document per key.

Each fetched storage row renders to its own XML fragment. Fragments sharing a
key are merged: the first parsed root supplies the element name and attributes,
and the children of every fragment are concatenated in arrival order. Fragments
that do not parse are kept verbatim and joined with a blank line.
"""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass, field
from xml.etree import ElementTree as ET

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
EVENT_SPEC_KEY_ATTRIBUTE = "szEventSpecKey"
RAW_SEPARATOR = "\n\n"

_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>\s*")
_PREFIX_DECLARATION_RE = re.compile(r"\bxmlns:([A-Za-z_][\w.-]*)\s*=\s*([\"'])(.*?)\2")
_RESERVED_PREFIX_RE = re.compile(r"^(ns\d+|xml)$")

# Child content is either a non-blank text run or a detached element.
ChildContent = str | ET.Element


def parse_root(xml: str) -> ET.Element | None:
    """Parse a fragment into its root element; None if blank or malformed."""
    if not xml or not xml.strip():
        return None
    # The declaration may name an encoding that no longer applies to a str.
    body = _DECLARATION_RE.sub("", xml, count=1)
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
    try:
        parser.feed(body)
        root = parser.close()
    except ET.ParseError as exc:
        logger.debug("Fragment is not well-formed XML: %s", exc)
        return None
    _register_prefixes(body)
    return root


def _register_prefixes(xml: str) -> None:
    """Keep the fragment's own namespace prefixes when the tree is serialized.

    ElementTree otherwise writes generated ``ns0:`` style prefixes. The prefix
    map is process-wide, so the latest declaration of a prefix wins. A default
    namespace (``xmlns="..."``) has no prefix to keep and is still written with
    a generated one; the document stays equivalent.
    """
    for prefix, _, uri in _PREFIX_DECLARATION_RE.findall(xml):
        if _RESERVED_PREFIX_RE.match(prefix):
            continue
        ET.register_namespace(prefix, uri)


def _child_content(root: ET.Element) -> list[ChildContent]:
    """Detach the root's children (text runs and elements) in document order."""
    out: list[ChildContent] = []
    if root.text and root.text.strip():
        out.append(root.text)
    for child in root:
        node = copy.deepcopy(child)
        tail = node.tail
        node.tail = None
        out.append(node)
        if tail and tail.strip():
            out.append(tail)
    return out


@dataclass(frozen=True, slots=True)
class AggregatedDocument:
    """Snapshot of one merged document."""

    key: str
    root_name: str | None
    root_attributes: tuple[tuple[str, str], ...]
    record_count: int
    text: str

    @property
    def structured(self) -> bool:
        return self.root_name is not None


@dataclass(slots=True)
class _DocumentBuilder:
    key: str
    root_name: str | None = None
    root_attributes: dict[str, str] = field(default_factory=dict)
    children: list[ChildContent] = field(default_factory=list)
    raw_fragments: list[str] = field(default_factory=list)
    record_count: int = 0

    def add_root(self, root: ET.Element) -> None:
        if self.root_name is None:
            self.root_name = root.tag
            self.root_attributes = dict(root.attrib)
        self.children.extend(_child_content(root))
        self.record_count += 1

    def add_raw(self, xml: str) -> None:
        if xml and xml.strip():
            self.raw_fragments.append(xml)
            self.record_count += 1

    def build(self) -> str:
        if self.root_name is None:
            return RAW_SEPARATOR.join(self.raw_fragments)

        root = ET.Element(self.root_name, dict(self.root_attributes))
        last: ET.Element | None = None
        for item in self.children:
            if isinstance(item, str):
                if last is None:
                    root.text = (root.text or "") + item
                else:
                    last.tail = (last.tail or "") + item
                continue
            node = copy.deepcopy(item)
            root.append(node)
            last = node
        return f"{XML_DECLARATION}\n{ET.tostring(root, encoding='unicode')}"

    def snapshot(self) -> AggregatedDocument:
        return AggregatedDocument(
            key=self.key,
            root_name=self.root_name,
            root_attributes=tuple(self.root_attributes.items()),
            record_count=self.record_count,
            text=self.build(),
        )


class FragmentAggregator:
    """Accumulate fragments per key (case-insensitive), preserving first-seen key order.

    Not thread-safe: share an instance across threads only with external locking.
    """

    def __init__(self) -> None:
        self._builders: dict[str, _DocumentBuilder] = {}

    def _builder(self, key: str) -> _DocumentBuilder:
        norm = (key or "").upper()
        builder = self._builders.get(norm)
        if builder is None:
            builder = _DocumentBuilder(key=key or "")
            self._builders[norm] = builder
        return builder

    def add_fragment(self, key: str, fragment_text: str) -> bool:
        """Add one fragment under key; returns True when it parsed as XML."""
        root = parse_root(fragment_text)
        builder = self._builder(key)
        if root is None:
            builder.add_raw(fragment_text)
            return False
        builder.add_root(root)
        return True

    def add_xml(self, fragment_text: str, fallback_key: str) -> str:
        """Add a fragment keyed by its root's event spec key attribute; returns the key used."""
        root = parse_root(fragment_text)
        if root is None:
            self._builder(fallback_key).add_raw(fragment_text)
            return fallback_key
        key = root.attrib.get(EVENT_SPEC_KEY_ATTRIBUTE, fallback_key)
        self._builder(key).add_root(root)
        return key

    def keys(self) -> list[str]:
        return [b.key for b in self._builders.values()]

    def build_document(self, key: str) -> str:
        """Merged text for key; empty string for an unknown key."""
        builder = self._builders.get((key or "").upper())
        if builder is None:
            return ""
        return builder.build()

    def documents(self) -> list[AggregatedDocument]:
        """Snapshots of every non-empty document, in first-seen key order."""
        docs = [b.snapshot() for b in self._builders.values()]
        return [d for d in docs if d.text.strip()]


def pretty_print_xml(xml: str, indent: str = "  ") -> str:
    """Indent an XML document for display; non-XML text is returned unchanged."""
    if not xml or not xml.strip():
        return ""
    root = parse_root(xml)
    if root is None:
        return xml
    ET.indent(root, space=indent)
    formatted = ET.tostring(root, encoding="unicode")
    if _DECLARATION_RE.match(xml):
        return f"{XML_DECLARATION}\n{formatted}"
    return formatted
