"""Decoding of stored SDLTM segments and mapping to TMX inline content.

Each ``source_segment`` / ``target_segment`` column holds a small XML
document of the form::

    <Segment>
      <Elements>
        <Text><Value>Hello </Value></Text>
        <Tag><Type>Start</Type><Anchor>1</Anchor>
             <AlignmentAnchor>10</AlignmentAnchor><TagID>100</TagID></Tag>
        ...
      </Elements>
      <CultureName>en-US</CultureName>
    </Segment>

``Text`` nodes become plain text runs; ``Tag`` nodes become ``bpt``,
``ept`` or ``ph`` elements depending on their ``Type``.
"""

from __future__ import annotations

import re
from typing import Union

from lxml import etree

from sdltm2tmx.errors import SegmentError

TMXContent = Union[str, etree._Element]

# Everything outside the XML 1.0 Char production
_INVALID_XML_CHARS = re.compile(
    "[^\t\n\r\x20-%s%s-%s%s-%s]"
    % (chr(0xD7FF), chr(0xE000), chr(0xFFFD), chr(0x10000), chr(0x10FFFF))
)
# Stored declarations claim utf-16, which does not describe the Python str
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


# ── Decoding ────────────────────────────────────────────────────


def valid_xml_chars(text: str) -> str:
    """Remove characters that are not allowed in an XML 1.0 document."""
    return _INVALID_XML_CHARS.sub("", text)


def decode_segment(text: str | None) -> etree._Element:
    """Parse a stored segment and return its root element.

    A new parser is built for every call so a failed parse cannot leave
    state behind for the next one.

    Raises:
        SegmentError: If the text is empty or not well-formed XML.
    """
    if not text:
        raise SegmentError("Empty segment")
    cleaned = _XML_DECLARATION.sub("", valid_xml_chars(text), count=1)
    parser = etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_blank_text=False,
    )
    try:
        return etree.fromstring(cleaned.encode("utf-8"), parser)
    except etree.XMLSyntaxError as e:
        raise SegmentError(f"Cannot parse segment: {e}") from e


def _localname(elem: etree._Element) -> str:
    return etree.QName(elem).localname


def _is_element(node: etree._Element) -> bool:
    # Comments and processing instructions have a non-string tag
    return isinstance(node.tag, str)


def get_child(elem: etree._Element, name: str) -> etree._Element | None:
    """Return the first child element called *name*, ignoring namespaces."""
    for child in elem:
        if _is_element(child) and _localname(child) == name:
            return child
    return None


def _require(elem: etree._Element, name: str, what: str) -> str:
    child = get_child(elem, name)
    if child is None:
        raise SegmentError(f"{what} element without {name} child")
    return "".join(child.itertext())


def culture_name(segment: etree._Element) -> str:
    """Return the language code stored in ``CultureName``."""
    return _require(segment, "CultureName", "Segment")


def segment_elements(segment: etree._Element) -> etree._Element:
    """Return the ``Elements`` container of a decoded segment."""
    elements = get_child(segment, "Elements")
    if elements is None:
        raise SegmentError("Segment element without Elements child")
    return elements


# ── Mapping ─────────────────────────────────────────────────────


def _map_tag(tag: etree._Element) -> etree._Element:
    tag_type = _require(tag, "Type", "Tag")
    if tag_type == "Start":
        bpt = etree.Element("bpt")
        bpt.set("i", _require(tag, "Anchor", "Start Tag"))
        bpt.set("x", _require(tag, "AlignmentAnchor", "Start Tag"))
        bpt.set("type", _require(tag, "TagID", "Start Tag"))
        return bpt
    if tag_type == "End":
        ept = etree.Element("ept")
        ept.set("i", _require(tag, "Anchor", "End Tag"))
        return ept
    ph = etree.Element("ph")
    ph.set("x", _require(tag, "AlignmentAnchor", "Standalone Tag"))
    ph.set("type", _require(tag, "TagID", "Standalone Tag"))
    return ph


def map_content(elements: etree._Element) -> list[TMXContent]:
    """Map the children of ``Elements`` to TMX inline content, in order.

    Unknown element names, comments and processing instructions are
    skipped.

    Raises:
        SegmentError: If a ``Text`` or ``Tag`` lacks a required child.
    """
    result: list[TMXContent] = []
    for node in elements:
        if not _is_element(node):
            continue
        name = _localname(node)
        if name == "Text":
            result.append(_require(node, "Value", "Text"))
        elif name == "Tag":
            result.append(_map_tag(node))
    return result


def build_seg(content: list[TMXContent]) -> etree._Element:
    """Build a ``<seg>`` holding *content* as mixed text and inline codes."""
    seg = etree.Element("seg")
    last: etree._Element | None = None
    for item in content:
        if isinstance(item, str):
            if last is None:
                seg.text = (seg.text or "") + item
            else:
                last.tail = (last.tail or "") + item
        else:
            seg.append(item)
            last = item
    return seg
