"""TMX 1.4 streaming writer.

The document is never held in memory as a whole.  The declaration and
``<header>`` are written first, then each ``<tu>`` is built with lxml,
serialized and appended on its own, and finally the closing tags are
written.  Memory use is bounded to one translation unit.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from lxml import etree

from sdltm2tmx.errors import SegmentError
from sdltm2tmx.models import PicklistValue, TMMetadata, ToolIdentity, TranslationUnitRow
from sdltm2tmx.segment import build_seg, culture_name, map_content, segment_elements

XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

# attributes.type value for multi-value picklists
MULTIPLE_PICKLIST = 5

INDENT_STEP = "  "
# Mixed content: indenting these would alter segment text
_MIXED_CONTENT_TAGS = frozenset({"seg", "prop", "note"})


# ── Formatting ──────────────────────────────────────────────────


def tmx_date(date: str | None) -> str:
    """Convert ``YYYY-MM-DD HH:MM:SS`` to TMX ``YYYYMMDDTHHMMSSZ``.

    Returns an empty string for empty input, meaning "omit the attribute".
    """
    if not date:
        return ""
    return date.replace("-", "").replace(":", "").replace(" ", "T", 1) + "Z"


def indent(elem: etree._Element, level: int = 1) -> None:
    """Indent *elem* in place for output at nesting depth *level*.

    Children go one step deeper than *elem*; the closing tag lines up with
    the opening tag.  Elements carrying mixed content are left untouched.
    """
    if elem.tag in _MIXED_CONTENT_TAGS or len(elem) == 0:
        return
    child_indent = "\n" + INDENT_STEP * (level + 1)
    elem.text = child_indent
    for child in elem:
        indent(child, level + 1)
        child.tail = child_indent
    child.tail = "\n" + INDENT_STEP * level


def _to_string(elem: etree._Element) -> str:
    return etree.tostring(elem, encoding="unicode", with_tail=False)


# ── Building ────────────────────────────────────────────────────


def build_header(
    metadata: TMMetadata,
    picklist_values: Iterable[PicklistValue],
    tool: ToolIdentity,
) -> etree._Element:
    """Build the ``<header>`` element.

    Multi-value picklist attributes become one ``<prop>`` per attribute
    name, in first-seen order, holding the comma-joined values.
    """
    header = etree.Element("header")
    header.set("creationtool", tool.product_name)
    header.set("creationtoolversion", tool.version)
    header.set("o-tmf", "SDLTM")
    header.set("adminlang", "en-US")
    header.set("segtype", "sentence")
    header.set("datatype", "unknown")
    header.set("srclang", metadata.source_language)
    header.set("creationdate", tmx_date(metadata.creation_date))
    header.set("creationid", metadata.creation_user)

    props: dict[str, list[str]] = {}
    for pv in picklist_values:
        if pv.type != MULTIPLE_PICKLIST:
            continue
        props.setdefault(pv.name, []).append(pv.value)

    for name, values in props.items():
        prop = etree.SubElement(header, "prop")
        # "Multple" is what downstream tools expect
        prop.set("type", f"x-{name}:MultplePicklist")
        prop.text = ",".join(values)

    return header


def _build_tuv(segment: etree._Element) -> etree._Element:
    tuv = etree.Element("tuv")
    tuv.set(XML_LANG, culture_name(segment))
    tuv.append(build_seg(map_content(segment_elements(segment))))
    return tuv


def build_tu(
    row: TranslationUnitRow,
    source: etree._Element,
    target: etree._Element,
) -> etree._Element:
    """Build a ``<tu>`` from a row and its decoded source/target segments.

    Raises:
        SegmentError: If a segment lacks ``CultureName``/``Elements`` or
            contains an incomplete ``Text``/``Tag``.
    """
    tu = etree.Element("tu")
    tu.set("creationid", row.creation_user or "")
    tu.set("creationdate", tmx_date(row.creation_date))

    change_date = tmx_date(row.change_date)
    if change_date:
        tu.set("changedate", change_date)
    if row.change_user:
        tu.set("changeid", row.change_user)
    last_used_date = tmx_date(row.last_used_date)
    if last_used_date:
        tu.set("lastusagedate", last_used_date)
    if row.usage_counter and row.usage_counter != "0":
        tu.set("usagecount", row.usage_counter)

    if row.last_used_user:
        prop = etree.SubElement(tu, "prop")
        prop.set("type", "x-LastUsedBy")
        prop.text = row.last_used_user

    for side, segment in (("source", source), ("target", target)):
        try:
            tu.append(_build_tuv(segment))
        except SegmentError as e:
            e.side = side
            raise
    return tu


# ── Writing ─────────────────────────────────────────────────────


class TMXStreamWriter:
    """Append-only writer for one TMX document.

    An existing file at *path* is removed when the writer is opened so
    that a new conversion never appends to an old document.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._file: TextIO | None = None
        self.count = 0

    def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.unlink(missing_ok=True)
        self._file = open(self.path, "a", encoding="utf-8", newline="\n")

    def _append(self, text: str) -> None:
        if self._file is None:
            raise RuntimeError("TMX writer is not open")
        self._file.write(text)
        self._file.flush()

    def write_header(self, header: etree._Element) -> None:
        """Write the declaration, ``<tmx>``, *header* and ``<body>``."""
        indent(header)
        self._append(
            XML_DECLARATION
            + '\n<tmx version="1.4">\n'
            + INDENT_STEP + _to_string(header)
            + "\n" + INDENT_STEP + "<body>\n"
        )

    def write_tu(self, tu: etree._Element) -> None:
        indent(tu)
        self._append(INDENT_STEP + _to_string(tu) + "\n")
        self.count += 1

    def write_footer(self) -> None:
        self._append(INDENT_STEP + "</body>\n</tmx>")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> TMXStreamWriter:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
