"""
Atom 1.0 wire format for feeds and entries.

Decoding accepts `<entry>` documents whose elements are either in the Atom
namespace or un-namespaced (plain AtomPub clients often omit xmlns).
Encoding always emits the Atom namespace declaration on the root element.

Text constructs (`title`, `content`) carry a `type` attribute; when it is
absent on input it defaults to "text". For type="xhtml" the raw value is the
element's inner markup.

Required text constructs must have non-empty raw text; whitespace counts
as text.
"""

from __future__ import annotations

import copy
import logging
import xml.etree.ElementTree as ET

from .errors import EntryDecodeError
from .models import DEFAULT_TEXT_TYPE, Entry, Feed, Text

ATOM_NS = "http://www.w3.org/2005/Atom"
XHTML_NS = "http://www.w3.org/1999/xhtml"

logger = logging.getLogger(__name__)


def _local_name(tag: object) -> str | None:
    if not isinstance(tag, str):
        return None
    if tag.startswith("{"):
        uri, _, name = tag[1:].partition("}")
        return name if uri == ATOM_NS else None
    return tag


def _find_child(parent: ET.Element, name: str) -> ET.Element | None:
    for child in parent:
        if _local_name(child.tag) == name:
            return child
    return None


def _strip_xhtml_ns(elem: ET.Element) -> ET.Element:
    # Serialize XHTML children as plain markup, not as html:-prefixed tags.
    prefix = f"{{{XHTML_NS}}}"
    elem = copy.deepcopy(elem)
    for node in elem.iter():
        if isinstance(node.tag, str) and node.tag.startswith(prefix):
            node.tag = node.tag[len(prefix):]
    return elem


def _inner_markup(elem: ET.Element) -> str:
    parts = [_escape_text(elem.text or "")]
    for child in elem:
        # tostring() includes the child's tail text.
        parts.append(ET.tostring(_strip_xhtml_ns(child), encoding="unicode"))
    return "".join(parts)


def _escape_text(value: str) -> str:
    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _read_text(parent: ET.Element, name: str) -> Text:
    elem = _find_child(parent, name)
    if elem is None:
        raise EntryDecodeError(f"missing <{name}> element")

    type_ = (elem.get("type") or "").strip() or DEFAULT_TEXT_TYPE
    if type_ == "xhtml" and len(elem):
        raw = _inner_markup(elem)
    else:
        raw = "".join(elem.itertext())

    if not raw:
        raise EntryDecodeError(f"empty <{name}> element")
    return Text(raw=raw, type=type_)


def _write_text(parent: ET.Element, name: str, text: Text) -> None:
    elem = ET.SubElement(parent, name, {"type": text.type})
    if text.type == "xhtml":
        try:
            wrapper = ET.fromstring(f'<wrapper xmlns="{XHTML_NS}">{text.raw}</wrapper>')
        except ET.ParseError:
            elem.text = text.raw
            return
        elem.text = wrapper.text
        elem.extend(list(wrapper))
        return
    elem.text = text.raw


def _append_entry(parent: ET.Element | None, entry: Entry) -> ET.Element:
    if parent is None:
        elem = ET.Element("entry", {"xmlns": ATOM_NS})
    else:
        elem = ET.SubElement(parent, "entry")

    if entry.id is not None:
        ET.SubElement(elem, "id").text = entry.id
    _write_text(elem, "title", entry.title)
    _write_text(elem, "content", entry.content)
    return elem


def _serialize(root: ET.Element) -> bytes:
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


class AtomCodec:
    """
    Translate between domain feeds/entries and Atom XML documents.
    """

    def decode_entry(self, data: bytes) -> Entry:
        try:
            root = ET.fromstring(data)
        except (ET.ParseError, LookupError, ValueError) as exc:
            # LookupError: unknown encoding named in the XML declaration.
            raise EntryDecodeError(str(exc)) from exc

        root_name = _local_name(root.tag)
        if root_name != "entry":
            raise EntryDecodeError(f"expected <entry> root element, got <{root_name or root.tag}>")

        title = _read_text(root, "title")
        content = _read_text(root, "content")

        entry_id = None
        id_elem = _find_child(root, "id")
        if id_elem is not None:
            entry_id = (id_elem.text or "").strip() or None

        return Entry(id=entry_id, title=title, content=content)

    def encode_entry(self, entry: Entry) -> bytes:
        return _serialize(_append_entry(None, entry))

    def encode_feed(self, feed: Feed) -> bytes:
        root = ET.Element("feed", {"xmlns": ATOM_NS})
        ET.SubElement(root, "id").text = feed.id
        ET.SubElement(root, "title").text = feed.title
        for entry in feed.entries:
            _append_entry(root, entry)
        logger.debug("feed_encoded title=%s entries=%s", feed.title, len(feed.entries))
        return _serialize(root)
