"""
SOAP envelope helpers for reading replies.

This module splits a reply envelope into the raw inner bytes of its Header and
Body elements and provides the small ElementTree helpers used to decode those
fragments later.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional
from xml.parsers import expat
from xml.sax.saxutils import quoteattr

from soapcall.config.app_settings import SOAP12_ENV_NS, SOAP_ENV_NS, XSD_NS, XSI_NS
from soapcall.soap.errors import EnvelopeError

# Prefixes assumed when a fragment uses them without a declaration in scope
COMMON_NAMESPACES = {
    "soap": SOAP_ENV_NS,
    "soapenv": SOAP_ENV_NS,
    "SOAP-ENV": SOAP_ENV_NS,
    "soap12": SOAP12_ENV_NS,
    "env": SOAP12_ENV_NS,
    "xsi": XSI_NS,
    "xsd": XSD_NS,
}


def local_name(tag: str) -> str:
    """Strip a {namespace} or prefix: qualifier from a tag name."""
    if "}" in tag:
        tag = tag.split("}")[-1]
    return tag.split(":")[-1]


@dataclass
class EnvelopeParts:
    """Verbatim Header/Body contents of a reply plus what is needed to parse them."""

    header: bytes = b""
    body: bytes = b""
    header_namespaces: dict[str, str] = field(default_factory=dict)
    body_namespaces: dict[str, str] = field(default_factory=dict)
    encoding: str = "utf-8"


def _declared_namespaces(attrs: dict[str, str]) -> dict[str, str]:
    declared = {}
    for key, value in attrs.items():
        if key == "xmlns":
            declared[""] = value
        elif key.startswith("xmlns:"):
            declared[key[len("xmlns:"):]] = value
    return declared


class _EnvelopeSplitter:
    """Expat handlers recording the byte offsets of Header and Body contents."""

    def __init__(self, parser):
        self.parser = parser
        self.depth = 0
        self.encoding = "utf-8"
        self.envelope_namespaces: dict[str, str] = {}
        self.namespaces: dict[str, dict[str, str]] = {}
        self.spans: dict[str, tuple[int, int]] = {}
        # section whose element is open, and the offset of its first content event
        self.section: Optional[str] = None
        self.content_start: Optional[int] = None

        parser.XmlDeclHandler = self.xml_decl
        parser.StartElementHandler = self.start_element
        parser.EndElementHandler = self.end_element
        parser.CharacterDataHandler = self.content
        parser.CommentHandler = self.content
        parser.ProcessingInstructionHandler = self.content
        parser.StartCdataSectionHandler = self.content

    def xml_decl(self, version, encoding, standalone):
        if encoding:
            self.encoding = encoding

    def content(self, *args):
        if self.section is not None and self.content_start is None:
            self.content_start = self.parser.CurrentByteIndex

    def start_element(self, name, attrs):
        self.content()
        tag = local_name(name)

        if self.depth == 0:
            if tag != "Envelope":
                raise EnvelopeError(f"expected Envelope root element, got {name!r}")
            self.envelope_namespaces = _declared_namespaces(attrs)
        elif self.depth == 1 and tag in ("Header", "Body") and tag not in self.spans:
            self.section = tag
            self.content_start = None
            self.namespaces[tag] = {**self.envelope_namespaces, **_declared_namespaces(attrs)}

        self.depth += 1

    def end_element(self, name):
        self.depth -= 1
        if self.depth == 1 and self.section is not None:
            end = self.parser.CurrentByteIndex
            start = self.content_start if self.content_start is not None else end
            self.spans[self.section] = (start, end)
            self.section = None
            self.content_start = None


def split_envelope(raw: bytes | str) -> EnvelopeParts:
    """
    Split a SOAP envelope into the inner contents of its Header and Body.

    Matching is done on local names, so any envelope prefix or SOAP version
    is accepted. The returned bytes are sliced from the input unchanged.

    Raises:
        EnvelopeError: If raw is not well-formed XML or its root is not an Envelope.
    """
    if isinstance(raw, str):
        raw = raw.encode("utf-8")

    parser = expat.ParserCreate()
    splitter = _EnvelopeSplitter(parser)
    try:
        parser.Parse(raw, True)
    except expat.ExpatError as e:
        raise EnvelopeError(f"error decoding the envelope: {e}") from e

    parts = EnvelopeParts(encoding=splitter.encoding)
    if "Header" in splitter.spans:
        start, end = splitter.spans["Header"]
        parts.header = raw[start:end]
        parts.header_namespaces = splitter.namespaces["Header"]
    if "Body" in splitter.spans:
        start, end = splitter.spans["Body"]
        parts.body = raw[start:end]
        parts.body_namespaces = splitter.namespaces["Body"]
    return parts


def parse_fragment(data: bytes, namespaces: dict[str, str], encoding: str = "utf-8") -> ET.Element:
    """
    Parse an XML fragment cut out of an envelope.

    The fragment may hold several elements and use prefixes declared on the
    enclosing envelope, so it is wrapped in an element re-declaring them. The
    usual SOAP prefixes are declared even when namespaces is empty.

    Raises:
        ET.ParseError: If the fragment is not well-formed.
    """
    declarations = "".join(
        f" xmlns={quoteattr(uri)}" if prefix == "" else f" xmlns:{prefix}={quoteattr(uri)}"
        for prefix, uri in {**COMMON_NAMESPACES, **namespaces}.items()
    )
    text = data.decode(encoding)
    return ET.fromstring(f"<fragment{declarations}>{text}</fragment>")


def first_element(fragment: ET.Element) -> Optional[ET.Element]:
    """Return the first child element of a parsed fragment."""
    for child in fragment:
        return child
    return None


def find_child(element: ET.Element, tag: str) -> Optional[ET.Element]:
    """Find a direct child by local name, ignoring namespaces."""
    for child in element:
        if local_name(child.tag) == tag:
            return child
    return None


def get_element_text(element: ET.Element, tag: str) -> str:
    """
    Get text content of a child element by tag name.

    Args:
        element: Parent element to search in.
        tag: Tag name to find (without namespace).

    Returns:
        The text content of the found element, or empty string if not found.
    """
    child = find_child(element, tag)
    if child is None:
        return ""
    return child.text or ""
