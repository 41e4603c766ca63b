"""
SOAP envelope encoder.

Turns a Request into an ordered stream of XML tokens and writes that stream
as an envelope:

    <soap:Envelope ...>
        <soap:Header xmlns="NS">...</soap:Header>     (only with header entries)
        <soap:Body>
            <Operation xmlns="NS">...body...</Operation>
        </soap:Body>
    </soap:Envelope>

Payload values are classified into a closed set of shapes before traversal:

    MappingValue   dict-like; one element per key
    PairsValue     (label, value) pairs; one element per pair, in order
    SequenceValue  list; each item traversed in order, no wrapping element
    TextValue      character data
    NamedValue     element whose name and value come from the object itself
    OpaqueValue    pydantic-xml model, rendered by pydantic-xml

Plain Python values are mapped onto these by as_encodable(); anything else
is skipped.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional, Protocol, Union, runtime_checkable
from xml.sax.saxutils import escape

from pydantic_xml import BaseXmlModel

from soapcall.config.app_settings import EnvelopeConfig
from soapcall.soap.errors import EncodingError
from soapcall.soap.models.request import Request
from soapcall.util.logging_helper import ENCODER_LOGGER, get_logger

logger = get_logger(ENCODER_LOGGER)

DEFAULT_INDENT = "    "

# characters XML 1.0 does not allow; written as U+FFFD
_INVALID_XML_CHARS = re.compile("[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")

_ROOT_TAG = re.compile(r"<([^\s/>]+)")


# --- Self-describing elements ---


@runtime_checkable
class NamedElement(Protocol):
    """A value that supplies its own element name."""

    def element_name(self) -> str: ...

    def element_value(self) -> Any: ...


# --- Payload shapes ---


@dataclass(frozen=True)
class MappingValue:
    items: Mapping[Any, Any]


@dataclass(frozen=True)
class PairsValue:
    pairs: tuple[tuple[Any, Any], ...]


@dataclass(frozen=True)
class SequenceValue:
    items: tuple[Any, ...]


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class NamedValue:
    name: str
    value: Any = None

    def element_name(self) -> str:
        return self.name

    def element_value(self) -> Any:
        return self.value


@dataclass(frozen=True)
class OpaqueValue:
    model: BaseXmlModel


Encodable = Union[MappingValue, PairsValue, SequenceValue, TextValue, NamedValue, OpaqueValue]


def named(value: Any, name: str) -> NamedValue:
    """Wrap value so it is written as an element called name."""
    return NamedValue(name=name, value=value)


def pairs(*items: tuple[Any, Any]) -> PairsValue:
    """Build an ordered list of (label, value) fields."""
    return PairsValue(pairs=tuple(items))


def as_encodable(value: Any) -> Optional[Encodable]:
    """
    Classify a payload value by shape.

    Returns None for shapes the encoder does not write (None, bytes, arbitrary
    objects).
    """
    if isinstance(value, (MappingValue, PairsValue, SequenceValue, TextValue, NamedValue, OpaqueValue)):
        return value
    if isinstance(value, BaseXmlModel):
        return OpaqueValue(model=value)
    if isinstance(value, NamedElement):
        return NamedValue(name=value.element_name(), value=value.element_value())
    if isinstance(value, bool):
        return TextValue(text="true" if value else "false")
    if isinstance(value, str):
        return TextValue(text=value)
    if isinstance(value, (int, float, Decimal)):
        return TextValue(text=str(value))
    if isinstance(value, Mapping):
        return MappingValue(items=value)
    if isinstance(value, tuple) and len(value) == 2:
        return PairsValue(pairs=(value,))
    if isinstance(value, (list, tuple)):
        return SequenceValue(items=tuple(value))
    return None


# --- Tokens ---


@dataclass(frozen=True)
class StartElement:
    name: str
    attrs: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class EndElement:
    name: str


@dataclass(frozen=True)
class CharData:
    text: str


@dataclass(frozen=True)
class ModelElement:
    """A pydantic-xml model, written by pydantic-xml; name overrides its tag when set."""

    model: BaseXmlModel
    name: Optional[str] = None


Token = Union[StartElement, EndElement, CharData, ModelElement]


@dataclass
class TokenStream:
    tokens: list[Token] = field(default_factory=list)

    def element(self, name: str, value: Any) -> None:
        start = StartElement(name=name)
        self.tokens.append(start)
        self.traverse(value)
        self.tokens.append(EndElement(name=name))

    def traverse(self, value: Any) -> None:
        node = as_encodable(value)
        if node is None:
            return

        if isinstance(node, MappingValue):
            for key, item in node.items.items():
                self.element(str(key), item)
        elif isinstance(node, PairsValue):
            for label, item in node.pairs:
                self.element(str(label), item)
        elif isinstance(node, SequenceValue):
            for item in node.items:
                self.traverse(item)
        elif isinstance(node, TextValue):
            self.tokens.append(CharData(text=node.text))
        elif isinstance(node, NamedValue):
            if isinstance(node.value, BaseXmlModel):
                self.tokens.append(ModelElement(model=node.value, name=node.name))
            else:
                self.element(node.name, node.value)
        elif isinstance(node, OpaqueValue):
            self.tokens.append(ModelElement(model=node.model))


# --- Envelope ---


def encode_tokens(request: Request, envelope: EnvelopeConfig, namespace: str) -> list[Token]:
    """
    Build the token stream for request.

    Raises:
        EncodingError: If the operation name or the namespace is empty.
    """
    if not request.operation:
        raise EncodingError("operation is empty")
    if not namespace:
        raise EncodingError("namespace is empty")

    prefix = envelope.prefix
    stream = TokenStream()

    # sorted for reproducible output
    attrs = tuple(sorted(envelope.attributes.items(), key=lambda item: item[0]))
    stream.tokens.append(StartElement(name=f"{prefix}:Envelope", attrs=attrs))

    if request.headers:
        stream.tokens.append(StartElement(name=f"{prefix}:Header", attrs=(("xmlns", namespace),)))
        for entry in request.headers:
            stream.traverse(entry)
        stream.tokens.append(EndElement(name=f"{prefix}:Header"))

    stream.tokens.append(StartElement(name=f"{prefix}:Body"))
    stream.tokens.append(StartElement(name=request.operation, attrs=(("xmlns", namespace),)))
    stream.traverse(request.body)
    stream.tokens.append(EndElement(name=request.operation))
    stream.tokens.append(EndElement(name=f"{prefix}:Body"))
    stream.tokens.append(EndElement(name=f"{prefix}:Envelope"))

    return stream.tokens


def marshal(
    request: Request,
    envelope: EnvelopeConfig,
    namespace: str,
    indent: str = DEFAULT_INDENT,
) -> bytes:
    """Encode request and write it as UTF-8 envelope bytes."""
    tokens = encode_tokens(request, envelope, namespace)
    payload = write_tokens(tokens, indent=indent).encode("utf-8")
    logger.debug("Encoded %s: %d tokens, %d bytes", request.operation, len(tokens), len(payload))
    return payload


# --- Writer ---


def _check_name(name: Optional[str]) -> str:
    if not name:
        raise EncodingError("xml: start tag with no name")
    return name


def _escape_text(text: str) -> str:
    return escape(_INVALID_XML_CHARS.sub("\ufffd", text))


def _quote_attr(value: str) -> str:
    return '"' + escape(_INVALID_XML_CHARS.sub("\ufffd", value), {'"': "&quot;"}) + '"'


def _render_model(token: ModelElement) -> str:
    """
    Render a pydantic-xml model.

    A name replaces the local part of the root tag only; the root's prefix
    and namespace declarations are kept as pydantic-xml wrote them.
    """
    xml = token.model.to_xml(encoding="unicode").strip()
    if token.name is None:
        return xml

    name = _check_name(token.name)
    match = _ROOT_TAG.match(xml)
    if match is None:
        raise EncodingError(f"cannot rename {type(token.model).__name__}: no root element")
    old = match.group(1)
    prefix = old.rpartition(":")[0]
    new = f"{prefix}:{name}" if prefix and ":" not in name else name

    xml = f"<{new}{xml[match.end():]}"
    if xml.endswith(f"</{old}>"):
        xml = xml[: -len(old) - 3] + f"</{new}>"
    return xml


class XmlWriter:
    """
    Writes a token stream as XML text.

    Child elements go on their own indented line; an element that only holds
    character data is written on one line.
    """

    def __init__(self, indent: str = DEFAULT_INDENT):
        self.indent = indent
        self._parts: list[str] = []
        # open elements: [name, has child elements]
        self._open: list[list] = []

    def _newline(self) -> None:
        if self.indent and self._parts:
            self._parts.append("\n" + self.indent * len(self._open))

    def _mark_child(self) -> None:
        if self._open:
            self._open[-1][1] = True

    def write(self, token: Token) -> None:
        if isinstance(token, StartElement):
            name = _check_name(token.name)
            self._mark_child()
            self._newline()
            attrs = "".join(f" {_check_name(key)}={_quote_attr(value)}" for key, value in token.attrs)
            self._parts.append(f"<{name}{attrs}>")
            self._open.append([name, False])
        elif isinstance(token, EndElement):
            if not self._open:
                raise EncodingError(f"xml: end tag </{token.name}> without start tag")
            name, has_children = self._open.pop()
            if name != token.name:
                raise EncodingError(f"xml: end tag </{token.name}> does not match start tag <{name}>")
            if has_children:
                self._newline()
            self._parts.append(f"</{name}>")
        elif isinstance(token, CharData):
            self._parts.append(_escape_text(token.text))
        elif isinstance(token, ModelElement):
            rendered = _render_model(token)
            self._mark_child()
            self._newline()
            self._parts.append(rendered)
        else:
            raise EncodingError(f"unsupported token {token!r}")

    def getvalue(self) -> str:
        if self._open:
            raise EncodingError(f"xml: unclosed tag <{self._open[-1][0]}>")
        return "".join(self._parts)


def write_tokens(tokens: list[Token], indent: str = DEFAULT_INDENT) -> str:
    """
    Write tokens as XML text.

    Raises:
        EncodingError: On an empty element name or unbalanced tags.
    """
    writer = XmlWriter(indent=indent)
    for token in tokens:
        writer.write(token)
    return writer.getvalue()
