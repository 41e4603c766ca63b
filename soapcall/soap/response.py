"""
SOAP response decoding.

A Response keeps the raw Header and Body contents of the reply and decodes
them into pydantic-xml models on demand. The body is always checked for a
SOAP Fault first: a fault with a code is raised as FaultError even if the
requested model could have been filled from the same bytes.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional, TypeVar

from pydantic import ValidationError
from pydantic_xml import BaseXmlModel
from pydantic_xml.errors import BaseError as XmlModelError

from soapcall.soap.envelope import (
    find_child,
    first_element,
    get_element_text,
    local_name,
    parse_fragment,
    split_envelope,
)
from soapcall.soap.errors import DecodeError, EmptyBodyError, EmptyHeaderError, FaultError
from soapcall.soap.models.fault import Fault

T = TypeVar("T", bound=BaseXmlModel)


def _detail_text(element: Optional[ET.Element]) -> Optional[str]:
    if element is None:
        return None
    text = "".join(element.itertext()).strip()
    return text or None


def _soap11_fault(element: ET.Element) -> Fault:
    plain = strip_namespaces(element)
    # detail holds the text of nested elements; read outside the model
    detail = find_child(plain, "detail")
    if detail is not None:
        plain.remove(detail)
    try:
        fault = Fault.from_xml(ET.tostring(plain, encoding="unicode"))
    except (ValidationError, XmlModelError, ValueError) as e:
        raise DecodeError(f"error decoding the body to Fault: {e}") from e
    return fault.model_copy(update={"detail": _detail_text(detail)})


def fault_from_element(element: ET.Element) -> Optional[Fault]:
    """
    Read a SOAP 1.1 or 1.2 Fault element.

    Returns None if element is not a Fault or carries no fault code.
    """
    if local_name(element.tag) != "Fault":
        return None

    if get_element_text(element, "faultcode").strip():
        return _soap11_fault(element)

    # SOAP 1.2: <Code><Value/></Code><Reason><Text/></Reason><Detail/>
    code_element = find_child(element, "Code")
    if code_element is None:
        return None
    code = get_element_text(code_element, "Value").strip()
    if not code:
        return None
    reason = find_child(element, "Reason")
    return Fault(
        code=code,
        description=get_element_text(reason, "Text").strip() if reason is not None else "",
        detail=_detail_text(find_child(element, "Detail")),
    )


def strip_namespaces(element: ET.Element) -> ET.Element:
    """Return a copy of element with every tag and attribute name unqualified."""
    copy = ET.fromstring(ET.tostring(element))
    for node in copy.iter():
        node.tag = local_name(node.tag)
        attrs = {local_name(key): value for key, value in node.attrib.items()}
        node.attrib.clear()
        node.attrib.update(attrs)
    return copy


def declares_namespace(model_class: type[BaseXmlModel]) -> bool:
    """Return True if model_class is bound to an XML namespace."""
    return bool(getattr(model_class, "__xml_ns__", None) or getattr(model_class, "__xml_nsmap__", None))


def _decode_element(element: ET.Element, model_class: type[T], ignore_namespaces: Optional[bool] = None) -> T:
    # models without a namespace match on local names by default
    if ignore_namespaces is None:
        ignore_namespaces = not declares_namespace(model_class)
    if ignore_namespaces:
        element = strip_namespaces(element)
    xml = ET.tostring(element, encoding="unicode")
    try:
        return model_class.from_xml(xml)
    except (ValidationError, XmlModelError, ET.ParseError, ValueError, TypeError) as e:
        raise DecodeError(str(e)) from e


@dataclass
class Response:
    """
    A SOAP reply.

    body and header hold the inner XML of the Body and Header elements exactly
    as received.
    """

    body: bytes = b""
    header: bytes = b""
    body_namespaces: dict[str, str] = field(default_factory=dict)
    header_namespaces: dict[str, str] = field(default_factory=dict)
    encoding: str = "utf-8"

    @classmethod
    def from_envelope(cls, raw: bytes | str) -> "Response":
        """
        Build a Response from a complete reply envelope.

        Raises:
            EnvelopeError: If raw is not a readable SOAP envelope.
        """
        parts = split_envelope(raw)
        return cls(
            body=parts.body,
            header=parts.header,
            body_namespaces=parts.body_namespaces,
            header_namespaces=parts.header_namespaces,
            encoding=parts.encoding,
        )

    def _body_element(self) -> Optional[ET.Element]:
        if not self.body:
            raise EmptyBodyError()
        try:
            fragment = parse_fragment(self.body, self.body_namespaces, self.encoding)
        except (ET.ParseError, UnicodeDecodeError, LookupError) as e:
            raise DecodeError(f"error decoding the body to Fault: {e}") from e
        return first_element(fragment)

    def fault(self) -> Optional[Fault]:
        """
        Return the Fault carried by the body, or None.

        Raises:
            EmptyBodyError: If the body is empty.
            DecodeError: If the body is not well-formed XML.
        """
        element = self._body_element()
        if element is None:
            return None
        return fault_from_element(element)

    @property
    def is_fault(self) -> bool:
        try:
            return self.fault() is not None
        except DecodeError:
            return False

    def decode(self, model_class: type[T], ignore_namespaces: Optional[bool] = None) -> T:
        """
        Decode the first body element into model_class.

        Raises:
            EmptyBodyError: If the body is empty.
            FaultError: If the body is a SOAP Fault with a code.
            DecodeError: If the body cannot be decoded into model_class.

        With ignore_namespaces left as None, elements are matched on local
        names when model_class declares no namespace.
        """
        element = self._body_element()
        if element is None:
            raise DecodeError("body holds no element")

        fault = fault_from_element(element)
        if fault is not None:
            raise FaultError(fault)

        return _decode_element(element, model_class, ignore_namespaces)

    def decode_header(self, model_class: type[T], ignore_namespaces: Optional[bool] = None) -> T:
        """
        Decode the first header entry into model_class.

        Raises:
            EmptyHeaderError: If the reply had no header entries.
            DecodeError: If the header cannot be decoded into model_class.
        """
        if not self.header:
            raise EmptyHeaderError()
        try:
            fragment = parse_fragment(self.header, self.header_namespaces, self.encoding)
        except (ET.ParseError, UnicodeDecodeError, LookupError) as e:
            raise DecodeError(f"error decoding the header: {e}") from e

        element = first_element(fragment)
        if element is None:
            raise EmptyHeaderError()
        return _decode_element(element, model_class, ignore_namespaces)
