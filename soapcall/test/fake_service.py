"""
Fake IP location SOAP service used by the client tests.

Endpoint: /ipservice.asmx
Namespace: http://lavasoft.com/

Operations:
- GetIpLocation: answers with a location string, or a soap:Server fault when
  sIp is empty. A SessionHeader in the request is echoed back in the reply.
- Broken: answers with something that is not a SOAP envelope.
"""

import os
import xml.etree.ElementTree as ET
from typing import Optional
from xml.sax.saxutils import escape

from fastapi import FastAPI, Request, Response
from pydantic_xml import BaseXmlModel, element

from soapcall.soap.envelope import find_child, get_element_text, local_name

LAVASOFT_NS = "http://lavasoft.com/"

WSDL_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "ipservice.wsdl")


class GetIpLocationResponse(BaseXmlModel, tag="GetIpLocationResponse", nsmap={"": LAVASOFT_NS}):
    """Response model for GetIpLocation operation."""

    result: str = element(tag="GetIpLocationResult")


class SessionHeader(BaseXmlModel, tag="SessionHeader", nsmap={"": LAVASOFT_NS}):
    """Header block carrying a session token."""

    token: str = element(tag="Token")


def wrap_soap_envelope_raw(body_content: str, header_content: str = "") -> str:
    """
    Wrap raw XML string content in a SOAP envelope.

    Args:
        body_content: Raw XML string to wrap.
        header_content: Optional raw XML for the Header element.

    Returns:
        Complete SOAP envelope as an XML string.
    """
    header = f"<soap:Header>{header_content}</soap:Header>" if header_content else ""
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/" '
        'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xmlns:xsd="http://www.w3.org/2001/XMLSchema">'
        f"{header}"
        f"<soap:Body>{body_content}</soap:Body>"
        "</soap:Envelope>"
    )


def wrap_soap_envelope(body_content: BaseXmlModel, header_content: Optional[BaseXmlModel] = None) -> str:
    """Wrap a pydantic_xml model (and optional header model) in a SOAP envelope."""
    header_xml = header_content.to_xml(encoding="unicode") if header_content is not None else ""
    return wrap_soap_envelope_raw(body_content.to_xml(encoding="unicode"), header_xml)


def create_soap_fault(fault_string: str, fault_code: str = "soap:Server", detail: str = "") -> str:
    """
    Create a SOAP fault response.

    Args:
        fault_string: The error message.
        fault_code: The fault code (default: soap:Server).
        detail: Optional detail text.

    Returns:
        Complete SOAP fault envelope as an XML string.
    """
    detail_xml = f"<detail>{escape(detail)}</detail>" if detail else ""
    return wrap_soap_envelope_raw(
        f"<soap:Fault><faultcode>{escape(fault_code)}</faultcode>"
        f"<faultstring>{escape(fault_string)}</faultstring>{detail_xml}</soap:Fault>"
    )


def extract_soap_parts(xml_content: bytes) -> tuple[Optional[ET.Element], ET.Element]:
    """
    Extract the header block and the operation element from a SOAP request.

    Raises:
        ValueError: If SOAP Body or operation is not found.
    """
    root = ET.fromstring(xml_content)

    body = find_child(root, "Body")
    if body is None:
        raise ValueError("SOAP Body not found")

    operation = None
    for child in body:
        operation = child
        break
    if operation is None:
        raise ValueError("SOAP operation not found in Body")

    header_block = None
    header = find_child(root, "Header")
    if header is not None:
        header_block = find_child(header, "SessionHeader")

    return header_block, operation


def xml_response(content: str, status_code: int = 200) -> Response:
    return Response(content=content, status_code=status_code, media_type="text/xml; charset=utf-8")


def create_app() -> FastAPI:
    """Build the fake service; every request is recorded in app.state.requests."""
    app = FastAPI()
    app.state.requests = []

    @app.post("/ipservice.asmx")
    async def ip_service(request: Request) -> Response:
        body = await request.body()
        app.state.requests.append({"headers": dict(request.headers), "body": body})

        header_block, operation = extract_soap_parts(body)
        operation_name = local_name(operation.tag)

        if operation_name == "Broken":
            return xml_response("<html><body>Service Unavailable</body></html>", status_code=503)

        if operation_name in ("GetIpLocation", "GetLocation"):
            ip = get_element_text(operation, "sIp")
            if not ip:
                return xml_response(
                    create_soap_fault("sIp is required", detail="missing argument"),
                    status_code=500,
                )

            header = None
            if header_block is not None:
                header = SessionHeader(token=get_element_text(header_block, "Token"))

            location = f"<GeoIP><Country>{ip}</Country></GeoIP>"
            return xml_response(wrap_soap_envelope(GetIpLocationResponse(result=location), header))

        return xml_response(create_soap_fault(f"Unknown operation {operation_name}", "soap:Client"), 500)

    return app
