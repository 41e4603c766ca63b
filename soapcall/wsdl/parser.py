"""
WSDL 1.1 loader.

Reads the parts of a WSDL document the client needs into the contract model:
target namespace, schema namespaces, bindings with their SOAPActions and
services with their port addresses. SOAP 1.1 and SOAP 1.2 extension elements
are both accepted; matching is done on local names.
"""

import os
import xml.etree.ElementTree as ET
from typing import Optional
from urllib.parse import unquote, urlparse

import httpx

from soapcall.soap.envelope import local_name
from soapcall.soap.errors import WSDLError
from soapcall.soap.models.contract import Binding, Contract, Port, Schema, Service
from soapcall.util.logging_helper import WSDL_LOGGER, get_logger

logger = get_logger(WSDL_LOGGER)


def _children(element: ET.Element, tag: str) -> list[ET.Element]:
    return [child for child in element if local_name(child.tag) == tag]


def _parse_schemas(root: ET.Element) -> tuple[Schema, ...]:
    schemas = []
    for types in _children(root, "types"):
        for schema in _children(types, "schema"):
            imports = tuple(
                imp.get("namespace", "") for imp in _children(schema, "import") if imp.get("namespace")
            )
            schemas.append(Schema(target_namespace=schema.get("targetNamespace", ""), imports=imports))
    return tuple(schemas)


def _parse_binding(element: ET.Element) -> Binding:
    operations: dict[str, str] = {}
    for operation in _children(element, "operation"):
        name = operation.get("name", "")
        action = ""
        # soap:operation / soap12:operation extension element
        for extension in _children(operation, "operation"):
            if "soapAction" in extension.attrib:
                action = extension.get("soapAction", "")
                break
        operations[name] = action
    return Binding(name=element.get("name", ""), operations=operations)


def _parse_service(element: ET.Element) -> Service:
    ports = []
    for port in _children(element, "port"):
        addresses = tuple(
            address.get("location", "") for address in _children(port, "address") if address.get("location")
        )
        ports.append(Port(name=port.get("name", ""), binding=port.get("binding", ""), addresses=addresses))
    return Service(name=element.get("name", ""), ports=tuple(ports))


def parse_contract(xml_content: str | bytes) -> Contract:
    """
    Parse a WSDL document into a Contract.

    Raises:
        WSDLError: If the document is not well-formed or is not a WSDL definitions element.
    """
    try:
        root = ET.fromstring(xml_content)
    except ET.ParseError as e:
        raise WSDLError(f"could not parse WSDL: {e}") from e

    if local_name(root.tag) != "definitions":
        raise WSDLError(f"expected WSDL definitions root element, got {local_name(root.tag)!r}")

    contract = Contract(
        services=tuple(_parse_service(s) for s in _children(root, "service")),
        bindings=tuple(_parse_binding(b) for b in _children(root, "binding")),
        target_namespace=root.get("targetNamespace", ""),
        schemas=_parse_schemas(root),
    )
    logger.debug(
        "Parsed WSDL: %d services, %d bindings, targetNamespace=%s",
        len(contract.services),
        len(contract.bindings),
        contract.target_namespace,
    )
    return contract


def _read_file(path: str) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise WSDLError(f"could not read WSDL file {path!r}: {e}") from e


def fetch_wsdl(source: str, http_client: Optional[httpx.Client] = None, timeout: float = 30.0) -> bytes:
    """
    Fetch the raw WSDL document.

    source may be an http(s) URL, a file:// URL or a filesystem path.

    Raises:
        WSDLError: If the document cannot be retrieved.
    """
    if not source:
        raise WSDLError("WSDL source is empty")

    parsed = urlparse(source)
    if parsed.scheme in ("http", "https"):
        client = http_client or httpx.Client(timeout=timeout)
        try:
            response = client.get(source)
            response.raise_for_status()
            return response.content
        except httpx.HTTPError as e:
            raise WSDLError(f"could not fetch WSDL from {source}: {e}") from e
        finally:
            if http_client is None:
                client.close()

    if parsed.scheme == "file":
        path = unquote(parsed.path)
        if not path:
            raise WSDLError(f"WSDL file URL {source!r} has no path")
        return _read_file(path)

    if parsed.scheme and len(parsed.scheme) > 1:
        raise WSDLError(f"unsupported WSDL URL scheme {parsed.scheme!r}")

    return _read_file(os.path.expanduser(source))


def load_contract(
    source: str | bytes,
    http_client: Optional[httpx.Client] = None,
    timeout: float = 30.0,
) -> Contract:
    """
    Load and parse a WSDL document.

    source may be raw WSDL bytes, an XML string, an http(s) URL, a file:// URL
    or a filesystem path.
    """
    if isinstance(source, bytes):
        return parse_contract(source)
    if source.lstrip().startswith("<"):
        return parse_contract(source)
    logger.debug("Loading WSDL from %s", source)
    return parse_contract(fetch_wsdl(source, http_client=http_client, timeout=timeout))
