"""
Tests for loading and parsing WSDL documents.
"""

import httpx
import pytest

from soapcall.soap.errors import WSDLError
from soapcall.test.fake_service import WSDL_PATH
from soapcall.wsdl.parser import fetch_wsdl, load_contract, parse_contract

MINIMAL_WSDL = """<?xml version="1.0"?>
<definitions xmlns="http://schemas.xmlsoap.org/wsdl/"
             xmlns:soap="http://schemas.xmlsoap.org/wsdl/soap/"
             xmlns:xs="http://www.w3.org/2001/XMLSchema"
             targetNamespace="urn:minimal">
  <types>
    <xs:schema>
      <xs:import namespace="urn:imported" schemaLocation="a.xsd"/>
    </xs:schema>
  </types>
  <binding name="MinimalBinding" type="tns:Minimal">
    <operation name="Ping"/>
  </binding>
  <service name="Minimal">
    <port name="MinimalPort" binding="MinimalBinding">
      <soap:address location="http://localhost/minimal"/>
      <soap:address location="http://localhost/secondary"/>
    </port>
  </service>
</definitions>
"""


def read_fixture() -> bytes:
    with open(WSDL_PATH, "rb") as f:
        return f.read()


class TestParseContract:
    """Tests for parse_contract."""

    def test_services_and_ports(self):
        contract = parse_contract(read_fixture())

        assert contract.service_names == ["IPService"]
        ports = contract.services[0].ports
        assert [p.name for p in ports] == ["IPServiceSoap", "IPServiceSoap12"]
        assert ports[0].binding == "tns:IPServiceSoap"
        assert ports[0].addresses == ("http://testserver/ipservice.asmx",)
        assert ports[1].addresses == ("http://testserver/ipservice12.asmx",)

    def test_bindings_and_actions(self):
        """Test SOAP 1.1 and SOAP 1.2 operation actions are read."""
        contract = parse_contract(read_fixture())
        bindings = {b.name: b for b in contract.bindings}

        assert set(bindings) == {"IPServiceSoap", "IPServiceSoap12"}
        assert bindings["IPServiceSoap"].operations == {
            "GetIpLocation": "http://lavasoft.com/GetIpLocation",
            "GetLocation": "",
        }
        assert bindings["IPServiceSoap12"].action_for("GetIpLocation") == "http://lavasoft.com/GetIpLocation12"

    def test_namespaces(self):
        contract = parse_contract(read_fixture())

        assert contract.target_namespace == "http://lavasoft.com/"
        assert contract.schemas[0].target_namespace == "http://lavasoft.com/"

    def test_default_namespace_document(self):
        """Test a WSDL using the default namespace, imports and operations without actions."""
        contract = parse_contract(MINIMAL_WSDL)

        assert contract.target_namespace == "urn:minimal"
        assert contract.schemas[0].target_namespace == ""
        assert contract.schemas[0].imports == ("urn:imported",)
        assert contract.bindings[0].operations == {"Ping": ""}
        assert contract.services[0].ports[0].addresses == ("http://localhost/minimal", "http://localhost/secondary")

    def test_not_a_wsdl(self):
        with pytest.raises(WSDLError, match="expected WSDL definitions"):
            parse_contract("<html><body/></html>")

    def test_malformed(self):
        with pytest.raises(WSDLError, match="could not parse WSDL"):
            parse_contract(b"<definitions>")


class TestLoadContract:
    """Tests for the WSDL sources accepted by load_contract."""

    def test_filesystem_path(self):
        contract = load_contract(WSDL_PATH)

        assert contract.service_names == ["IPService"]

    def test_file_url(self):
        contract = load_contract(f"file://{WSDL_PATH}")

        assert contract.service_names == ["IPService"]

    def test_inline_document(self):
        assert load_contract(MINIMAL_WSDL).service_names == ["Minimal"]
        assert load_contract(MINIMAL_WSDL.encode()).service_names == ["Minimal"]

    def test_http_url(self):
        """Test WSDL documents are fetched through the given httpx client."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == "http://example.com/service?wsdl"
            return httpx.Response(200, content=read_fixture())

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            contract = load_contract("http://example.com/service?wsdl", http_client=client)

        assert contract.target_namespace == "http://lavasoft.com/"

    def test_http_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="not found")

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(WSDLError, match="could not fetch WSDL"):
                fetch_wsdl("https://example.com/missing?wsdl", http_client=client)

    def test_file_url_without_path(self):
        with pytest.raises(WSDLError, match="has no path"):
            fetch_wsdl("file:")

    def test_missing_file(self, tmp_path):
        with pytest.raises(WSDLError, match="could not read WSDL file"):
            load_contract(str(tmp_path / "missing.wsdl"))

    def test_unsupported_scheme(self):
        with pytest.raises(WSDLError, match="unsupported WSDL URL scheme 'ftp'"):
            fetch_wsdl("ftp://example.com/service.wsdl")

    def test_empty_source(self):
        with pytest.raises(WSDLError, match="WSDL source is empty"):
            fetch_wsdl("")
