"""
Tests for client configuration, the process-wide envelope default and
settings loading.
"""

import json

import httpx
import pytest
from pydantic import ValidationError
from pydantic_settings import SettingsConfigDict

from soapcall.config.app_settings import (
    DEFAULT_ENVELOPE_ATTRS,
    ClientConfig,
    EnvelopeConfig,
    SoapSettings,
    default_envelope,
    reset_custom_envelope,
    set_custom_envelope,
)
from soapcall.soap.client import SoapClient
from soapcall.soap.models.request import Request
from soapcall.test.fake_service import WSDL_PATH
from soapcall.wsdl.parser import load_contract

TEM_ATTRS = {
    "xmlns:soapenv": "http://schemas.xmlsoap.org/soap/envelope/",
    "xmlns:tem": "http://tempuri.org/",
}


def never_called(request: httpx.Request) -> httpx.Response:
    raise AssertionError("no request expected")


class TestEnvelopeDefault:
    """Tests for set_custom_envelope and per-client envelope settings."""

    @pytest.fixture(autouse=True)
    def restore_default(self):
        """Restore the built-in envelope after each test."""
        yield
        reset_custom_envelope()

    def setup_method(self):
        self.contract = load_contract(WSDL_PATH)
        self.http_client = httpx.Client(transport=httpx.MockTransport(never_called))

    def teardown_method(self):
        self.http_client.close()

    def payload(self, client: SoapClient) -> str:
        payload, _ = client.build_payload(Request.new("GetIpLocation", {"sIp": "1"}))
        return payload.decode("utf-8")

    def test_builtin_default(self):
        assert default_envelope() == EnvelopeConfig(prefix="soap", attributes=DEFAULT_ENVELOPE_ATTRS)

    def test_custom_default_applies_to_new_clients_only(self):
        """Test changing the default leaves already built clients untouched."""
        before = SoapClient(self.contract, http_client=self.http_client)
        set_custom_envelope("soapenv", TEM_ATTRS)
        after = SoapClient(self.contract, http_client=self.http_client)

        assert self.payload(before).startswith("<soap:Envelope ")
        assert self.payload(after).startswith(
            '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" '
            'xmlns:tem="http://tempuri.org/">'
        )
        assert "<soapenv:Body>" in self.payload(after)

    def test_client_settings_win_over_default(self):
        set_custom_envelope("soapenv", TEM_ATTRS)
        client = SoapClient(
            self.contract,
            ClientConfig(envelope_prefix="s", envelope_attrs={"xmlns:s": "http://schemas.xmlsoap.org/soap/envelope/"}),
            http_client=self.http_client,
        )

        assert self.payload(client).startswith('<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/">')

    def test_prefix_override_keeps_default_attributes(self):
        config = ClientConfig(envelope_prefix="soapenv")

        assert config.envelope() == EnvelopeConfig(prefix="soapenv", attributes=DEFAULT_ENVELOPE_ATTRS)

    def test_reset(self):
        set_custom_envelope("x", {})
        reset_custom_envelope()

        assert default_envelope().prefix == "soap"

    def test_set_copies_attributes(self):
        attrs = dict(TEM_ATTRS)
        set_custom_envelope("soapenv", attrs)
        attrs["xmlns:late"] = "urn:late"

        assert "xmlns:late" not in default_envelope().attributes


class TestClientConfig:
    """Tests for ClientConfig validation."""

    def test_defaults(self):
        config = ClientConfig()

        assert config.auto_action is False
        assert config.log_requests is False
        assert config.logger is None
        assert config.timeout == 30.0

    def test_frozen(self):
        config = ClientConfig()

        with pytest.raises(ValidationError):
            config.auto_action = True

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ClientConfig(timeout=0)


class TestSoapSettings:
    """Tests for settings loaded from the environment and soapcall.json."""

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("SOAPCALL_WSDL", WSDL_PATH)
        monkeypatch.setenv("SOAPCALL_SERVICE", "IPService")
        monkeypatch.setenv("SOAPCALL_AUTO_ACTION", "true")
        monkeypatch.setenv("SOAPCALL_LOGGING__LEVEL", "DEBUG")

        settings = SoapSettings()

        assert settings.wsdl == WSDL_PATH
        assert settings.service == "IPService"
        assert settings.auto_action is True
        assert settings.logging.level == "DEBUG"

    def test_client_config(self, monkeypatch):
        """Test settings become client defaults and overrides win."""
        monkeypatch.setenv("SOAPCALL_PORT", "IPServiceSoap12")
        monkeypatch.setenv("SOAPCALL_TIMEOUT", "5")

        config = SoapSettings().client_config(auto_action=True, username="user")

        assert config.port == "IPServiceSoap12"
        assert config.timeout == 5.0
        assert config.auto_action is True
        assert config.username == "user"

    def test_json_file(self, tmp_path, monkeypatch):
        """Test values from the JSON file and environment precedence over it."""
        path = tmp_path / "soapcall.json"
        path.write_text(json.dumps({"service": "FromFile", "port": "FilePort", "log_requests": True}))
        monkeypatch.setenv("SOAPCALL_PORT", "EnvPort")

        class FileSettings(SoapSettings):
            model_config = SettingsConfigDict(**{**SoapSettings.model_config, "json_file": str(path)})

        settings = FileSettings()

        assert settings.service == "FromFile"
        assert settings.port == "EnvPort"
        assert settings.log_requests is True
