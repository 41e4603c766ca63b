import logging
import os
import threading
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, JsonConfigSettingsSource, SettingsConfigDict

from soapcall.util.logging_helper import setup_logging

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP12_ENV_NS = "http://www.w3.org/2003/05/soap-envelope"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
XSD_NS = "http://www.w3.org/2001/XMLSchema"

DEFAULT_ENVELOPE_PREFIX = "soap"
DEFAULT_ENVELOPE_ATTRS = {
    "xmlns:xsi": XSI_NS,
    "xmlns:xsd": XSD_NS,
    "xmlns:soap": SOAP_ENV_NS,
}


class EnvelopeConfig(BaseModel):
    """Prefix and root attributes used when writing the SOAP envelope."""

    model_config = ConfigDict(frozen=True)

    prefix: str = Field(default=DEFAULT_ENVELOPE_PREFIX)
    attributes: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_ENVELOPE_ATTRS))


# Legacy process-wide envelope default. Only read when a client is constructed.
_envelope_lock = threading.Lock()
_default_envelope = EnvelopeConfig()


def set_custom_envelope(prefix: str, attributes: dict[str, str]) -> None:
    """
    Replace the process-wide default envelope prefix and attributes.

    Only clients constructed after this call see the new default; a client's
    own envelope_prefix / envelope_attrs always take precedence.
    """
    global _default_envelope
    with _envelope_lock:
        _default_envelope = EnvelopeConfig(prefix=prefix, attributes=dict(attributes))


def reset_custom_envelope() -> None:
    """Restore the built-in soap/xsi/xsd envelope default."""
    global _default_envelope
    with _envelope_lock:
        _default_envelope = EnvelopeConfig()


def default_envelope() -> EnvelopeConfig:
    with _envelope_lock:
        return _default_envelope


class ClientConfig(BaseModel):
    """Per-client options. Immutable once the client is built."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    auto_action: bool = Field(default=False, description="Derive SOAPAction from namespace/service/operation when the binding has none")
    log_requests: bool = Field(default=False, description="Dump requests and replies through the communication logger")
    logger: Optional[Any] = Field(default=None, description="CommunicationLogger; defaults to a LoggingAdapter at INFO")

    service: str = Field(default="")
    port: str = Field(default="")

    envelope_prefix: str = Field(default="")
    envelope_attrs: dict[str, str] = Field(default_factory=dict)

    username: str = Field(default="")
    password: str = Field(default="")

    timeout: float = Field(default=30.0, gt=0)

    def envelope(self) -> EnvelopeConfig:
        """Resolve the envelope settings against the process-wide default."""
        fallback = default_envelope()
        return EnvelopeConfig(
            prefix=self.envelope_prefix or fallback.prefix,
            attributes=dict(self.envelope_attrs) if self.envelope_attrs else dict(fallback.attributes),
        )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")


# Compute config path at module load time
_config_path = os.path.join(os.getcwd(), "soapcall.json")


class SoapSettings(BaseSettings):
    """Process defaults read from soapcall.json and SOAPCALL_* environment variables."""

    wsdl: str = Field(default="")
    service: str = Field(default="")
    port: str = Field(default="")
    auto_action: bool = Field(default=False)
    log_requests: bool = Field(default=False)
    timeout: float = Field(default=30.0, gt=0)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        json_file=_config_path,
        json_file_encoding="utf-8",
        env_prefix="SOAPCALL_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            JsonConfigSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )

    def client_config(self, **overrides: Any) -> ClientConfig:
        """Build a ClientConfig from these settings, applying keyword overrides."""
        values: dict[str, Any] = {
            "service": self.service,
            "port": self.port,
            "auto_action": self.auto_action,
            "log_requests": self.log_requests,
            "timeout": self.timeout,
        }
        values.update(overrides)
        return ClientConfig(**values)

    def configure_logging(self) -> None:
        """Configure root logging at the configured level."""
        log_level = getattr(logging, self.logging.level.upper(), logging.INFO)
        setup_logging(level=log_level)


soap_settings = SoapSettings()
