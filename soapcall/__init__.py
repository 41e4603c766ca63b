"""
soapcall: call SOAP operations described by a WSDL contract.
"""

from soapcall._version import __version__
from soapcall.config.app_settings import (
    ClientConfig,
    EnvelopeConfig,
    SoapSettings,
    reset_custom_envelope,
    set_custom_envelope,
)
from soapcall.soap.client import AsyncSoapClient, SoapClient
from soapcall.soap.encoder import NamedElement, encode_tokens, marshal, named, pairs
from soapcall.soap.errors import (
    ContractError,
    DecodeError,
    EmptyBodyError,
    EmptyHeaderError,
    EncodingError,
    EnvelopeError,
    FaultError,
    SoapError,
    TransportError,
    WSDLError,
    get_payload,
    is_fault,
)
from soapcall.soap.models import Binding, Contract, Fault, Port, Request, Schema, Service
from soapcall.soap.response import Response
from soapcall.wsdl.binding import resolve
from soapcall.wsdl.parser import load_contract, parse_contract

__all__ = [
    "__version__",
    # Config
    "ClientConfig",
    "EnvelopeConfig",
    "SoapSettings",
    "reset_custom_envelope",
    "set_custom_envelope",
    # Client
    "AsyncSoapClient",
    "SoapClient",
    "Request",
    "Response",
    # Encoding
    "NamedElement",
    "encode_tokens",
    "marshal",
    "named",
    "pairs",
    # Errors
    "ContractError",
    "DecodeError",
    "EmptyBodyError",
    "EmptyHeaderError",
    "EncodingError",
    "EnvelopeError",
    "FaultError",
    "SoapError",
    "TransportError",
    "WSDLError",
    "get_payload",
    "is_fault",
    # Contract
    "Binding",
    "Contract",
    "Fault",
    "Port",
    "Schema",
    "Service",
    "load_contract",
    "parse_contract",
    "resolve",
]
