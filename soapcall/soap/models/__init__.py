"""
Data models for SOAP calls.

This package contains the contract model read from WSDL documents, the
request model and the pydantic-xml Fault model.
"""

from soapcall.soap.models.contract import (
    Binding,
    Contract,
    Port,
    Schema,
    Service,
)
from soapcall.soap.models.fault import Fault
from soapcall.soap.models.request import Request

__all__ = [
    # Contract
    "Binding",
    "Contract",
    "Port",
    "Schema",
    "Service",
    # Fault
    "Fault",
    # Request
    "Request",
]
