"""
Exception hierarchy for the SOAP client.

Contract errors are raised while resolving the service address, encoding
errors before any network I/O, transport and envelope errors carry the exact
payload that was sent, and server faults get their own type so callers can
tell them apart from plain decoding failures.
"""

from typing import Optional

from soapcall.soap.models.fault import Fault


class SoapError(Exception):
    """Base class for every error raised by soapcall."""


# --- Contract / configuration ---


class ContractError(SoapError):
    """The contract cannot provide what the caller asked for."""

    def __init__(self, message: str, requested: str = "", candidates: Optional[list[str]] = None):
        super().__init__(message)
        self.requested = requested
        self.candidates = list(candidates or [])


class NoServicesError(ContractError):
    pass


class ServiceNotFoundError(ContractError):
    pass


class NoPortsError(ContractError):
    pass


class PortNotFoundError(ContractError):
    pass


class NoAddressError(ContractError):
    pass


class BindingNotFoundError(ContractError):
    pass


class WSDLError(ContractError):
    """The WSDL document could not be fetched or parsed."""


# --- Encoding ---


class EncodingError(SoapError):
    """The request cannot be turned into a well-formed envelope."""


# --- Transport ---


class PayloadError(SoapError):
    """An error raised after the envelope was built; keeps the bytes that were sent."""

    def __init__(self, message: str, payload: bytes = b""):
        super().__init__(message)
        self.payload = payload


class TransportError(PayloadError):
    """The HTTP exchange failed."""


# --- Decoding ---


class DecodeError(SoapError):
    """The reply could not be decoded into the requested model."""


class EmptyBodyError(DecodeError):
    def __init__(self, message: str = "body is empty"):
        super().__init__(message)


class EmptyHeaderError(DecodeError):
    def __init__(self, message: str = "Header is empty"):
        super().__init__(message)


class EnvelopeError(PayloadError, DecodeError):
    """The reply is not a readable SOAP envelope."""


# --- Server fault ---


class FaultError(SoapError):
    """
    The server answered with a SOAP Fault.

    Two fault errors are equal when code and description match; the detail
    is ignored.
    """

    def __init__(self, fault: Fault):
        super().__init__(str(fault))
        self.fault = fault

    @property
    def code(self) -> str:
        return self.fault.code

    @property
    def description(self) -> str:
        return self.fault.description

    @property
    def detail(self) -> Optional[str]:
        return self.fault.detail

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FaultError):
            return NotImplemented
        return (self.code, self.description) == (other.code, other.description)

    def __hash__(self) -> int:
        return hash((self.code, self.description))


def is_fault(error: Optional[BaseException]) -> bool:
    """Return True if error (or anything in its cause chain) is a FaultError."""
    while error is not None:
        if isinstance(error, FaultError):
            return True
        error = error.__cause__
    return False


def get_payload(error: Optional[BaseException]) -> Optional[bytes]:
    """Return the outgoing envelope bytes attached to error, if any."""
    if isinstance(error, PayloadError):
        return error.payload
    return None
