"""Request model: one SOAP call in progress."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Request:
    """
    A SOAP request.

    operation is the WSDL operation name; it names the element wrapping the
    body and selects the SOAPAction. headers holds the SOAP header entries,
    serialized in order inside a single Header element.
    """

    operation: str
    body: Any = None
    headers: tuple[Any, ...] = field(default_factory=tuple)

    @classmethod
    def new(cls, operation: str, body: Any = None, *headers: Any) -> "Request":
        """Create a request from an operation name, a body and any header entries."""
        return cls(operation=operation, body=body, headers=tuple(headers))
