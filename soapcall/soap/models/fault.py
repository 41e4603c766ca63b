"""
Pydantic-XML model for SOAP Fault payloads.

SOAP 1.1 faults carry faultcode/faultstring/detail children; SOAP 1.2 faults
carry Code/Value, Reason/Text and Detail. Both are normalized to this model.
"""

from typing import Any, Optional

from pydantic import field_validator
from pydantic_xml import BaseXmlModel, element


class Fault(BaseXmlModel, tag="Fault", search_mode="unordered"):
    """A server-reported failure."""

    code: str = element(tag="faultcode", default="")
    description: str = element(tag="faultstring", default="")
    detail: Optional[str] = element(tag="detail", default=None)

    @field_validator("code", "description", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    def __str__(self) -> str:
        text = f"[{self.code}]: {self.description}"
        if self.detail:
            text += f" | Detail: {self.detail}"
        return text
