"""
Contract model: the parsed shape of a WSDL document.

Built once per client by soapcall.wsdl.parser (or by hand) and only read
afterwards. Lists keep declaration order, which the binding resolver relies
on when no service or port name is requested.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Schema:
    """A types/schema entry: its target namespace and imported namespaces."""

    target_namespace: str = ""
    imports: tuple[str, ...] = ()


@dataclass(frozen=True)
class Binding:
    """A named binding mapping operation names to SOAPAction strings."""

    name: str
    operations: dict[str, str] = field(default_factory=dict)

    def action_for(self, operation: str) -> str:
        """Return the registered action for operation, or an empty string."""
        return self.operations.get(operation, "")


@dataclass(frozen=True)
class Port:
    """A service endpoint; binding may be namespace-qualified (prefix:Name)."""

    name: str
    binding: str
    addresses: tuple[str, ...] = ()

    @property
    def binding_local_name(self) -> str:
        return self.binding.split(":", 1)[1] if ":" in self.binding else self.binding


@dataclass(frozen=True)
class Service:
    name: str
    ports: tuple[Port, ...] = ()


@dataclass(frozen=True)
class Contract:
    services: tuple[Service, ...] = ()
    bindings: tuple[Binding, ...] = ()
    target_namespace: str = ""
    schemas: tuple[Schema, ...] = ()

    @property
    def service_names(self) -> list[str]:
        return [service.name for service in self.services]
