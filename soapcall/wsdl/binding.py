"""
Binding resolution.

Given a parsed contract, picks the service, port, address and binding a
client talks to, and derives the SOAPAction for an operation.

Selection rules:
- an empty service (port) name selects the first one declared;
- a non-empty name must match exactly, otherwise the error lists the valid names;
- only the first address of a port is used;
- a port's binding reference may be namespace-qualified (tns:FooBinding).
"""

from dataclasses import dataclass

from soapcall.soap.errors import (
    BindingNotFoundError,
    NoAddressError,
    NoPortsError,
    NoServicesError,
    PortNotFoundError,
    ServiceNotFoundError,
)
from soapcall.soap.models.contract import Binding, Contract, Port, Service
from soapcall.util.logging_helper import BINDING_LOGGER, get_logger

logger = get_logger(BINDING_LOGGER)


@dataclass(frozen=True)
class Resolution:
    """Routing data for one client."""

    service: Service
    port: Port
    address: str
    binding: Binding
    namespace: str
    auto_action_url: str


def select_service_and_port(contract: Contract, service_name: str = "", port_name: str = "") -> tuple[Service, Port]:
    """
    Select the service and port to use.

    Raises:
        NoServicesError: If the contract declares no service.
        ServiceNotFoundError: If service_name is set and matches no service.
        NoPortsError: If the selected service has no port.
        PortNotFoundError: If port_name is set and matches no port.
        NoAddressError: If the selected port has no address.
    """
    if not contract.services:
        raise NoServicesError("WSDL has no services")

    if not service_name:
        service = contract.services[0]
    else:
        service = next((s for s in contract.services if s.name == service_name), None)
        if service is None:
            candidates = contract.service_names
            raise ServiceNotFoundError(
                f"no service matching {service_name!r} found, possible values are {candidates}",
                requested=service_name,
                candidates=candidates,
            )

    if not service.ports:
        raise NoPortsError(f"WSDL service {service.name!r} has no ports", requested=service.name)

    if not port_name:
        port = service.ports[0]
    else:
        port = next((p for p in service.ports if p.name == port_name), None)
        if port is None:
            candidates = [p.name for p in service.ports]
            raise PortNotFoundError(
                f"no port matching {port_name!r} found, possible values are {candidates}",
                requested=port_name,
                candidates=candidates,
            )

    if not port.addresses:
        raise NoAddressError(f"WSDL port {port.name!r} has no addresses", requested=port.name)

    return service, port


def find_binding(contract: Contract, port: Port) -> Binding:
    """
    Find the binding a port refers to, by full or local name.

    Raises:
        BindingNotFoundError: If no binding matches.
    """
    local = port.binding_local_name
    for binding in contract.bindings:
        if binding.name == local or binding.name == port.binding:
            return binding
    raise BindingNotFoundError(
        f"could not find binding matching {port.binding!r}",
        requested=port.binding,
        candidates=[b.name for b in contract.bindings],
    )


def target_namespace(contract: Contract) -> str:
    """
    Namespace used for the Header and operation elements.

    The first schema's targetNamespace, else the namespace of its first
    import, else empty.
    """
    if not contract.schemas:
        return ""
    schema = contract.schemas[0]
    if schema.target_namespace:
        return schema.target_namespace
    if schema.imports:
        return schema.imports[0]
    return ""


def soap_action(
    binding: Binding,
    operation: str,
    *,
    auto_action: bool = False,
    auto_action_url: str = "",
    service_name: str = "",
) -> str:
    """
    SOAPAction for operation.

    The action registered in the binding wins. Otherwise, with auto_action
    enabled, it is built as "{auto_action_url}/{service_name}/{operation}";
    without a target namespace to build from, the action stays empty.
    """
    action = binding.action_for(operation)
    if action or not auto_action:
        return action

    if not auto_action_url:
        logger.warning("Cannot derive SOAPAction for %s: contract has no target namespace", operation)
        return ""

    return f"{auto_action_url}/{service_name}/{operation}"


def resolve(contract: Contract, service_name: str = "", port_name: str = "") -> Resolution:
    """
    Resolve the routing data for a client.

    Raises:
        ContractError: See select_service_and_port and find_binding.
    """
    service, port = select_service_and_port(contract, service_name, port_name)
    binding = find_binding(contract, port)
    resolution = Resolution(
        service=service,
        port=port,
        address=port.addresses[0],
        binding=binding,
        namespace=target_namespace(contract),
        auto_action_url=contract.target_namespace.removesuffix("/"),
    )
    logger.debug(
        "Resolved service=%s port=%s address=%s binding=%s namespace=%s",
        service.name,
        port.name,
        resolution.address,
        binding.name,
        resolution.namespace,
    )
    return resolution
