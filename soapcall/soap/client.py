"""
SOAP client.

Resolves the endpoint once at construction, then for every call: derives the
SOAPAction, encodes the envelope, posts it over httpx and splits the reply
into a Response. Faults are detected when the Response is decoded.

Usage:
    with SoapClient.from_wsdl("https://example.com/service?wsdl") as client:
        response = client.call("GetIpLocation", {"sIp": "127.0.0.1"})
        result = response.decode(GetIpLocationResponse)
"""

from typing import Any, Optional

import httpx

from soapcall.config.app_settings import ClientConfig, EnvelopeConfig, SoapSettings, soap_settings
from soapcall.soap.encoder import marshal
from soapcall.soap.errors import EnvelopeError, TransportError
from soapcall.soap.models.contract import Contract
from soapcall.soap.models.request import Request
from soapcall.soap.response import Response
from soapcall.util.logging_helper import CLIENT_LOGGER, CommunicationLogger, LoggingAdapter, get_logger
from soapcall.wsdl.binding import Resolution, resolve, soap_action
from soapcall.wsdl.parser import load_contract

logger = get_logger(CLIENT_LOGGER)

CONTENT_TYPE = "text/xml;charset=UTF-8"

# httpx.InvalidURL is raised for unusable addresses and is not an HTTPError
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class BaseSoapClient:
    """Transport-independent part of the client: routing, encoding and reply splitting."""

    def __init__(self, contract: Contract, config: Optional[ClientConfig] = None):
        self.config = config or ClientConfig()
        self.contract = contract
        self.resolution: Resolution = resolve(contract, self.config.service, self.config.port)
        self.envelope: EnvelopeConfig = self.config.envelope()
        self.communication_logger: CommunicationLogger = self.config.logger or LoggingAdapter()

    @property
    def service_name(self) -> str:
        return self.resolution.service.name

    @property
    def port_name(self) -> str:
        return self.resolution.port.name

    @property
    def address(self) -> str:
        return self.resolution.address

    @property
    def namespace(self) -> str:
        return self.resolution.namespace

    def action_for(self, operation: str) -> str:
        return soap_action(
            self.resolution.binding,
            operation,
            auto_action=self.config.auto_action,
            auto_action_url=self.resolution.auto_action_url,
            service_name=self.service_name,
        )

    def build_payload(self, request: Request) -> tuple[bytes, dict[str, str]]:
        """
        Encode request and build the HTTP headers for it.

        Raises:
            EncodingError: If the envelope cannot be encoded.
        """
        action = self.action_for(request.operation)
        payload = marshal(request, self.envelope, self.namespace)

        headers = {"Content-Type": CONTENT_TYPE, "Accept": "text/xml"}
        if action:
            headers["SOAPAction"] = action

        logger.debug("SOAP %s -> %s (SOAPAction=%r)", request.operation, self.address, action)
        return payload, headers

    def _request_kwargs(self, payload: bytes, headers: dict[str, str]) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"content": payload, "headers": headers}
        if self.config.username and self.config.password:
            kwargs["auth"] = httpx.BasicAuth(self.config.username, self.config.password)
        return kwargs

    def _log_request(self, request: Request, headers: dict[str, str], payload: bytes) -> None:
        if self.config.log_requests:
            self.communication_logger.log_request(request.operation, headers, payload)

    def _transport_error(self, request: Request, payload: bytes, error: Exception) -> TransportError:
        logger.error("SOAP %s: request to %s failed: %s", request.operation, self.address, error)
        return TransportError(str(error), payload=payload)

    def _finish(self, request: Request, payload: bytes, http_response: httpx.Response) -> Response:
        if self.config.log_requests:
            self.communication_logger.log_response(request.operation, http_response.headers, http_response.content)

        logger.debug("SOAP %s <- HTTP %d, %d bytes", request.operation, http_response.status_code, len(http_response.content))
        try:
            return Response.from_envelope(http_response.content)
        except EnvelopeError as e:
            logger.warning("SOAP %s: unreadable reply (HTTP %d): %s", request.operation, http_response.status_code, e)
            raise EnvelopeError(str(e), payload=payload) from e


class SoapClient(BaseSoapClient):
    """Blocking client built on httpx.Client."""

    def __init__(
        self,
        contract: Contract,
        config: Optional[ClientConfig] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        super().__init__(contract, config)
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=self.config.timeout)

    @classmethod
    def from_wsdl(
        cls,
        source: str | bytes,
        config: Optional[ClientConfig] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> "SoapClient":
        """Load the WSDL at source and build a client for it."""
        config = config or ClientConfig()
        contract = load_contract(source, http_client=http_client, timeout=config.timeout)
        return cls(contract, config, http_client)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[SoapSettings] = None,
        http_client: Optional[httpx.Client] = None,
        **overrides: Any,
    ) -> "SoapClient":
        """Build a client for the WSDL named in soapcall.json or SOAPCALL_WSDL."""
        settings = settings or soap_settings
        return cls.from_wsdl(settings.wsdl, settings.client_config(**overrides), http_client)

    def call(self, operation: str, body: Any = None, *headers: Any) -> Response:
        """Invoke operation with body and optional header entries."""
        return self.do(Request.new(operation, body, *headers))

    def do(self, request: Request) -> Response:
        """
        Send request and return the split reply.

        Raises:
            EncodingError: If the request cannot be encoded; nothing is sent.
            TransportError: If the HTTP exchange fails.
            EnvelopeError: If the reply is not a SOAP envelope.
        """
        payload, headers = self.build_payload(request)
        self._log_request(request, headers, payload)

        try:
            http_response = self.http_client.post(self.address, **self._request_kwargs(payload, headers))
        except TRANSPORT_ERRORS as e:
            raise self._transport_error(request, payload, e) from e

        return self._finish(request, payload, http_response)

    def close(self) -> None:
        if self._owns_http_client:
            self.http_client.close()

    def __enter__(self) -> "SoapClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class AsyncSoapClient(BaseSoapClient):
    """
    Asyncio client built on httpx.AsyncClient.

    Cancelling the task awaiting call() cancels the HTTP request.
    """

    def __init__(
        self,
        contract: Contract,
        config: Optional[ClientConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(contract, config)
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=self.config.timeout)

    async def call(self, operation: str, body: Any = None, *headers: Any) -> Response:
        return await self.do(Request.new(operation, body, *headers))

    async def do(self, request: Request) -> Response:
        payload, headers = self.build_payload(request)
        self._log_request(request, headers, payload)

        try:
            http_response = await self.http_client.post(self.address, **self._request_kwargs(payload, headers))
        except TRANSPORT_ERRORS as e:
            raise self._transport_error(request, payload, e) from e

        return self._finish(request, payload, http_response)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "AsyncSoapClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
