"""
AFIP Runtime: configuration, error types and the SOAP request gateway.
"""
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Union

from pydantic import ValidationError

from afip_remitos.models.schemas import ServiceDescriptor

logger = logging.getLogger(__name__)


@dataclass
class AfipConfig:
    """Configuration shared by every web service gateway of one SDK instance."""

    cuit: Union[int, str]
    production: bool = False
    res_folder: Optional[str] = None   # directory holding the .wsdl files
    debug: bool = False
    timeout: Optional[float] = None    # transport timeout, seconds


class AfipError(Exception):
    """Base class for every error raised by the SDK itself."""

    def __init__(self, message: str, code: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={str(self)!r})"


class ConfigurationError(AfipError):
    """Raised when a gateway is built with a missing or invalid configuration."""


class AuthError(AfipError):
    """
    Raised by ticket authorities when a ``{token, sign}`` pair cannot be
    issued. The SDK propagates it to the caller untouched.
    """


class ServiceError(AfipError):
    """
    Business-level error reported by an AFIP web service through its
    ``Errors.Err`` envelope.

    ``message`` holds the full text, as for every AfipError; the bare
    provider text is kept in ``detail``.
    """

    def __init__(self, code: Any, detail: str) -> None:
        message = detail if code is None else f"({code}) {detail}"
        super().__init__(message, code=code)
        self.detail = detail


@dataclass(frozen=True)
class ClientOptions:
    """Options handed to the SOAP client factory when a client is built."""

    disable_cache: bool = True
    force_soap12_headers: bool = False
    namespace_array_elements: bool = True
    date_passthrough: bool = True
    timeout: Optional[float] = None


class SoapClient(Protocol):
    def set_endpoint(self, url: str) -> None: ...

    def call(self, operation: str, params: Dict[str, Any], options: Mapping[str, Any]) -> Any: ...


ClientFactory = Callable[[str, ClientOptions], SoapClient]


def default_client_factory(wsdl: str, options: ClientOptions) -> SoapClient:
    """Build the zeep-backed client."""
    # Lazy import so `zeep` is only required once a real call is made
    from afip_remitos.soap import ZeepSoapClient

    return ZeepSoapClient(wsdl, options)


def _resolve_wsdl(wsdl: str, url: str, res_folder: Optional[str]) -> str:
    if wsdl.startswith(("http://", "https://")) or os.path.isabs(wsdl):
        return wsdl
    if res_folder:
        return os.path.abspath(os.path.join(res_folder, wsdl))
    # AFIP publishes every service description next to its endpoint
    return f"{url}?wsdl"


class SoapGateway:
    """
    Low-level SOAP gateway for one AFIP web service.

    Responsibilities:
    - Picks the production or test WSDL/endpoint pair once, at construction.
    - Builds the SOAP client on first use and reuses it afterwards.
    - Invokes named operations and returns the parsed response record.

    Error envelopes in the response are not inspected here; that belongs
    to the service adapters.
    """

    def __init__(
        self,
        descriptor: Union[ServiceDescriptor, Mapping[str, Any], None],
        config: Optional[AfipConfig],
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        if not descriptor:
            raise ConfigurationError("Missing web service descriptor")
        if config is None:
            raise ConfigurationError("Missing AFIP configuration")

        if not isinstance(descriptor, ServiceDescriptor):
            try:
                descriptor = ServiceDescriptor.model_validate(descriptor)
            except ValidationError as exc:
                raise ConfigurationError(f"Invalid web service descriptor: {exc}") from exc

        self._descriptor = descriptor
        self._config = config
        self._client_factory = client_factory or default_client_factory
        self._client: Optional[SoapClient] = None
        self._client_lock = asyncio.Lock()

        if config.production:
            self.url = descriptor.url
            self.wsdl = _resolve_wsdl(descriptor.wsdl, self.url, config.res_folder)
        else:
            self.url = descriptor.url_test
            self.wsdl = _resolve_wsdl(descriptor.wsdl_test, self.url, config.res_folder)

    @property
    def config(self) -> AfipConfig:
        return self._config

    @property
    def descriptor(self) -> ServiceDescriptor:
        return self._descriptor

    @property
    def soap_v12(self) -> bool:
        return self._descriptor.soap_v12

    @property
    def ns_array_elems(self) -> bool:
        return self._descriptor.ns_array_elems

    def _client_options(self) -> ClientOptions:
        return ClientOptions(
            disable_cache=True,
            force_soap12_headers=self.soap_v12,
            namespace_array_elements=self.ns_array_elems,
            date_passthrough=True,
            timeout=self._config.timeout,
        )

    async def _get_client(self) -> SoapClient:
        if self._client is not None:
            return self._client

        async with self._client_lock:
            # Another caller may have finished construction while we waited
            if self._client is None:
                if self._config.debug:
                    logger.debug("[AFIP] Loading WSDL %s", self.wsdl)
                client = await asyncio.to_thread(
                    self._client_factory, self.wsdl, self._client_options()
                )
                # The endpoint embedded in the WSDL may point to another environment
                client.set_endpoint(self.url)
                self._client = client
        return self._client

    async def execute_request(
        self,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Send a request to the AFIP servers.

        Args:
            operation: SOAP operation to execute (as named in the WSDL).
            params:    Parameters to send; may be empty.
            options:   Per-call transport options. ``post_process`` rewrites
                       the outgoing request XML; any other key goes to the
                       SOAP library untouched.

        Returns:
            The parsed response record.

        Raises:
            Whatever the SOAP library raises (faults, transport and WSDL
            errors), unmodified.
        """
        client = await self._get_client()
        params = dict(params or {})
        options = dict(options or {})

        if self._config.debug:
            logger.debug(
                "[AFIP] Request %s -> %s (params: %s)",
                operation, self.url, ", ".join(sorted(params)) or "none",
            )

        try:
            result = await asyncio.to_thread(client.call, operation, params, options)
        except Exception:
            if self._config.debug:
                logger.error("[AFIP] %s request to %s failed", operation, self.url)
            raise

        if self._config.debug:
            logger.debug("[AFIP] Response %s: %r", operation, result)
        return result
