"""
zeep-backed SOAP client used by the gateway when no other factory is given.

Mirrors the client options the AFIP services need:
    - no WSDL cache
    - SOAP 1.2 port selection on demand
    - lenient parsing of the services' non-standard array payloads
    - xsd:date / xsd:dateTime values kept in their textual form
    - endpoint override, since the WSDL files point at other environments
"""
from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Callable, Dict, Mapping, Optional

import requests
from lxml import etree
from zeep import Client, Settings
from zeep.helpers import serialize_object
from zeep.plugins import Plugin
from zeep.transports import Transport
from zeep.wsdl.bindings.soap import Soap11Binding, Soap12Binding, SoapBinding

from afip_remitos.runtime import ClientOptions

logger = logging.getLogger(__name__)

USER_AGENT = "AFIP-Remitos-Python-SDK/0.1.0"

_request_hook: ContextVar[Optional[Callable[[str], str]]] = ContextVar(
    "afip_request_hook", default=None
)


class RequestHookPlugin(Plugin):
    """Lets a single call rewrite its outgoing envelope as text."""

    def egress(self, envelope, http_headers, operation, binding_options):
        hook = _request_hook.get()
        if hook is None:
            return envelope, http_headers
        xml = etree.tostring(envelope, encoding="unicode")
        return etree.fromstring(hook(xml)), http_headers


XSD_DATE_TYPES = (
    "{http://www.w3.org/2001/XMLSchema}date",
    "{http://www.w3.org/2001/XMLSchema}dateTime",
)


def _lexical_value(value: str) -> str:
    return value


class ZeepSoapClient:
    """SOAP client for one AFIP web service, bound to a single endpoint."""

    def __init__(self, wsdl: str, options: ClientOptions) -> None:
        self._options = options

        session = requests.Session()
        session.headers.update({"User-Agent": USER_AGENT})
        transport_kwargs: Dict[str, Any] = {"session": session, "cache": None}
        if options.timeout is not None:
            transport_kwargs.update(timeout=options.timeout, operation_timeout=options.timeout)
        if not options.disable_cache:
            from zeep.cache import InMemoryCache

            transport_kwargs["cache"] = InMemoryCache()

        self._client = Client(
            wsdl,
            transport=Transport(**transport_kwargs),
            settings=Settings(strict=not options.namespace_array_elements),
            plugins=[RequestHookPlugin()],
        )
        if options.date_passthrough:
            self._keep_date_text()
        self._binding = self._select_binding(options.force_soap12_headers)
        self._service = self._client.service

    def _keep_date_text(self) -> None:
        # Each client owns its schema, so only this client stops parsing dates
        for qname in XSD_DATE_TYPES:
            xsd_type = self._client.wsdl.types.get_type(qname)
            xsd_type.pythonvalue = _lexical_value

    def _select_binding(self, soap12: bool):
        bindings = [
            port.binding
            for service in self._client.wsdl.services.values()
            for port in service.ports.values()
            if isinstance(port.binding, SoapBinding)
        ]
        if not bindings:
            raise ValueError("WSDL does not declare any SOAP port")
        wanted = Soap12Binding if soap12 else Soap11Binding
        for binding in bindings:
            if isinstance(binding, wanted):
                return binding
        return bindings[0]

    def set_endpoint(self, url: str) -> None:
        self._service = self._client.create_service(str(self._binding.name), url)
        logger.debug("[AFIP] Endpoint set to %s", url)

    def call(self, operation: str, params: Dict[str, Any], options: Mapping[str, Any]) -> Any:
        settings = dict(options)
        token = _request_hook.set(settings.pop("post_process", None))
        try:
            with self._client.settings(**settings):
                result = self._service[operation](**params)
        finally:
            _request_hook.reset(token)

        return serialize_object(result, dict)
