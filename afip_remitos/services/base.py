"""
RequestExecutor: authentication, unwrapping and error checks shared by
every packing-slip service.
"""
from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from afip_remitos.models.schemas import ServiceDescriptor, ServiceTicket
from afip_remitos.runtime import (
    AfipConfig,
    ClientFactory,
    ConfigurationError,
    ServiceError,
    SoapGateway,
)

logger = logging.getLogger(__name__)


class TicketAuthority(Protocol):
    """Issues ``{token, sign}`` access tickets per web service name (WSAA)."""

    def get_service_ticket(self, service_name: str) -> Any: ...


@dataclass(frozen=True)
class Operation:
    """
    A SOAP operation and the response field holding its result.

    ``result`` names the operation whose ``<result>Return`` field carries
    the answer, when it differs from the request operation.
    """

    name: str
    result: Optional[str] = None
    requires_auth: bool = True
    result_field: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "result_field", f"{self.result or self.name}Return")


def raise_for_errors(record: Any) -> None:
    """
    Raise ServiceError when the record carries an ``Errors`` envelope.
    Only the first reported error is used.
    """
    if not isinstance(record, Mapping) or not record.get("Errors"):
        return

    errors = record["Errors"]
    err = errors.get("Err", errors) if isinstance(errors, Mapping) else errors
    if isinstance(err, (list, tuple)):
        err = err[0] if err else None
    if not err:
        # An envelope without entries reports nothing
        return
    if not isinstance(err, Mapping):
        raise ServiceError(None, f"Unrecognized error envelope: {errors!r}")

    msg = err.get("Msg")
    raise ServiceError(err.get("Code"), msg if msg is not None else "Unknown error")


def build_gateway(
    descriptor: ServiceDescriptor,
    config: Optional[AfipConfig],
    gateway: Optional[SoapGateway] = None,
    client_factory: Optional[ClientFactory] = None,
) -> SoapGateway:
    """
    Return ``gateway`` when given, otherwise build one for ``descriptor``.

    A prebuilt gateway carries its own configuration; passing a different
    ``config`` alongside it is rejected.
    """
    if gateway is None:
        return SoapGateway(descriptor, config, client_factory)
    if config is not None and config != gateway.config:
        raise ConfigurationError("Configuration does not match the given gateway")
    return gateway


class RequestExecutor:
    """
    Sends packing-slip operations through a gateway.

    Responsibilities:
    - Adds the ``authRequest`` block (token, sign, represented CUIT) to
      every operation that requires it.
    - Unwraps ``<result>Return`` from the response.
    - Raises ServiceError on ``Errors`` envelopes when error checking is on.
    """

    def __init__(
        self,
        gateway: SoapGateway,
        ticket_authority: TicketAuthority,
        service_name: str,
        *,
        error_checking_enabled: bool = True,
    ) -> None:
        self.gateway = gateway
        self.ticket_authority = ticket_authority
        self.service_name = service_name
        self.error_checking_enabled = error_checking_enabled

    async def auth_params(self, operation: Operation) -> Dict[str, Any]:
        """Default request parameters for the operation."""
        if not operation.requires_auth:
            return {}

        raw = self.ticket_authority.get_service_ticket(self.service_name)
        if inspect.isawaitable(raw):
            raw = await raw
        ticket = ServiceTicket.model_validate(raw)

        return {
            "authRequest": {
                "token": ticket.token,
                "sign": ticket.sign,
                "cuitRepresentada": self.gateway.config.cuit,
            }
        }

    async def execute(
        self,
        operation: Operation,
        params: Optional[Dict[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Send the operation and return its unwrapped result.

        Raises:
            ServiceError: The service answered with an ``Errors`` envelope
                          and error checking is enabled.
        """
        auth = await self.auth_params(operation)
        results = await self.gateway.execute_request(
            operation.name, {**auth, **(params or {})}, options
        )

        record = unwrap(results, operation.result_field)
        if self.error_checking_enabled:
            try:
                raise_for_errors(record)
            except ServiceError as exc:
                if self.gateway.config.debug:
                    logger.warning("[AFIP] %s %s rejected: %s", self.service_name, operation.name, exc)
                raise
        return record


def unwrap(results: Any, result_field: str) -> Any:
    # zeep already strips single-child response wrappers
    if isinstance(results, Mapping) and result_field in results:
        return results[result_field]
    return results
