"""
AFIP electronic packing-slip (remito) SDK.

Usage::

    import asyncio
    from afip_remitos import Afip

    class Wsaa:
        async def get_service_ticket(self, service_name):
            # Ask the authentication service (WSAA) for a ticket
            return {"token": "...", "sign": "..."}

    sdk = Afip(cuit=20111111112, ticket_authority=Wsaa(), res_folder="afip_res")

    async def main():
        status = await sdk.meat.get_server_status()
        print(status.is_available)

        reception = await sdk.meat.register_reception(
            slip_code=123456, status="ACE", category=1,
        )
        print(reception)

    asyncio.run(main())
"""
from __future__ import annotations

from typing import Optional, Union

from afip_remitos.interfaces.common import ServerStatus
from afip_remitos.models.schemas import ServiceDescriptor, ServiceTicket
from afip_remitos.runtime import (
    AfipConfig,
    AfipError,
    AuthError,
    ClientFactory,
    ConfigurationError,
    ServiceError,
    SoapGateway,
)
from afip_remitos.services.base import Operation, TicketAuthority
from afip_remitos.services.flour import FlourPackingSlipService
from afip_remitos.services.meat import MeatPackingSlipService, format_date
from afip_remitos.services.sugar import SugarPackingSlipService

__all__ = [
    "Afip",
    "AfipConfig",
    "SoapGateway",
    "ServiceDescriptor",
    "ServiceTicket",
    "Operation",
    "ServerStatus",
    "format_date",
    # Errors
    "AfipError",
    "AuthError",
    "ConfigurationError",
    "ServiceError",
    # Services
    "FlourPackingSlipService",
    "MeatPackingSlipService",
    "SugarPackingSlipService",
]


class Afip:
    """
    Main entry point for the AFIP packing-slip SDK.

    Args:
        cuit:             Tax id of the represented taxpayer.
        ticket_authority: Object with ``get_service_ticket(service_name)``
                          returning ``{token, sign}``, sync or async.
        production:       Use the production servers instead of homologation.
        res_folder:       Directory holding the .wsdl files. When omitted
                          the WSDL is downloaded from the service endpoint.
        debug:            When ``True``, SOAP requests/responses are logged at
                          ``DEBUG`` level via the ``afip_remitos`` loggers.
        timeout:          Transport timeout in seconds.
    """

    flour: FlourPackingSlipService
    meat: MeatPackingSlipService
    sugar: SugarPackingSlipService

    def __init__(
        self,
        cuit: Union[int, str],
        ticket_authority: TicketAuthority,
        *,
        production: bool = False,
        res_folder: Optional[str] = None,
        debug: bool = False,
        timeout: Optional[float] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.config = AfipConfig(
            cuit=cuit,
            production=production,
            res_folder=res_folder,
            debug=debug,
            timeout=timeout,
        )
        self.flour = FlourPackingSlipService(
            self.config, ticket_authority, client_factory=client_factory
        )
        self.meat = MeatPackingSlipService(
            self.config, ticket_authority, client_factory=client_factory
        )
        self.sugar = SugarPackingSlipService(
            self.config, ticket_authority, client_factory=client_factory
        )
