"""
SugarPackingSlipService: electronic packing slips for sugar (wsremazucar).

Manual: https://www.afip.gob.ar/ws/remitoElecAzucar/Manual-DesarrolladorWSREMAZUCAR-v2_0_8.pdf
"""
from __future__ import annotations

import datetime
from typing import Any, Dict, Mapping, Optional, Union

from afip_remitos.interfaces.common import ServerStatus
from afip_remitos.interfaces.sugar import SugarReception, SugarReceiverSlipsQuery
from afip_remitos.models.schemas import ServiceDescriptor
from afip_remitos.runtime import AfipConfig, ClientFactory, SoapGateway
from afip_remitos.services.base import (
    Operation,
    RequestExecutor,
    TicketAuthority,
    build_gateway,
)

SERVICE_NAME = "wsremazucar"

DESCRIPTOR = ServiceDescriptor(
    WSDL="wsremazucar-production.wsdl",
    URL="https://serviciosjava.afip.gob.ar/wsremazucar/RemAzucarService",
    WSDL_TEST="wsremazucar.wsdl",
    URL_TEST="https://fwshomo.afip.gov.ar/wsremazucar/RemAzucarService",
)

GET_RECEIVER_SLIPS = Operation("consultarRemitosReceptor")
CONFIRM_RECEPTION = Operation("confirmarRecepcionMercaderia")
FE_DUMMY = Operation("FEDummy", requires_auth=False)


class SugarPackingSlipService:
    """Exposes the wsremazucar operations."""

    def __init__(
        self,
        config: Optional[AfipConfig],
        ticket_authority: TicketAuthority,
        *,
        gateway: Optional[SoapGateway] = None,
        client_factory: Optional[ClientFactory] = None,
        error_checking_enabled: bool = True,
    ) -> None:
        self.gateway = build_gateway(DESCRIPTOR, config, gateway, client_factory)
        self._executor = RequestExecutor(
            self.gateway,
            ticket_authority,
            SERVICE_NAME,
            error_checking_enabled=error_checking_enabled,
        )

    @property
    def error_checking_enabled(self) -> bool:
        return self._executor.error_checking_enabled

    async def execute_request(
        self,
        operation: Operation,
        params: Optional[Dict[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self._executor.execute(operation, params, options)

    async def get_packing_slips_receivers(
        self,
        *,
        from_date: Optional[Union[str, datetime.date]] = None,
        to_date: Optional[Union[str, datetime.date]] = None,
        status: Optional[str] = None,
        page: int = 0,
    ) -> Any:
        """
        Packing slips received by the represented taxpayer (WS item 19).

        Args:
            from_date: Start of the range (required by the service).
            to_date:   End of the range (required by the service).
            status:    One of EMI, ACE, ACP, NAC, CON or NCO.
            page:      Page of results; not sent yet.
        """
        query = SugarReceiverSlipsQuery(
            from_date=from_date, to_date=to_date, status=status, page=page,
        )
        return await self.execute_request(GET_RECEIVER_SLIPS, query.as_params())

    async def register_reception(self, *, slip_code: int, status: str) -> Any:
        """Accept (``"S"``) or reject (``"N"``) a received packing slip (WS item 16.4)."""
        reception = SugarReception(slip_code=slip_code, status=status)
        return await self.execute_request(CONFIRM_RECEPTION, reception.as_params())

    async def get_server_status(self) -> ServerStatus:
        """Status of the application, database and authentication servers."""
        raw = await self.execute_request(FE_DUMMY)
        return ServerStatus.from_dict(raw)
