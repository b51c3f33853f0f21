"""
MeatPackingSlipService: electronic packing slips for meat (wsremcarne).

Manual: https://www.afip.gob.ar/ws/remitoElecCarnico/Manual-Desarrollador-WSREMCARNE-v3-4.pdf
"""
from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional, Union

from afip_remitos.interfaces.common import ServerStatus
from afip_remitos.interfaces.meat import MeatReception, MeatReceiverSlipsQuery
from afip_remitos.models.schemas import ServiceDescriptor
from afip_remitos.runtime import AfipConfig, ClientFactory, SoapGateway
from afip_remitos.services.base import (
    Operation,
    RequestExecutor,
    TicketAuthority,
    build_gateway,
)

SERVICE_NAME = "wsremcarne"

DESCRIPTOR = ServiceDescriptor(
    WSDL="wsremcarne-production.wsdl",
    URL="https://serviciosjava.afip.gob.ar/wsremcarne/RemCarneService",
    WSDL_TEST="wsremcarne.wsdl",
    URL_TEST="https://fwshomo.afip.gov.ar/wsremcarne/RemCarneService",
)

GET_RECEIVER_SLIPS = Operation("consultarRemitosReceptor", result="consultarRemitos")
GET_RECEIVER_CATEGORIES = Operation(
    "consultarTiposCategoriaReceptor", result="consultarCategoriasReceptor"
)
REGISTER_RECEPTION = Operation("registrarRecepcion")
FE_DUMMY = Operation("FEDummy", requires_auth=False)

_AFIP_DATE = re.compile(r"(\d{4})(\d{2})(\d{2})")


def format_date(date: Union[str, int]) -> str:
    """Change a date from the AFIP format (yyyymmdd) to yyyy-mm-dd."""
    return _AFIP_DATE.sub(r"\1-\2-\3", str(date), count=1)


class MeatPackingSlipService:
    """Exposes the wsremcarne operations."""

    format_date = staticmethod(format_date)

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
        self, *, status_type: Optional[str] = None, page: int = 1
    ) -> Any:
        """Packing slips received by the represented taxpayer (WS item 2.5.14)."""
        query = MeatReceiverSlipsQuery(status_type=status_type, page=page)
        return await self.execute_request(GET_RECEIVER_SLIPS, query.as_params())

    async def get_receivers_category_types(self) -> Any:
        """
        Receiver category types (WS item 2.5.21).

        Returns:
            ``{arrayCategoriasReceptor, arrayErroresFormato}``
        """
        return await self.execute_request(GET_RECEIVER_CATEGORIES)

    async def register_reception(
        self, *, slip_code: int, status: str, category: Optional[int] = None
    ) -> Any:
        """
        Register the reception of a packing slip (WS item 2.5.7).

        Args:
            slip_code: Packing slip code.
            status:    One of ACE, ACP or NAC.
            category:  Receiver category type.
        """
        reception = MeatReception(slip_code=slip_code, status=status, category=category)
        return await self.execute_request(REGISTER_RECEPTION, reception.as_params())

    async def get_server_status(self) -> ServerStatus:
        raw = await self.execute_request(FE_DUMMY)
        return ServerStatus.from_dict(raw)
