"""
FlourPackingSlipService: electronic packing slips for flour (wsremharina).

Manual: https://www.afip.gob.ar/ws/remitoHTSDMT/Manual_Desarrollador_WSREMHARINA_v2.4.pdf
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from afip_remitos.interfaces.common import ServerStatus
from afip_remitos.interfaces.flour import (
    DateLike,
    FlourReception,
    FlourReceiverSlipsQuery,
    PackingSlipQuery,
)
from afip_remitos.models.schemas import ServiceDescriptor
from afip_remitos.runtime import AfipConfig, ClientFactory, SoapGateway
from afip_remitos.services.base import (
    Operation,
    RequestExecutor,
    TicketAuthority,
    build_gateway,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "wsremharina"

DESCRIPTOR = ServiceDescriptor(
    WSDL="wsremharina-production.wsdl",
    URL="https://serviciosjava.afip.gob.ar/wsremharina/RemHarinaService",
    WSDL_TEST="wsremharina.wsdl",
    URL_TEST="https://fwshomo.afip.gov.ar/wsremharina/RemHarinaService",
)

GET_PACKING_SLIP = Operation("consultarRemito")
GET_RECEIVER_SLIPS = Operation("consultarRemitosReceptor", result="consultarRemitos")
REGISTER_RECEPTION = Operation("registrarRecepcion", result="operacion")
DUMMY = Operation("dummy", requires_auth=False)

_EMPTY_DUMMY_REQUEST = re.compile(
    r"<(?:[\w.-]+:)?dummyRequest(?:\s[^>]*)?(?:/>|>\s*</(?:[\w.-]+:)?dummyRequest>)"
)


def strip_dummy_request(xml: str) -> str:
    """Remove the empty ``dummyRequest`` wrapper the service refuses to parse."""
    return _EMPTY_DUMMY_REQUEST.sub("", xml)


class FlourPackingSlipService:
    """
    Exposes the wsremharina operations.

    Unlike the meat and sugar services, error envelopes in the responses
    are returned to the caller instead of raised, unless
    ``error_checking_enabled`` is set.
    """

    def __init__(
        self,
        config: Optional[AfipConfig],
        ticket_authority: TicketAuthority,
        *,
        gateway: Optional[SoapGateway] = None,
        client_factory: Optional[ClientFactory] = None,
        error_checking_enabled: bool = False,
    ) -> None:
        self.gateway = build_gateway(DESCRIPTOR, config, gateway, client_factory)
        self._executor = RequestExecutor(
            self.gateway,
            ticket_authority,
            SERVICE_NAME,
            error_checking_enabled=error_checking_enabled,
        )
        if not error_checking_enabled and self.gateway.config.debug:
            logger.debug("[AFIP] %s error envelopes are returned unchecked", SERVICE_NAME)

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

    async def get_packing_slip(
        self,
        *,
        slip_code: Optional[int] = None,
        id_req: Optional[int] = None,
        type: Optional[int] = None,
        loc: Optional[int] = None,
        ref_number: Optional[int] = None,
        cuit: Optional[int] = None,
    ) -> Any:
        """Detail of one generated packing slip (WS item 2.5.12)."""
        query = PackingSlipQuery(
            slip_code=slip_code, id_req=id_req, type=type,
            loc=loc, ref_number=ref_number, cuit=cuit,
        )
        return await self.execute_request(GET_PACKING_SLIP, query.as_params())

    async def get_packing_slips_receivers(
        self,
        *,
        status_type: Optional[str] = None,
        from_date: Optional[DateLike] = None,
        to_date: Optional[DateLike] = None,
        page: int = 1,
    ) -> Any:
        """Packing slips received by the represented taxpayer (WS item 2.5.14)."""
        query = FlourReceiverSlipsQuery(
            status_type=status_type, from_date=from_date, to_date=to_date, page=page,
        )
        return await self.execute_request(GET_RECEIVER_SLIPS, query.as_params())

    async def register_reception(
        self,
        *,
        slip_code: int,
        status: Optional[str] = None,
        date: Optional[DateLike] = None,
        products: Optional[List[Mapping[str, Any]]] = None,
    ) -> Any:
        """
        Register the reception of a packing slip (WS item 2.5.7).

        Returns:
            ``{codRemito, evento, arrayObservaciones, arrayErrores}`` as
            answered by the service.
        """
        reception = FlourReception(slip_code=slip_code, status=status, date=date, products=products)
        return await self.execute_request(REGISTER_RECEPTION, reception.as_params())

    async def get_server_status(self) -> ServerStatus:
        """Status of the application, database and authentication servers."""
        raw = await self.execute_request(DUMMY, None, {"post_process": strip_dummy_request})
        return ServerStatus.from_dict(raw)
