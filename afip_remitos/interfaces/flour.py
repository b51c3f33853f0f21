"""
Flour packing-slip interfaces (wsremharina).

Field names follow Python's snake_case convention. as_params() on each
model translates them to the parameter names declared in the WSDL and
leaves out whatever the caller did not provide.
"""
from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from afip_remitos.interfaces.common import compact

DateLike = Union[str, datetime.date]


@dataclass
class PackingSlipQuery:
    """Lookup of a single packing slip, by code or by voucher identity."""

    slip_code: Optional[int] = None
    id_req: Optional[int] = None
    type: Optional[int] = None
    loc: Optional[int] = None
    ref_number: Optional[int] = None
    cuit: Optional[int] = None

    def as_params(self) -> Dict[str, Any]:
        return compact({
            "codRemito": self.slip_code,
            "idReqCliente": self.id_req,
            "tipoComprobante": self.type,
            "puntoEmision": self.loc,
            "nroComprobante": self.ref_number,
            "cuitEmisor": self.cuit,
        })


@dataclass
class FlourReceiverSlipsQuery:
    """Packing slips addressed to the represented taxpayer."""

    status_type: Optional[str] = None
    from_date: Optional[DateLike] = None
    to_date: Optional[DateLike] = None
    page: int = 1   # accepted for API symmetry; the service call does not send it

    def as_params(self) -> Dict[str, Any]:
        params = compact({"estadoRecepcion": self.status_type})
        # The range is only meaningful with both ends
        if self.from_date and self.to_date:
            params["rangoFechas"] = {
                "fechaDesde": self.from_date,
                "fechaHasta": self.to_date,
            }
        return params


@dataclass
class FlourReception:
    """Reception of a flour packing slip, with the received products."""

    slip_code: int
    status: Optional[str] = None
    date: Optional[DateLike] = None
    products: Optional[List[Mapping[str, Any]]] = None

    def __post_init__(self) -> None:
        if self.slip_code is None:
            raise ValueError("slip_code is required")

    def as_params(self) -> Dict[str, Any]:
        return compact({
            "codRemito": self.slip_code,
            "fecha": self.date,
            "aceptado": self.status,
            "arrayRecepcionMercaderia": self.products,
        })
