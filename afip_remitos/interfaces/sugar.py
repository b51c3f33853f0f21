"""
Sugar packing-slip interfaces (wsremazucar).
"""
from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from afip_remitos.interfaces.common import compact

SLIP_STATUSES = frozenset({"EMI", "ACE", "ACP", "NAC", "CON", "NCO"})
RECEPTION_ANSWERS = frozenset({"S", "N"})


@dataclass
class SugarReceiverSlipsQuery:
    """Packing slips addressed to the represented taxpayer within a date range."""

    from_date: Optional[Union[str, datetime.date]] = None
    to_date: Optional[Union[str, datetime.date]] = None
    status: Optional[str] = None
    page: int = 0   # not sent

    def __post_init__(self) -> None:
        if self.status is not None and self.status not in SLIP_STATUSES:
            raise ValueError(
                f"status must be one of {sorted(SLIP_STATUSES)}, got {self.status!r}"
            )

    def as_params(self) -> Dict[str, Any]:
        return compact({
            "fechaDesde": self.from_date,
            "fechaHasta": self.to_date,
            "estado": self.status,
        })


@dataclass
class SugarReception:
    """Confirmation (S) or rejection (N) of a sugar packing slip."""

    slip_code: int
    status: str

    def __post_init__(self) -> None:
        if self.slip_code is None:
            raise ValueError("slip_code is required")
        if self.status not in RECEPTION_ANSWERS:
            raise ValueError(f"status must be 'S' or 'N', got {self.status!r}")

    def as_params(self) -> Dict[str, Any]:
        return {
            "codigoRemito": self.slip_code,
            "aceptaRecepcion": self.status,
        }
