"""
Meat packing-slip interfaces (wsremcarne).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from afip_remitos.interfaces.common import compact

RECEPTION_STATUSES = frozenset({"ACE", "ACP", "NAC"})


@dataclass
class MeatReceiverSlipsQuery:
    """Packing slips addressed to the represented taxpayer, by reception status."""

    status_type: Optional[str] = None
    page: int = 1   # not sent

    def as_params(self) -> Dict[str, Any]:
        return compact({"estadoRecepcion": self.status_type})


@dataclass
class MeatReception:
    """Reception of a meat packing slip."""

    slip_code: int
    status: str
    category: Optional[int] = None

    def __post_init__(self) -> None:
        if self.slip_code is None:
            raise ValueError("slip_code is required")
        if self.status not in RECEPTION_STATUSES:
            raise ValueError(
                f"status must be one of {sorted(RECEPTION_STATUSES)}, got {self.status!r}"
            )

    def as_params(self) -> Dict[str, Any]:
        return compact({
            "codRemito": self.slip_code,
            "estado": self.status,
            "categoriaReceptor": self.category,
        })
