"""
Shapes shared by every packing-slip service.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


def compact(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop the fields the caller left out, so they never reach the wire."""
    return {name: value for name, value in fields.items() if value is not None}


@dataclass
class ServerStatus:
    """Availability of the three server tiers behind a web service."""

    app_server: Optional[str]
    db_server: Optional[str]
    auth_server: Optional[str]

    @property
    def is_available(self) -> bool:
        return all(
            (status or "").upper() == "OK"
            for status in (self.app_server, self.db_server, self.auth_server)
        )

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> ServerStatus:
        # FEDummy answers AppServer/DbServer/AuthServer, dummy answers lowercase
        fields = {str(key).lower(): value for key, value in (raw or {}).items()}
        return cls(
            app_server=fields.get("appserver"),
            db_server=fields.get("dbserver"),
            auth_server=fields.get("authserver"),
        )
