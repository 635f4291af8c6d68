# routesync/common/models.py
from __future__ import annotations
import time
from dataclasses import dataclass, field
from typing import Optional, Literal, Dict, Any, List

from routesync.common.errors import DnsUpdateRejected
from routesync.common.util import strip_prefix

CycleOutcome = Literal[
    "running",
    "synced",
    "upstream_unavailable",
    "dns_rejected",
    "failed",
]

@dataclass(frozen=True)
class PeerSpec:
    name: str
    target: str

@dataclass(frozen=True)
class ResolvedPeer:
    name: str
    target: str
    address: str

@dataclass(frozen=True)
class RouteRecord:
    """
    Static route as the router reports it. dst_address never carries a subnet suffix.
    """
    id: str
    comment: str
    dst_address: str
    gateway: str

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "RouteRecord":
        return RouteRecord(
            id=str(d.get(".id", "")),
            comment=str(d.get("comment", "")),
            dst_address=strip_prefix(str(d.get("dst-address", ""))),
            gateway=str(d.get("gateway", "")),
        )

@dataclass
class PeerCacheEntry:
    dst_address: str
    route_id: Optional[str] = None

@dataclass(frozen=True)
class GatewayState:
    gateway: str
    address: str

@dataclass(frozen=True)
class DnsUpdateResult:
    ok: bool
    address: str
    status_code: int = 0
    errors: List[Any] = field(default_factory=list)

    @staticmethod
    def from_response(address: str, status_code: int, body: Any) -> "DnsUpdateResult":
        success = isinstance(body, dict) and bool(body.get("success", False))
        errors = body.get("errors", []) if isinstance(body, dict) else []
        return DnsUpdateResult(
            ok=200 <= status_code < 300 and success,
            address=address,
            status_code=status_code,
            errors=list(errors or []),
        )

    def raise_for_rejection(self):
        if not self.ok:
            raise DnsUpdateRejected(self.address, self.errors)

@dataclass
class CycleReport:
    outcome: CycleOutcome = "running"
    gateway: Optional[str] = None
    address: Optional[str] = None
    created: List[str] = field(default_factory=list)   # peer names
    patched: List[str] = field(default_factory=list)
    swept: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    resolved: List[ResolvedPeer] = field(default_factory=list)
    dns_updated: bool = False
    error: str = ""
    started_at: float = field(default_factory=time.time)
    finished_at: float = 0
