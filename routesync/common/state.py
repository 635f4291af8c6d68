# routesync/common/state.py
import time
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional

from routesync.common.models import PeerCacheEntry, CycleReport

MAX_EVENTS = 2000

@dataclass
class SyncState:
    """
    Process-local view owned by a single Reconciler. Nothing here is persisted;
    the router's route table is rebuilt into it on every cycle.
    """
    cache: Dict[str, PeerCacheEntry] = field(default_factory=dict)   # key = peer name
    last_gateway: Optional[str] = None
    last_address: Optional[str] = None
    last_report: Optional[CycleReport] = None
    cycles: int = 0
    events: List[Dict[str, Any]] = field(default_factory=list)      # rolling events

def add_event(state: SyncState, kind: str, msg: str, peer: str | None = None, extra: dict | None = None):
    e = {"ts": time.time(), "kind": kind, "msg": msg}
    if peer is not None:
        e["peer"] = peer
    if extra:
        e["extra"] = extra
    state.events.append(e)
    state.events = state.events[-MAX_EVENTS:]
