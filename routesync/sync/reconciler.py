# routesync/sync/reconciler.py
import time

from routesync.common.errors import ResolutionError, UpstreamUnavailable, DnsUpdateRejected
from routesync.common.models import CycleReport, PeerCacheEntry, PeerSpec, ResolvedPeer, RouteRecord
from routesync.common.state import SyncState, add_event
from routesync.sync.resolver import resolve_peer

def routes_by_comment(routes: list[RouteRecord]) -> dict[str, RouteRecord]:
    """
    comment -> route. The router does not enforce unique comments; first match wins.
    """
    out: dict[str, RouteRecord] = {}
    for r in routes:
        if r.comment and r.comment not in out:
            out[r.comment] = r
    return out

class Reconciler:
    """
    Keeps one static route per peer pointed at the current DHCP gateway and
    publishes the router's external address to DNS when it changes.

    Last-known gateway/address are committed only when a cycle completes, so
    an aborted cycle is retried from the same baseline on the next tick.
    """

    def __init__(self, router, dns, logger, state: SyncState | None = None,
                 resolve=resolve_peer, resolve_timeout: float = 5):
        self.router = router
        self.dns = dns
        self.logger = logger
        self.state = state if state is not None else SyncState()
        self.resolve = resolve
        self.resolve_timeout = resolve_timeout

    async def run(self, peers: list[PeerSpec]) -> CycleReport:
        st = self.state
        rep = CycleReport()
        st.last_report = rep
        st.cycles += 1

        try:
            gw = await self.router.get_gateway_status()
        except UpstreamUnavailable as e:
            self.logger.error(f"cycle aborted: {e}")
            add_event(st, "error", f"upstream unavailable: {e}")
            return self._finish(rep, "upstream_unavailable", str(e))

        rep.gateway, rep.address = gw.gateway, gw.address
        self.logger.info(f"currentGateway={gw.gateway} currentAddress={gw.address}")

        try:
            await self._sync_peers(peers, gw.gateway, rep)

            if gw.gateway != st.last_gateway:
                await self._sweep_gateway(gw.gateway, rep)

            if gw.address != st.last_address:
                self.logger.info(f"address changed last={st.last_address} current={gw.address}")
                res = await self.dns.set_record(gw.address)
                res.raise_for_rejection()
                rep.dns_updated = True
                self.logger.info(f"dns record updated to {gw.address}")
                add_event(st, "dns", f"record updated to {gw.address}")
        except DnsUpdateRejected as e:
            self.logger.warning(f"{e}; will retry next cycle")
            add_event(st, "error", str(e))
            return self._finish(rep, "dns_rejected", str(e))
        except Exception as e:
            self._finish(rep, "failed", f"{type(e).__name__}: {e}")
            add_event(st, "error", f"cycle failed: {e}")
            raise

        st.last_gateway = gw.gateway
        st.last_address = gw.address
        return self._finish(rep, "synced")

    async def _sync_peers(self, peers: list[PeerSpec], gateway: str, rep: CycleReport):
        routes = routes_by_comment(await self.router.list_routes())

        for peer in peers:
            try:
                rp = ResolvedPeer(peer.name, peer.target, await self.resolve(peer.target, self.resolve_timeout))
            except ResolutionError as e:
                self.logger.warning(f"peer {peer.name} skipped: {e}")
                add_event(self.state, "warn", str(e), peer.name)
                rep.skipped.append(peer.name)
                continue

            rep.resolved.append(rp)
            entry = self.state.cache.get(peer.name)
            if entry is None:
                entry = PeerCacheEntry(dst_address=rp.address)
                self.state.cache[peer.name] = entry

            route = routes.get(peer.name)
            if route is not None:
                entry.route_id = route.id
                entry.dst_address = rp.address
                if route.gateway != gateway or route.dst_address != rp.address:
                    await self.router.patch_route(route.id, dst_address=rp.address, gateway=gateway)
                    rep.patched.append(peer.name)
                    add_event(self.state, "route", f"patched dst={rp.address} gw={gateway}", peer.name)
                continue

            route_id = await self.router.create_route(rp.address, gateway, peer.name)
            entry.route_id = route_id
            entry.dst_address = rp.address
            rep.created.append(peer.name)
            self.logger.info(f"no route for {peer.name}, added id={route_id} dst={rp.address}")
            add_event(self.state, "route", f"created id={route_id} dst={rp.address} gw={gateway}", peer.name)

    async def _sweep_gateway(self, gateway: str, rep: CycleReport):
        self.logger.info(f"gateway changed last={self.state.last_gateway} current={gateway}")
        for name, entry in self.state.cache.items():
            if not entry.route_id:
                self.logger.warning(f"peer {name} has no route id yet, gateway sweep skipped")
                continue
            await self.router.patch_route(entry.route_id, gateway=gateway)
            rep.swept.append(name)
            self.logger.info(f"update route {name} id={entry.route_id} gw={gateway}")

    def _finish(self, rep: CycleReport, outcome: str, error: str = "") -> CycleReport:
        rep.outcome = outcome
        rep.error = error
        rep.finished_at = time.time()
        return rep
