# routesync/sync/router_client.py
import httpx

from routesync.common.errors import RouterApiError, RouteOperationError, UpstreamUnavailable
from routesync.common.models import GatewayState, RouteRecord
from routesync.common.util import strip_prefix

class RouterClient:
    """
    RouterOS REST API (/rest) client. The device serves a self-signed
    certificate, so TLS verification is off for this host.
    """

    def __init__(self, host: str, username: str, password: str, timeout_sec: float, logger,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.base = f"https://{host}/rest"
        self.auth = httpx.BasicAuth(username, password)
        self.timeout = timeout_sec
        self.logger = logger
        self.transport = transport

    @classmethod
    def from_cfg(cls, cfg: dict, logger, transport=None) -> "RouterClient":
        r = cfg["router"]
        return cls(r["host"], r["username"], r["password"], r["timeout_sec"], logger, transport=transport)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=self.auth,
            timeout=self.timeout,
            verify=False,
            headers={"Content-Type": "application/json"},
            transport=self.transport,
        )

    async def _request(self, method: str, path: str, body: dict | None = None):
        async with self._client() as c:
            r = await c.request(method, self.base + path, json=body)
        if r.is_error:
            raise RouterApiError(method, path, r.status_code, _detail(r))
        return r.json()

    async def get_gateway_status(self) -> GatewayState:
        try:
            data = await self._request("GET", "/ip/dhcp-client")
        except (httpx.HTTPError, RouterApiError, ValueError) as e:
            raise UpstreamUnavailable(f"dhcp client query failed: {e}") from e

        if not isinstance(data, list) or not data:
            raise UpstreamUnavailable("no dhcp client on router")
        first = data[0]
        gateway = first.get("gateway") if isinstance(first, dict) else None
        address = first.get("address") if isinstance(first, dict) else None
        if not gateway:
            raise UpstreamUnavailable("dhcp client has no gateway")
        if not address:
            raise UpstreamUnavailable("dhcp client has no address")
        return GatewayState(gateway=str(gateway), address=strip_prefix(str(address)))

    async def list_routes(self) -> list[RouteRecord]:
        data = await self._request("GET", "/ip/route")
        if not isinstance(data, list):
            # an error object here must not read as an empty route table
            raise RouterApiError("GET", "/ip/route", 200, f"expected a list, got {data}")
        return [RouteRecord.from_dict(d) for d in data if isinstance(d, dict)]

    async def create_route(self, dst_address: str, gateway: str, comment: str) -> str:
        body = {"dst-address": dst_address, "gateway": gateway, "comment": comment}
        try:
            # RouterOS REST creates with PUT on the collection
            data = await self._request("PUT", "/ip/route", body)
        except (httpx.HTTPError, RouterApiError, ValueError) as e:
            raise RouteOperationError(f"create route {comment} failed: {e}") from e
        route_id = data.get(".id") if isinstance(data, dict) else None
        if not route_id:
            raise RouteOperationError(f"create route {comment}: router returned no id ({data})")
        self.logger.info(f"route created id={route_id} comment={comment} dst={dst_address} gw={gateway}")
        return str(route_id)

    async def patch_route(self, route_id: str, dst_address: str | None = None, gateway: str | None = None) -> dict:
        body = {}
        if dst_address:
            body["dst-address"] = dst_address
        if gateway:
            body["gateway"] = gateway
        if not body:
            raise ValueError("patch_route needs dst_address or gateway")
        try:
            data = await self._request("PATCH", f"/ip/route/{route_id}", body)
        except (httpx.HTTPError, RouterApiError, ValueError) as e:
            raise RouteOperationError(f"patch route {route_id} failed: {e}") from e
        self.logger.info(f"route patched id={route_id} {body}")
        return data

def _detail(r: httpx.Response) -> str:
    try:
        data = r.json()
    except ValueError:
        return r.text[:200]
    if isinstance(data, dict):
        return str(data.get("detail") or data.get("message") or data)
    return str(data)
