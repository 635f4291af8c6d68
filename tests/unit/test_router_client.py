import asyncio
import json
import logging

import httpx
import pytest

from routesync.common.errors import RouterApiError, RouteOperationError, UpstreamUnavailable
from routesync.sync.router_client import RouterClient

LOG = logging.getLogger("test-router")


def make_client(handler):
    seen = []

    def record(request: httpx.Request):
        seen.append(request)
        return handler(request)

    client = RouterClient("192.168.88.1", "api", "secret", 5, LOG, transport=httpx.MockTransport(record))
    return client, seen


def test_gateway_status_strips_subnet_suffix():
    client, seen = make_client(lambda r: httpx.Response(200, json=[
        {".id": "*1", "gateway": "100.64.0.1", "address": "100.64.0.23/22"},
        {".id": "*2", "gateway": "10.0.0.1", "address": "10.0.0.2/24"},
    ]))

    gw = asyncio.run(client.get_gateway_status())

    assert gw.gateway == "100.64.0.1"
    assert gw.address == "100.64.0.23"
    req = seen[0]
    assert req.method == "GET"
    assert str(req.url) == "https://192.168.88.1/rest/ip/dhcp-client"
    assert req.headers["authorization"].startswith("Basic ")


@pytest.mark.parametrize("handler", [
    lambda r: httpx.Response(200, json=[]),
    lambda r: httpx.Response(200, json=[{"address": "1.2.3.4/24"}]),
    lambda r: httpx.Response(200, json=[{"gateway": "1.2.3.1"}]),
    lambda r: httpx.Response(200, json={"error": 1}),
    lambda r: httpx.Response(401, json={"error": 401, "message": "Unauthorized"}),
])
def test_gateway_status_unavailable(handler):
    client, _ = make_client(handler)
    with pytest.raises(UpstreamUnavailable):
        asyncio.run(client.get_gateway_status())


def test_gateway_status_transport_error_is_unavailable():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = make_client(boom)
    with pytest.raises(UpstreamUnavailable):
        asyncio.run(client.get_gateway_status())


def test_list_routes_parses_records():
    client, _ = make_client(lambda r: httpx.Response(200, json=[
        {".id": "*A", "comment": "office", "dst-address": "1.2.3.4/32", "gateway": "9.9.9.9"},
        {".id": "*B", "dst-address": "0.0.0.0/0", "gateway": "9.9.9.9"},
    ]))

    routes = asyncio.run(client.list_routes())

    assert [r.id for r in routes] == ["*A", "*B"]
    assert routes[0].comment == "office"
    assert routes[0].dst_address == "1.2.3.4"
    assert routes[1].comment == ""


def test_list_routes_error_propagates():
    client, _ = make_client(lambda r: httpx.Response(500, json={"message": "internal"}))
    with pytest.raises(RouterApiError) as exc:
        asyncio.run(client.list_routes())
    assert exc.value.status_code == 500


def test_create_route_returns_id():
    client, seen = make_client(lambda r: httpx.Response(201, json={
        ".id": "*7", "dst-address": "1.2.3.4/32", "gateway": "9.9.9.9", "comment": "office",
    }))

    route_id = asyncio.run(client.create_route("1.2.3.4", "9.9.9.9", "office"))

    assert route_id == "*7"
    req = seen[0]
    assert req.method == "PUT"
    assert str(req.url) == "https://192.168.88.1/rest/ip/route"
    assert json.loads(req.content) == {"dst-address": "1.2.3.4", "gateway": "9.9.9.9", "comment": "office"}


def test_create_route_failure():
    client, _ = make_client(lambda r: httpx.Response(400, json={"error": 400, "detail": "invalid gateway"}))
    with pytest.raises(RouteOperationError, match="invalid gateway"):
        asyncio.run(client.create_route("1.2.3.4", "bogus", "office"))


def test_create_route_without_id_fails():
    client, _ = make_client(lambda r: httpx.Response(200, json={}))
    with pytest.raises(RouteOperationError):
        asyncio.run(client.create_route("1.2.3.4", "9.9.9.9", "office"))


def test_patch_route_sends_only_given_fields():
    client, seen = make_client(lambda r: httpx.Response(200, json={".id": "*7"}))

    asyncio.run(client.patch_route("*7", gateway="9.9.9.9"))
    asyncio.run(client.patch_route("*7", dst_address="1.2.3.4", gateway="9.9.9.9"))

    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/rest/ip/route/*7"
    assert json.loads(seen[0].content) == {"gateway": "9.9.9.9"}
    assert json.loads(seen[1].content) == {"dst-address": "1.2.3.4", "gateway": "9.9.9.9"}


def test_patch_route_requires_a_field():
    client, seen = make_client(lambda r: httpx.Response(200, json={}))
    with pytest.raises(ValueError):
        asyncio.run(client.patch_route("*7"))
    assert seen == []


def test_patch_route_transport_error():
    def boom(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client, _ = make_client(boom)
    with pytest.raises(RouteOperationError):
        asyncio.run(client.patch_route("*7", gateway="9.9.9.9"))


def test_list_routes_rejects_non_list_body():
    client, _ = make_client(lambda r: httpx.Response(200, json={"error": 500, "message": "busy"}))
    with pytest.raises(RouterApiError, match="expected a list"):
        asyncio.run(client.list_routes())
