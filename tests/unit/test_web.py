import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient

from routesync.common.models import CycleReport, PeerCacheEntry
from routesync.common.state import SyncState, add_event
from routesync.sync.main import build_app
from routesync.sync.web import build_router

LOG = logging.getLogger("test-web")
TOKEN = {"x-cli-token": "t0k"}


def make_client(state: SyncState) -> TestClient:
    app = FastAPI()
    app.include_router(build_router(state, {"cli_token": "t0k"}, LOG))
    return TestClient(app)


def test_health_is_open():
    client = make_client(SyncState())
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_cli_endpoints_need_token():
    client = make_client(SyncState())
    assert client.get("/cli/status").status_code == 401
    assert client.get("/cli/status", headers={"x-cli-token": "nope"}).status_code == 401
    assert client.get("/cli/events").status_code == 401


def test_status_reports_state():
    st = SyncState(last_gateway="9.9.9.9", last_address="5.6.7.8", cycles=3)
    st.cache["office"] = PeerCacheEntry(dst_address="1.2.3.4", route_id="*1")
    st.last_report = CycleReport(outcome="synced", gateway="9.9.9.9", address="5.6.7.8", created=["office"])
    client = make_client(st)

    data = client.get("/cli/status", headers=TOKEN).json()

    assert data["last_gateway"] == "9.9.9.9"
    assert data["last_address"] == "5.6.7.8"
    assert data["cycles"] == 3
    assert data["peers"] == {"office": {"dst_address": "1.2.3.4", "route_id": "*1"}}
    assert data["last_report"]["outcome"] == "synced"
    assert data["last_report"]["created"] == ["office"]


def test_events_tail():
    st = SyncState()
    for i in range(5):
        add_event(st, "info", f"e{i}")
    client = make_client(st)

    data = client.get("/cli/events", params={"n": 2}, headers=TOKEN).json()

    assert [e["msg"] for e in data["events"]] == ["e3", "e4"]


def test_build_app_serves_status(tmp_path: Path):
    cfg = tmp_path / "routesync.yaml"
    cfg.write_text(f"""
log_dir: {tmp_path / 'log'}
cli_token: t0k
router: {{host: 192.168.88.1, username: api, password: secret}}
cloudflare: {{zone_id: z, record_id: r, record_name: home.example.com, auth_email: a@example.com, auth_key: k}}
""")
    app = build_app(str(cfg), start_loop=False)

    with TestClient(app) as client:
        data = client.get("/cli/status", headers=TOKEN).json()
        events = client.get("/cli/events", headers=TOKEN).json()["events"]

    assert data["cycles"] == 0
    assert data["last_report"] is None
    assert events[-1]["msg"] == "routesync started"


def test_build_app_uses_given_config(tmp_path: Path):
    cfg = {
        "log_dir": str(tmp_path / "log"),
        "cli_token": "t0k",
        "resolve_timeout_sec": 5,
        "router": {"host": "192.168.88.1", "username": "api", "password": "secret", "timeout_sec": 30},
        "cloudflare": {"zone_id": "z", "record_id": "r", "record_name": "home.example.com", "ttl": 120,
                       "auth_email": "a@example.com", "auth_key": "k", "timeout_sec": 30},
    }
    # the path does not exist, so the file must not be read again
    app = build_app(str(tmp_path / "missing.yaml"), start_loop=False, cfg=cfg)

    with TestClient(app) as client:
        assert client.get("/cli/status", headers=TOKEN).status_code == 200
