# routesync/common/config.py
from __future__ import annotations
import os
import yaml

from routesync.common.errors import ConfigError
from routesync.common.models import PeerSpec

DEFAULT_PATH = "/etc/routesync/routesync.yaml"

DEFAULTS = {
    "watch_interval_sec": 60,
    "resolve_timeout_sec": 5,
    "log_dir": "/var/log/routesync",
    "listen_host": "127.0.0.1",
    "listen_port": 8787,
    "cli_token": "",
    "peers": {},
}

ROUTER_DEFAULTS = {"timeout_sec": 30}
CLOUDFLARE_DEFAULTS = {"ttl": 120, "record_type": "A", "timeout_sec": 30}

REQUIRED = {
    "router": ("host", "username", "password"),
    "cloudflare": ("zone_id", "record_id", "record_name", "auth_email", "auth_key"),
}

MIN_INTERVAL_SEC = 1

def config_path(path: str | None = None) -> str:
    return path or os.environ.get("ROUTESYNC_CONFIG") or DEFAULT_PATH

def load_cfg(path: str | None = None) -> dict:
    with open(config_path(path), "r") as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise ConfigError("configuration must be a mapping")

    cfg = dict(DEFAULTS)
    cfg.update(raw)

    for section, keys in REQUIRED.items():
        sec = cfg.get(section)
        if not isinstance(sec, dict):
            raise ConfigError(f"missing '{section}' section")
        missing = [k for k in keys if sec.get(k) in (None, "")]
        if missing:
            raise ConfigError(f"'{section}' is missing {', '.join(missing)}")

    cfg["router"] = {**ROUTER_DEFAULTS, **cfg["router"]}
    cfg["cloudflare"] = {**CLOUDFLARE_DEFAULTS, **cfg["cloudflare"]}
    if cfg["cloudflare"]["record_type"] not in ("A", "AAAA"):
        raise ConfigError("cloudflare.record_type must be A or AAAA")

    # fail on a bad peers section now rather than on the first tick
    peers_from_cfg(cfg)
    interval_from_cfg(cfg)
    return cfg

def peers_from_cfg(cfg: dict) -> list[PeerSpec]:
    """
    Peers in configuration order. YAML mappings keep file order, so iteration is deterministic.
    """
    raw = cfg.get("peers") or {}
    if not isinstance(raw, dict):
        raise ConfigError("'peers' must be a mapping of name -> host")
    peers = []
    for name, target in raw.items():
        if target is None or str(target).strip() == "":
            raise ConfigError(f"peer '{name}' has no target")
        peers.append(PeerSpec(name=str(name), target=str(target).strip()))
    return peers

def interval_from_cfg(cfg: dict) -> float:
    try:
        interval = float(cfg.get("watch_interval_sec", DEFAULTS["watch_interval_sec"]))
    except (TypeError, ValueError):
        raise ConfigError("watch_interval_sec must be a number")
    return max(MIN_INTERVAL_SEC, interval)
