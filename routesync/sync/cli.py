# routesync/sync/cli.py
from __future__ import annotations
import argparse, asyncio, sys
import httpx
from rich.console import Console
from rich.table import Table
from routesync.common.config import load_cfg, peers_from_cfg
from routesync.common.errors import ResolutionError, RouteSyncError
from routesync.common.log import log_path, setup_logger
from routesync.common.util import human_ts, tail_file
from routesync.sync.main import build_reconciler, LOGGER_NAME
from routesync.sync.resolver import resolve_peer

console = Console()

def api_headers(cfg: dict) -> dict:
    # CLI auth header
    return {"x-cli-token": cfg.get("cli_token", "")}

def must_have_token(cfg: dict):
    if not cfg.get("cli_token"):
        console.print("[red]cli_token is missing in config[/red]")
        sys.exit(1)

async def api_get(cfg: dict, path: str, params: dict | None = None) -> dict:
    must_have_token(cfg)
    base = f"http://{cfg['listen_host']}:{cfg['listen_port']}"
    async with httpx.AsyncClient(timeout=10) as c:
        r = await c.get(base + path, params=params, headers=api_headers(cfg))
        r.raise_for_status()
        return r.json()

def show_status(data: dict):
    console.print(f"gateway: [bold]{data.get('last_gateway') or '-'}[/bold]  "
                  f"address: [bold]{data.get('last_address') or '-'}[/bold]  cycles: {data.get('cycles', 0)}")

    t = Table(title="Peer routes")
    t.add_column("Peer")
    t.add_column("Route id")
    t.add_column("Destination")
    for name, e in data.get("peers", {}).items():
        t.add_row(name, e.get("route_id") or "-", e.get("dst_address") or "-")
    console.print(t)

    rep = data.get("last_report")
    if not rep:
        console.print("no cycle has run yet")
        return
    color = "green" if rep["outcome"] == "synced" else "red"
    console.print(f"last cycle: [{color}]{rep['outcome']}[/{color}] at {human_ts(rep['finished_at'])}")
    for key in ("created", "patched", "swept", "skipped"):
        if rep.get(key):
            console.print(f"  {key}: {', '.join(rep[key])}")
    if rep.get("error"):
        console.print(f"  error: {rep['error']}")

def show_events(events: list[dict]):
    for e in events:
        ts = human_ts(e.get("ts", 0))
        peer = e.get("peer", "-")
        console.print(f"{ts} [{e.get('kind','-')}] peer={peer} {e.get('msg','')}")

async def show_peers(cfg: dict):
    t = Table(title="Configured peers")
    t.add_column("Peer")
    t.add_column("Target")
    t.add_column("Resolves to")
    for p in peers_from_cfg(cfg):
        try:
            addr = await resolve_peer(p.target, float(cfg["resolve_timeout_sec"]))
        except ResolutionError as e:
            addr = f"[red]{e.reason}[/red]"
        t.add_row(p.name, p.target, addr)
    console.print(t)

async def run_once(cfg: dict):
    logger = setup_logger(LOGGER_NAME, cfg["log_dir"])
    rec = build_reconciler(cfg, logger)
    rep = await rec.run(peers_from_cfg(cfg))
    color = "green" if rep.outcome == "synced" else "red"
    console.print(f"[{color}]{rep.outcome}[/{color}] gateway={rep.gateway} address={rep.address}")
    console.print(f"created={rep.created} patched={rep.patched} swept={rep.swept} skipped={rep.skipped}")
    if rep.error:
        console.print(f"error: {rep.error}")
    return rep

def main():
    ap = argparse.ArgumentParser(prog="routesync-cli")
    ap.add_argument("--config", default=None, help="path to routesync.yaml")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("status")
    ev = sub.add_parser("events")
    ev.add_argument("-n", type=int, default=50)
    sub.add_parser("peers")
    sub.add_parser("run-once")
    tl = sub.add_parser("tail-log")
    tl.add_argument("-n", type=int, default=200)

    args = ap.parse_args()
    try:
        cfg = load_cfg(args.config)
    except (OSError, RouteSyncError) as e:
        console.print(f"[red]config error:[/red] {e}")
        sys.exit(1)

    if args.cmd == "tail-log":
        console.print(tail_file(log_path(cfg["log_dir"], LOGGER_NAME), args.n))
        return

    if args.cmd == "peers":
        asyncio.run(show_peers(cfg))
        return

    if args.cmd == "run-once":
        try:
            rep = asyncio.run(run_once(cfg))
        except Exception as e:
            console.print(f"[red]error:[/red] {e}")
            sys.exit(1)
        sys.exit(0 if rep.outcome == "synced" else 1)

    # status / events need the running daemon
    try:
        if args.cmd == "status":
            show_status(asyncio.run(api_get(cfg, "/cli/status")))
        elif args.cmd == "events":
            show_events(asyncio.run(api_get(cfg, "/cli/events", {"n": args.n}))["events"])
    except httpx.HTTPError as e:
        console.print(f"[red]error:[/red] {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
