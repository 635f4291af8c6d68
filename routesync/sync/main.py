# routesync/sync/main.py
import argparse, asyncio
from fastapi import FastAPI

from routesync.common.config import load_cfg, config_path
from routesync.common.log import setup_logger
from routesync.common.state import SyncState, add_event
from routesync.sync.dns_client import CloudflareClient
from routesync.sync.reconciler import Reconciler
from routesync.sync.router_client import RouterClient
from routesync.sync.scheduler import sync_loop
from routesync.sync.web import build_router

LOGGER_NAME = "routesync"

def build_reconciler(cfg: dict, logger, state: SyncState | None = None) -> Reconciler:
    return Reconciler(
        router=RouterClient.from_cfg(cfg, logger),
        dns=CloudflareClient.from_cfg(cfg, logger),
        logger=logger,
        state=state,
        resolve_timeout=float(cfg["resolve_timeout_sec"]),
    )

def build_app(cfg_path: str | None = None, start_loop: bool = True, cfg: dict | None = None) -> FastAPI:
    cfg_path = config_path(cfg_path)
    if cfg is None:
        cfg = load_cfg(cfg_path)
    logger = setup_logger(LOGGER_NAME, cfg["log_dir"])

    state = SyncState()
    # router/dns connection settings are fixed at startup; peers and interval are live
    reconciler = build_reconciler(cfg, logger, state)

    app = FastAPI()
    app.state.sync = state
    app.include_router(build_router(state, cfg, logger))

    @app.on_event("startup")
    async def startup():
        add_event(state, "info", "routesync started")
        if start_loop:
            app.state.loop_task = asyncio.create_task(sync_loop(reconciler, cfg_path, cfg, logger))

    @app.on_event("shutdown")
    async def shutdown():
        task = getattr(app.state, "loop_task", None)
        if task:
            task.cancel()

    return app

def main():
    import uvicorn
    ap = argparse.ArgumentParser(prog="routesync")
    ap.add_argument("--config", default=None, help="path to routesync.yaml")
    args = ap.parse_args()

    path = config_path(args.config)
    cfg = load_cfg(path)
    app = build_app(path, cfg=cfg)
    uvicorn.run(app, host=cfg["listen_host"], port=int(cfg["listen_port"]), log_level="info")

if __name__ == "__main__":
    main()
