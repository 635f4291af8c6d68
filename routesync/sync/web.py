import time
from dataclasses import asdict
from fastapi import APIRouter, Request, HTTPException

def build_router(state, cfg, logger):
    r = APIRouter()

    def require_token(req: Request):
        tok = req.headers.get("x-cli-token", "")
        if not tok or tok != cfg.get("cli_token", ""):
            raise HTTPException(401, "unauthorized")

    @r.get("/health")
    async def health():
        return {"ok": True}

    @r.get("/cli/status")
    async def status(req: Request):
        require_token(req)
        rep = state.last_report
        return {
            "now": time.time(),
            "cycles": state.cycles,
            "last_gateway": state.last_gateway,
            "last_address": state.last_address,
            "peers": {name: asdict(e) for name, e in sorted(state.cache.items())},
            "last_report": asdict(rep) if rep else None,
        }

    @r.get("/cli/events")
    async def events(req: Request, n: int = 50):
        require_token(req)
        return {"events": state.events[-n:] if n > 0 else []}

    return r
