import asyncio

from routesync.common.config import load_cfg, peers_from_cfg, interval_from_cfg
from routesync.common.models import CycleReport

async def run_cycle(reconciler, cfg: dict, logger) -> CycleReport | None:
    """One guarded cycle. Errors are logged here and never escape."""
    try:
        peers = peers_from_cfg(cfg)
        return await reconciler.run(peers)
    except Exception as e:
        logger.exception(f"sync cycle failed: {e}")
        return None

async def sync_loop(reconciler, cfg_path: str | None, cfg: dict, logger, load=load_cfg, sleep=asyncio.sleep):
    # config is re-read every tick so peers and interval can change live
    while True:
        try:
            cfg = load(cfg_path)
        except Exception as e:
            logger.error(f"config reload failed, keeping previous config: {e}")

        rep = await run_cycle(reconciler, cfg, logger)
        if rep is not None:
            logger.info(
                f"cycle done outcome={rep.outcome} created={len(rep.created)} "
                f"patched={len(rep.patched)} swept={len(rep.swept)} skipped={len(rep.skipped)}"
            )

        await sleep(interval_from_cfg(cfg))
