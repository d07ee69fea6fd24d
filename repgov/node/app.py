"""
RepGov Node Application

FastAPI app that hosts one GovernanceEngine and exposes it over JSON-RPC
(POST /rpc). On a standalone node a background ticker advances the block
height every `block_time` seconds; when embedded in a host ledger, pass the
host's clock instead and disable the ticker.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, FastAPI
from fastapi.responses import Response
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request

from ..config import RepGovConfig, load_config
from ..constants import NODE_VERSION
from ..governance import BlockHeightClock, GovernanceEngine
from ..logger import get_logger
from ..rpc.modules import GovernanceModule
from ..rpc.server import RPCServer

logger = get_logger(__name__)


async def run_block_ticker(clock: BlockHeightClock, block_time: float):
    """Advance *clock* by one block every *block_time* seconds until cancelled."""
    while True:
        await asyncio.sleep(block_time)
        height = clock.advance()
        logger.debug(f"Block height {height}")


def build_engine(config: RepGovConfig, clock: Optional[BlockHeightClock] = None) -> GovernanceEngine:
    config.governance.validate()
    clock = clock or BlockHeightClock(config.governance.start_height)
    return GovernanceEngine(
        owner=config.governance.owner,
        clock=clock,
        voting_period=config.governance.voting_period,
    )


def create_app(
    config: Optional[RepGovConfig] = None,
    engine: Optional[GovernanceEngine] = None,
    clock: Optional[BlockHeightClock] = None,
) -> FastAPI:
    """
    Build the node app.

    Args:
        config: Node configuration. Defaults to `load_config()`.
        engine: Pre-built engine (tests, embedding). Built from *config* if omitted.
        clock:  Clock for a freshly built engine; the block ticker drives it.
    """
    config = config or load_config()
    config.node.validate()
    if engine is None:
        clock = clock or BlockHeightClock(config.governance.start_height)
        engine = build_engine(config, clock)

    rpc_server = RPCServer()
    rpc_server.register_module(GovernanceModule(engine))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ticker = None
        if config.node.block_ticker and clock is not None:
            ticker = asyncio.create_task(run_block_ticker(clock, config.governance.block_time))
            logger.info(f"Block ticker started ({config.governance.block_time}s per block)")
        logger.info(
            f"RepGov node ready: owner={engine.owner} "
            f"voting period={engine.get_voting_period()} blocks, "
            f"{len(rpc_server.get_methods())} RPC methods"
        )
        try:
            yield
        finally:
            if ticker is not None:
                ticker.cancel()
                try:
                    await ticker
                except asyncio.CancelledError:
                    pass
            logger.info("RepGov node stopped")

    app = FastAPI(
        title="RepGov Node",
        description="Reputation-weighted governance ledger.",
        version=NODE_VERSION,
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.rpc_server = rpc_server
    app.state.startup_time = time.time()

    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.node.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.post("/rpc")
    @limiter.limit(config.node.rate_limit)
    async def rpc_endpoint(request: Request, body: Any = Body(...)):
        """JSON-RPC 2.0 endpoint"""
        result = await rpc_server.handle_request(body)
        if result is None:
            return Response(status_code=204)
        # handle_request already returns serialized JSON
        return Response(content=result, media_type="application/json")

    @app.get("/status")
    async def status(request: Request):
        return {
            "ok": True,
            "result": {
                "version": NODE_VERSION,
                "uptime": round(time.time() - app.state.startup_time, 3),
                **engine.to_dict(),
            },
        }

    return app
