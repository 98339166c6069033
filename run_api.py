import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable, Optional
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from chain.binding import bind, load_interface
from chain.connector import connect
from chain.executor import Empty, Err, NftQueryExecutor, Ok, ResourceBudget
from chain.settings import Settings, configure_logging, load_settings

logger = logging.getLogger("nftgate.api")


class ApiError(Exception):
    """Rendered as ``{"error": message}`` with ``status_code``."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


@dataclass
class ChainResources:
    executor: NftQueryExecutor
    network: Optional[str]
    close: Callable[[], None]


def build_chain(settings: Settings) -> ChainResources:
    """Connect, load the ABI and bind the contract. Any StartupError aborts boot."""
    connection = connect(settings.ws_url, timeout=settings.query_timeout)
    try:
        interface = load_interface(settings.abi_path)
        handle = bind(connection, settings.contract_address, interface)
        executor = NftQueryExecutor(
            handle,
            ResourceBudget(ref_time=settings.gas_ref_time, proof_size=settings.gas_proof_size),
            origin=settings.query_origin,
            timeout=settings.query_timeout,
        )
    except Exception:
        connection.close()
        raise
    return ChainResources(executor=executor, network=connection.chain, close=connection.close)


def create_app(settings: Optional[Settings] = None,
               executor_factory: Callable[[Settings], ChainResources] = build_chain) -> FastAPI:
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resources = executor_factory(settings)
        app.state.chain = resources
        logger.info("[API] ready | contract=%s network=%s", settings.contract_address, resources.network)
        try:
            yield
        finally:
            resources.close()

    app = FastAPI(title="NFT Ownership API", lifespan=lifespan)
    app.state.settings = settings

    @app.exception_handler(ApiError)
    async def _api_error(_request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception("[API] unhandled error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    def get_chain(request: Request) -> ChainResources:
        return request.app.state.chain

    @app.get("/healthz")
    def healthz(chain: ChainResources = Depends(get_chain)):
        return {"ok": True, "network": chain.network, "contract": settings.contract_address}

    @app.get("/nft")
    async def get_nft(username: Optional[str] = None, token_id: Optional[str] = None,
                      chain: ChainResources = Depends(get_chain)):
        if not username or not token_id:
            raise ApiError(400, "Username and token_id are required")

        outcome = await chain.executor.get_nft(token_id)
        if isinstance(outcome, Empty):
            raise ApiError(404, "NFT not found")
        if isinstance(outcome, Err):
            logger.error("[API] error querying contract | token_id=%s err=%s", token_id, outcome.reason)
            raise ApiError(500, "Internal server error")
        if not isinstance(outcome, Ok):
            raise TypeError(f"unknown query outcome {outcome!r}")

        nft = outcome.record
        if nft.username.lower() != username.lower():
            raise ApiError(403, "Username does not match the NFT owner")
        return {"success": True, "item": nft.item}

    return app


if __name__ == "__main__":
    settings = load_settings()
    configure_logging(settings)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
