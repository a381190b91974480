"""FastAPI application factory."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from multi_eval.api.routes import router
from multi_eval.core.errors import InvalidRequestError
from multi_eval.ledger.domain.errors import RunNotFoundError
from multi_eval.playground.infrastructure.engine import Engine


def create_app(engine: Engine) -> FastAPI:
    """Build the HTTP binding around one engine instance.

    Per-model failures always come back inside a 200 envelope. Only requests
    that cannot be dispatched at all map to an error status.
    """
    app = FastAPI(title="multi-eval", version=engine.config.version)
    app.state.engine = engine
    app.include_router(router)
    app.add_exception_handler(InvalidRequestError, _invalid_request_handler)
    app.add_exception_handler(RunNotFoundError, _run_not_found_handler)
    return app


async def _invalid_request_handler(request: Request, exc: Exception) -> JSONResponse:
    structlog.get_logger().warning(
        "api.invalid_request", path=request.url.path, reason=str(exc)
    )
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _run_not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})
