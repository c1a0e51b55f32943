"""HTTP surface

  POST /api/trainsurf   journey search (Authorization: Bearer <token>)
  GET  /health          process metrics

Every response body uses the result shape of StitchResult.to_dict().
Raw upstream payloads and internal error text are never returned.
"""

from __future__ import annotations

import logging
from typing import Optional

from aiohttp import web

from trainsurf.agents.orchestrator import SurfOrchestrator
from trainsurf.models.config import SurfConfig
from trainsurf.models.errors import (
    AuthError,
    RateLimitError,
    RouteError,
    TrainSurfError,
    ValidationError,
)
from trainsurf.models.query import StitchResult
from trainsurf.utils.auth import BearerAuthenticator

logger = logging.getLogger("trainsurf.server")

ORCHESTRATOR_KEY = web.AppKey("orchestrator", SurfOrchestrator)
AUTH_KEY = web.AppKey("authenticator", BearerAuthenticator)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


def _failure_response(
    error: str,
    status: int,
    total_stations: int = 0,
    debug_info: Optional[list[str]] = None,
    headers: Optional[dict[str, str]] = None,
) -> web.Response:
    body = StitchResult.failure(
        error, total_stations=total_stations, debug_info=debug_info,
    ).to_dict()
    return web.json_response(body, status=status, headers=headers)


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:  # type: ignore[no-untyped-def]
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=CORS_HEADERS)
    response = await handler(request)
    response.headers.update(CORS_HEADERS)
    return response


async def handle_trainsurf(request: web.Request) -> web.Response:
    try:
        caller_id = request.app[AUTH_KEY].authenticate(request.headers.get("Authorization"))
    except AuthError as e:
        return _failure_response(str(e), e.http_status)

    try:
        body = await request.json()
    except ValueError:
        return _failure_response("Request body must be a JSON object", ValidationError.http_status)

    try:
        result = await request.app[ORCHESTRATOR_KEY].handle(body, caller_id)
    except RateLimitError as e:
        return _failure_response(
            str(e), e.http_status,
            headers={"Retry-After": str(max(1, int(e.retry_after)))},
        )
    except RouteError as e:
        logger.info("Route error for caller %s: %s", caller_id, e)
        return _failure_response(str(e), e.http_status, e.total_stations, e.debug_info)
    except ValidationError as e:
        return _failure_response(str(e), e.http_status)
    except TrainSurfError as e:
        logger.error("Request failed for caller %s: %s", caller_id, e)
        return _failure_response("Internal error", 500)
    except Exception:
        logger.exception("Unexpected error for caller %s", caller_id)
        return _failure_response("Internal error", 500)

    return web.json_response(result.to_dict())


async def handle_health(request: web.Request) -> web.Response:
    metrics = request.app[ORCHESTRATOR_KEY].metrics
    return web.json_response({"status": "ok", **metrics.to_dict()})


async def _close_orchestrator(app: web.Application) -> None:
    orchestrator = app[ORCHESTRATOR_KEY]
    await orchestrator.close()
    logger.info("Server stopped\n%s", orchestrator.metrics.summary())


def create_app(
    config: Optional[SurfConfig] = None,
    orchestrator: Optional[SurfOrchestrator] = None,
) -> web.Application:
    config = config or SurfConfig()
    app = web.Application(middlewares=[cors_middleware])
    app[ORCHESTRATOR_KEY] = orchestrator or SurfOrchestrator(config)
    app[AUTH_KEY] = BearerAuthenticator(config.api_tokens)
    app.router.add_post("/api/trainsurf", handle_trainsurf)
    app.router.add_get("/health", handle_health)
    app.on_cleanup.append(_close_orchestrator)
    return app


def run_server(config: SurfConfig) -> None:
    config.require_api_key()
    logger.info("Serving on http://%s:%d", config.host, config.port)
    web.run_app(create_app(config), host=config.host, port=config.port, print=None)
