"""FastAPI application serving the stateless AI functions."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette_exporter import PrometheusMiddleware, handle_metrics

from aletheia.apps.api.core.llm import get_router, set_router
from aletheia.apps.api.routes.functions import router as functions_router
from aletheia.libs.llm_router import LLMRouter, Task, make_gateway_provider_from_settings
from aletheia.libs.logging_utils import colorize, configure_logging
from aletheia.libs.schemas.settings import get_settings

configure_logging()
LOGGER = logging.getLogger(__name__)
SETTINGS = get_settings()


def build_router() -> LLMRouter | None:
    provider = make_gateway_provider_from_settings(SETTINGS)
    if provider is None:
        LOGGER.warning("AI_GATEWAY_API_KEY not configured; functions will fail until it is set")
        return None
    router = LLMRouter()
    router.register_provider("gateway", provider)
    router.set_policy(Task.CHAT, ["gateway"])
    return router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Tests may install their own router before startup.
    router = get_router() or build_router()
    if router is not None:
        set_router(router)
        LOGGER.info(
            colorize("Router configured", "cyan"),
            extra={"event": "router_config", "model_chat": SETTINGS.model_chat},
        )
    app.state.llm_router = router
    yield


app = FastAPI(title=f"{SETTINGS.app_name} Functions", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=SETTINGS.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)
app.add_middleware(PrometheusMiddleware)
app.add_route("/metrics", handle_metrics)


@app.exception_handler(RuntimeError)
@app.exception_handler(ValueError)
async def function_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": str(exc) or exc.__class__.__name__}, status_code=500)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse({"error": "Invalid request body"}, status_code=422)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(functions_router)


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("aletheia.apps.api.main:app", host="0.0.0.0", port=8000, reload=True)
