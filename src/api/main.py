"""
FILE: src/api/main.py
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.api.dependencies import shutdown_flow_runtime
from src.api.observability import setup_observability
from src.api.routers.catalog import router as catalog_router
from src.api.routers.flows import router as flows_router
from src.api.routers.session import router as session_router


@asynccontextmanager
async def _app_lifespan(_app: FastAPI):
    yield
    await shutdown_flow_runtime()


app = FastAPI(
    title="Wallet Flow Engine API",
    version="0.1.0",
    description=(
        "Guided money-movement and bill-payment flows over a remote banking service.\n\n"
        "Each flow walks a fixed step plan (`SELECTION`, `VERIFICATION`, `AMOUNT_ENTRY`, "
        "`QUOTE`, `AUTHORIZATION`, `RESULT`) and ends `COMPLETED`, `ABANDONED` or "
        "`SESSION_EXPIRED`."
    ),
    openapi_tags=[
        {
            "name": "Transaction Flows",
            "description": "Start, advance, retreat and abandon guided transaction flows.",
        },
        {
            "name": "Session",
            "description": "Displayed balance and profile refresh for the single session.",
        },
        {
            "name": "Selection Catalogs",
            "description": "Read-only lists used to fill selection steps.",
        },
    ],
    lifespan=_app_lifespan,
)

setup_observability(app)
logger = logging.getLogger(__name__)

app.include_router(flows_router)
app.include_router(session_router)
app.include_router(catalog_router)


@app.exception_handler(Exception)
async def unhandled_exception_to_problem_details(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception while serving request", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/problem+json",
        content={
            "type": "about:blank",
            "title": "Internal Server Error",
            "status": 500,
            "detail": "An unexpected error occurred.",
            "instance": str(request.url.path),
        },
    )


@app.get("/health", tags=["Transaction Flows"], summary="Health Check")
def health() -> dict:
    return {"status": "ok"}
