"""FastAPI application entrypoint and health reporting utilities."""

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from metasearch.api.router import api_router
from metasearch.core.config import settings
from metasearch.schema.search import HealthReport
from metasearch.sources.http import build_client
from metasearch.sources.observability import source_monitor

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
    expose_headers=["X-Unavailable-Sources", "X-Search-Degraded"],
)
app.include_router(api_router, prefix=settings.api_prefix)


@app.on_event("startup")
async def _startup() -> None:
    """Configure logging and open the shared HTTP connection pool."""
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    app.state.http_client = build_client(settings)


@app.on_event("shutdown")
async def _shutdown() -> None:
    client = getattr(app.state, "http_client", None)
    if client is not None:
        await client.aclose()


def _summarize_sources(snapshot: dict[str, Any]) -> dict[str, Any]:
    """Condense source monitor state into health-friendly telemetry.

    Open circuits and a failing last call are both treated as degraded.
    """
    sources: dict[str, Any] = {}
    for source, stats in snapshot.items():
        circuit = stats.get("circuit")
        circuit_open = bool(circuit) and float(circuit.get("remaining_cooldown") or 0.0) > 0
        last_error = stats.get("last_error")
        sources[source] = {
            "state": "degraded" if circuit_open or last_error else "ok",
            "circuit_open": circuit_open,
            "failure_total": int(stats.get("failed") or 0),
            "calls": int(stats.get("calls") or 0),
            "last_error": last_error,
            "circuit": circuit,
        }
    return sources


@app.get("/health", tags=["internal"], response_model=HealthReport)
@app.get(f"{settings.api_prefix}/health", tags=["internal"], response_model=HealthReport)
async def health() -> dict[str, Any]:
    """Return health status with per-source telemetry."""
    sources = _summarize_sources(source_monitor.snapshot())
    status = "degraded" if any(item["state"] != "ok" for item in sources.values()) else "ok"
    return {"status": status, "sources": sources}
