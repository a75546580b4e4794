import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query

from felixcheck.api_schemas import (
    CheckStateResponse,
    ConfigResponse,
    HealthResponse,
    RegistryNormalizedResponse,
    StatusEventResponse,
    StatusSummaryResponse,
)
from felixcheck.config import settings
from felixcheck.engine import CheckEngine
from felixcheck.models import Registry
from felixcheck.registry import apply_defaults, load_registry, register_all
from felixcheck.sinks import LogSink
from felixcheck.state import StateStore

logger = logging.getLogger(__name__)
store = StateStore(max_events=settings.MAX_EVENTS)


@asynccontextmanager
async def lifespan(_: FastAPI):
    reg = load_registry()
    engine = CheckEngine(sinks=[LogSink(), store], workers=settings.WORKERS)
    try:
        for c in reg.checks:
            store.ensure_check(c.host, c.service)
        register_all(engine, reg)
        yield
    finally:
        engine.shutdown()


app = FastAPI(
    title="felixcheck",
    version="1.0.0",
    description=(
        "Health-check engine that loads bindings from checks.yml, runs each "
        "check on its own period, and exposes the latest results and state transitions."
    ),
    lifespan=lifespan,
)


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["system"],
    summary="Health Check",
    description="Liveness endpoint used by probes and orchestration.",
)
def health():
    return {"status": "ok"}


@app.get(
    "/config",
    response_model=ConfigResponse,
    tags=["system"],
    summary="Current Effective Config",
    description="Returns non-secret runtime config values.",
)
def config():
    return {
        "checks_path": str(settings.CHECKS_PATH),
        "default_period_s": settings.DEFAULT_PERIOD,
        "workers": settings.WORKERS,
        "max_events": settings.MAX_EVENTS,
    }


@app.get(
    "/api/registry/raw",
    response_model=Registry,
    tags=["registry"],
    summary="Raw Registry",
    description="Returns the bindings exactly as parsed from checks.yml.",
)
def registry_raw():
    reg = load_registry()
    return reg.model_dump()


@app.get(
    "/api/registry",
    response_model=RegistryNormalizedResponse,
    tags=["registry"],
    summary="Normalized Registry",
    description="Returns bindings with defaults applied, keyed by host/service.",
)
def registry_normalized():
    reg = load_registry()
    return {
        "defaults": reg.defaults.model_dump(),
        "checks": apply_defaults(reg),
        "count": len(reg.checks),
    }


@app.get(
    "/api/status/checks",
    response_model=dict[str, CheckStateResponse],
    tags=["status"],
    summary="Current Check States",
    description="Latest result per host/service.",
)
def status_checks():
    return store.snapshot()


@app.get(
    "/api/status/summary",
    response_model=StatusSummaryResponse,
    tags=["status"],
    summary="Status Summary",
    description="Aggregate counts and list of checks currently critical.",
)
def status_summary():
    return store.summary()


@app.get(
    "/api/status/events",
    response_model=list[StatusEventResponse],
    tags=["status"],
    summary="Recent Status Events",
    description="Recent INIT/UP/DOWN transitions, newest first.",
)
def status_events(
    limit: int = Query(default=50, ge=1, le=500, description="Max number of events to return")
):
    return store.events(limit=limit)
