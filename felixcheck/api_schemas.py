from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(description="Health status")


class ConfigResponse(BaseModel):
    checks_path: str
    default_period_s: float = Field(gt=0)
    workers: int = Field(ge=1)
    max_events: int = Field(ge=1)


class CheckStateResponse(BaseModel):
    id: str
    host: str
    service: str
    state: Literal["ok", "critical"] | None = None
    metric: float | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    attributes: dict[str, str] = Field(default_factory=dict)
    ttl: float | None = None
    runs: int = 0
    last_run: str | None = None
    last_ok: str | None = None
    last_change: str | None = None


class RegistryNormalizedResponse(BaseModel):
    defaults: dict[str, Any]
    checks: dict[str, dict[str, Any]]
    count: int


class StatusSummaryResponse(BaseModel):
    total: int
    ok: int
    critical: int
    unknown: int
    critical_checks: list[CheckStateResponse]


class StatusEventResponse(BaseModel):
    ts: str
    id: str
    event: Literal["INIT", "UP", "DOWN"]
    host: str
    service: str
    state: Literal["ok", "critical"]
    metric: float = 0.0
    description: str = ""
