from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from felixcheck.checks.results import Result, State
from felixcheck.formatting import format_transition

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def binding_key(host: str, service: str) -> str:
    return f"{host}/{service}"


@dataclass
class CheckState:
    id: str
    host: str
    service: str
    state: str | None = None
    metric: float | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)
    ttl: float | None = None
    runs: int = 0
    last_run: str | None = None
    last_ok: str | None = None
    last_change: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class StateStore:
    """Latest Result per binding plus a bounded history of INIT/UP/DOWN events.

    Acts as a result sink: the engine calls ``accept`` from its worker
    threads, so every mutation happens under a single lock.
    """

    def __init__(self, max_events: int = 500) -> None:
        self._checks: dict[str, CheckState] = {}
        self._events: list[dict[str, Any]] = []
        self._max_events = max_events
        self._lock = threading.Lock()

    def _build_event(self, ts: str, check_id: str, event_name: str, result: Result) -> dict[str, Any]:
        return {
            "ts": ts,
            "id": check_id,
            "event": event_name,
            "host": result.host,
            "service": result.service,
            "state": result.state.value,
            "metric": result.metric,
            "description": result.description,
        }

    def ensure_check(self, host: str, service: str) -> None:
        check_id = binding_key(host, service)
        with self._lock:
            if check_id not in self._checks:
                self._checks[check_id] = CheckState(id=check_id, host=host, service=service)

    def update(self, result: Result) -> dict[str, Any] | None:
        check_id = binding_key(result.host, result.service)
        with self._lock:
            cs = self._checks.get(check_id)
            if cs is None:
                cs = CheckState(id=check_id, host=result.host, service=result.service)
                self._checks[check_id] = cs
            prev_state = cs.state

            cs.state = result.state.value
            cs.metric = result.metric
            cs.description = result.description
            cs.tags = list(result.tags)
            cs.attributes = dict(result.attributes)
            cs.ttl = result.ttl
            cs.runs += 1
            cs.last_run = now_iso()

            if result.is_ok:
                cs.last_ok = cs.last_run

            event: dict[str, Any] | None = None
            if prev_state is None:
                cs.last_change = cs.last_run
                event = self._build_event(cs.last_run, check_id, "INIT", result)
            elif prev_state != cs.state:
                cs.last_change = cs.last_run
                event = self._build_event(
                    cs.last_run, check_id, "UP" if result.is_ok else "DOWN", result
                )

            if event is not None:
                self._events.append(event)

            if len(self._events) > self._max_events:
                self._events = self._events[-self._max_events :]

        if event is not None and event["event"] != "INIT":
            logger.info("%s", format_transition(event))
        return event

    def accept(self, result: Result) -> None:
        self.update(result)

    def check_state(self, check_id: str) -> dict[str, Any]:
        with self._lock:
            return self._checks[check_id].to_dict()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {k: v.to_dict() for k, v in self._checks.items()}

    def summary(self) -> dict[str, Any]:
        snap = self.snapshot()
        total = len(snap)
        ok = sum(1 for v in snap.values() if v["state"] == State.OK.value)
        critical = sum(1 for v in snap.values() if v["state"] == State.CRITICAL.value)
        unknown = sum(1 for v in snap.values() if v["state"] is None)
        critical_checks = [v for v in snap.values() if v["state"] == State.CRITICAL.value]

        return {
            "total": total,
            "ok": ok,
            "critical": critical,
            "unknown": unknown,
            "critical_checks": critical_checks,
        }

    def events(self, limit: int = 50) -> list[dict[str, Any]]:
        with self._lock:
            return list(reversed(self._events[-limit:]))
