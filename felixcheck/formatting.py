from __future__ import annotations

from typing import Any, Dict

from felixcheck.checks.results import Result


def format_result(result: Result) -> str:
    parts = [
        f"host={result.host}",
        f"service={result.service}",
        f"state={result.state.value}",
        f"metric={result.metric:g}",
    ]
    if result.description:
        parts.append(f"description={result.description!r}")
    if result.tags:
        parts.append(f"tags={','.join(result.tags)}")
    if result.attributes:
        attrs = ",".join(f"{k}={v}" for k, v in result.attributes.items())
        parts.append(f"attributes={attrs}")
    if result.ttl:
        parts.append(f"ttl={result.ttl:g}")
    return " ".join(parts)


def format_transition(event: Dict[str, Any]) -> str:
    # "[DOWN] web1/http: Response 503"
    line = f"[{event['event']}] {event['id']}"
    if event.get("description"):
        line += f": {event['description']}"
    return line
