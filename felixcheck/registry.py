from __future__ import annotations

import logging
from pathlib import Path

import yaml

from felixcheck.checks.base import Check
from felixcheck.checks.database_check import DEFAULT_QUERY, DatabaseConnectionChecker
from felixcheck.checks.http_check import HttpChecker, body_greater_than, status_code_is
from felixcheck.checks.ping_check import PingChecker
from felixcheck.checks.rabbitmq_check import RabbitMQQueueLenChecker
from felixcheck.checks.snmp_check import (
    PRESETS,
    SnmpChecker,
    SnmpCheckerConf,
    SnmpMaxValueChecker,
)
from felixcheck.checks.tcp_check import TcpPortChecker
from felixcheck.config import settings
from felixcheck.engine import Binding, CheckEngine
from felixcheck.models import (
    BaseCheck,
    DatabaseCheck,
    Defaults,
    HttpCheck,
    PingCheck,
    RabbitMQQueueCheck,
    Registry,
    SnmpCheck,
    SnmpMaxCheck,
    TcpCheck,
)

logger = logging.getLogger(__name__)


def load_registry(path: Path | None = None) -> Registry:
    path = path or settings.CHECKS_PATH
    if not path.exists():
        raise FileNotFoundError(
            f"Missing checks file at {path}. Copy checks.example.yml to checks.yml and configure it."
        )

    data = yaml.safe_load(path.read_text()) or {}
    reg = Registry.model_validate(data)

    # host/service pairs identify bindings
    seen = set()
    for c in reg.checks:
        if c.key in seen:
            raise ValueError(f"Duplicate check: {c.key}")
        seen.add(c.key)

    return reg


def apply_defaults(reg: Registry) -> dict[str, dict]:
    """
    Produce a normalized dict keyed by binding key with defaults applied.
    Returns pure python dicts so they serialize cleanly.
    """
    out: dict[str, dict] = {}
    d = reg.defaults

    for c in reg.checks:
        cd = c.model_dump(mode="json")
        cd["period_s"] = cd["period_s"] or d.period_s or settings.DEFAULT_PERIOD
        cd["timeout_s"] = cd["timeout_s"] or d.timeout_s
        out[c.key] = cd

    return out


def _build_probe(c: BaseCheck, timeout_s: float) -> Check:
    if isinstance(c, PingCheck):
        return PingChecker(c.host, c.service, c.ip, timeout_s=timeout_s, privileged=c.privileged)
    if isinstance(c, TcpCheck):
        return TcpPortChecker(c.host, c.service, c.ip, c.port, timeout_s=timeout_s)
    if isinstance(c, HttpCheck):
        if c.min_body_bytes is not None:
            validate = body_greater_than(c.min_body_bytes)
        else:
            validate = status_code_is(c.expected_status)
        return HttpChecker(
            c.host,
            c.service,
            str(c.url),
            validate,
            timeout_s=timeout_s,
            connect_timeout_s=c.connect_timeout_s,
        )
    if isinstance(c, SnmpCheck):
        conf = SnmpCheckerConf(retries=c.retries, timeout_s=timeout_s, oid=c.oid, port=c.port)
        return SnmpChecker(c.host, c.service, c.ip, c.community, conf)
    if isinstance(c, SnmpMaxCheck):
        if c.preset is not None:
            return PRESETS[c.preset](
                c.host,
                c.service,
                c.ip,
                c.community,
                c.max_allowed,
                timeout_s=timeout_s,
                ignore=c.ignore,
            )
        return SnmpMaxValueChecker(
            c.host,
            c.service,
            c.ip,
            c.community,
            c.oid,
            c.max_allowed,
            ignore=c.ignore,
            timeout_s=timeout_s,
        )
    if isinstance(c, RabbitMQQueueCheck):
        return RabbitMQQueueLenChecker(
            c.host, c.service, c.amqp_uri, c.queue, c.max_messages, timeout_s=timeout_s
        )
    if isinstance(c, DatabaseCheck):
        return DatabaseConnectionChecker(
            c.host, c.service, c.uri, timeout_s=timeout_s, query=c.query or DEFAULT_QUERY
        )
    raise ValueError(f"Unsupported check type: {c.type}")


def build_check(c: BaseCheck, defaults: Defaults | None = None) -> Check:
    """Build the probe for one entry and wrap it in the decorators it asks for.

    Retry wraps the probe directly so tags, attributes and ttl are stamped on
    whichever attempt is finally returned.
    """
    timeout_s = c.timeout_s or (defaults.timeout_s if defaults else 3)
    check = _build_probe(c, timeout_s)
    if c.retry is not None:
        check = check.with_retry(c.retry.times, c.retry.sleep_s)
    if c.tags:
        check = check.with_tags(*c.tags)
    if c.attributes:
        check = check.with_attributes(c.attributes)
    if c.ttl is not None:
        check = check.with_ttl(c.ttl)
    return check


def register_all(engine: CheckEngine, reg: Registry) -> list[Binding]:
    bindings = []
    for c in reg.checks:
        period_s = c.period_s or reg.defaults.period_s or settings.DEFAULT_PERIOD
        bindings.append(engine.add_check(c.host, c.service, period_s, build_check(c, reg.defaults)))
    logger.info("Registered %d checks", len(bindings))
    return bindings
