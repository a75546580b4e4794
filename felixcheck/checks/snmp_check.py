from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Iterable

from felixcheck.checks.base import Check
from felixcheck.checks.metric_check import below
from felixcheck.checks.results import Result, State

SYS_NAME_OID = "1.3.6.1.2.1.1.5.0"
C4_CMTS_TEMP_OID = "1.3.6.1.4.1.4998.1.1.10.1.4.2.1.29"
JUNIPER_TEMP_OID = "1.3.6.1.4.1.2636.3.1.13.1.7"
JUNIPER_CPU_OID = "1.3.6.1.4.1.2636.3.1.13.1.8"

# C4 CMTS reports 999 for sensors that are not fitted.
C4_CMTS_UNFITTED_SENSOR = 999


class SnmpError(RuntimeError):
    pass


@dataclass(frozen=True)
class SnmpCheckerConf:
    retries: int = 1
    timeout_s: float = 1.0
    oid: str = SYS_NAME_OID
    port: int = 161


DEFAULT_SNMP_CONF = SnmpCheckerConf()


async def _snmp_get(
    ip: str, community: str, oids: list[str], timeout_s: float, retries: int, port: int
) -> list[tuple[str, Any]]:
    from pysnmp.hlapi.v3arch.asyncio import (
        CommunityData,
        ContextData,
        ObjectIdentity,
        ObjectType,
        SnmpEngine,
        UdpTransportTarget,
        get_cmd,
    )

    engine = SnmpEngine()
    try:
        transport = await UdpTransportTarget.create((ip, port), timeout=timeout_s, retries=retries)
        error_indication, error_status, error_index, var_binds = await get_cmd(
            engine,
            CommunityData(community, mpModel=1),
            transport,
            ContextData(),
            *[ObjectType(ObjectIdentity(oid)) for oid in oids],
        )
    finally:
        engine.close_dispatcher()

    if error_indication:
        raise SnmpError(str(error_indication))
    if error_status:
        raise SnmpError(f"{error_status.prettyPrint()} at index {int(error_index)}")
    return [(str(name), value) for name, value in var_binds]


async def _snmp_walk(
    ip: str, community: str, oid: str, timeout_s: float, retries: int, port: int
) -> list[tuple[str, Any]]:
    from pysnmp.hlapi.v3arch.asyncio import (
        CommunityData,
        ContextData,
        ObjectIdentity,
        ObjectType,
        SnmpEngine,
        UdpTransportTarget,
        walk_cmd,
    )

    engine = SnmpEngine()
    rows: list[tuple[str, Any]] = []
    try:
        transport = await UdpTransportTarget.create((ip, port), timeout=timeout_s, retries=retries)
        async for error_indication, error_status, error_index, var_binds in walk_cmd(
            engine,
            CommunityData(community, mpModel=1),
            transport,
            ContextData(),
            ObjectType(ObjectIdentity(oid)),
            lexicographicMode=False,
        ):
            if error_indication:
                raise SnmpError(str(error_indication))
            if error_status:
                raise SnmpError(f"{error_status.prettyPrint()} at index {int(error_index)}")
            rows.extend((str(name), value) for name, value in var_binds)
    finally:
        engine.close_dispatcher()
    return rows


def snmp_get(
    ip: str,
    community: str,
    oids: list[str],
    timeout_s: float,
    retries: int,
    port: int = 161,
) -> list[tuple[str, Any]]:
    return asyncio.run(_snmp_get(ip, community, oids, timeout_s, retries, port))


def snmp_walk(
    ip: str,
    community: str,
    oid: str,
    timeout_s: float,
    retries: int,
    port: int = 161,
) -> list[tuple[str, Any]]:
    return asyncio.run(_snmp_walk(ip, community, oid, timeout_s, retries, port))


def max_walk_value(rows: list[tuple[str, Any]], ignore: Iterable[int] = ()) -> int:
    ignored = set(ignore)
    highest = 0
    for _, value in rows:
        v = int(value)
        if v in ignored:
            continue
        highest = max(highest, v)
    return highest


class SnmpChecker(Check):
    def __init__(
        self,
        host: str,
        service: str,
        ip: str,
        community: str = "public",
        conf: SnmpCheckerConf = DEFAULT_SNMP_CONF,
    ) -> None:
        self.host = host
        self.service = service
        self.ip = ip
        self.community = community
        self.conf = conf

    def execute(self) -> Result:
        try:
            snmp_get(
                self.ip,
                self.community,
                [self.conf.oid],
                timeout_s=self.conf.timeout_s,
                retries=self.conf.retries,
                port=self.conf.port,
            )
        except Exception as e:
            return Result.from_exception(self.host, self.service, e)
        return Result.ok(self.host, self.service)


class SnmpMaxValueChecker(Check):
    """Walks a table and compares its highest integer against a threshold."""

    def __init__(
        self,
        host: str,
        service: str,
        ip: str,
        community: str,
        oid: str,
        max_allowed: float,
        ignore: Iterable[int] = (),
        timeout_s: float = 2.0,
        retries: int = 1,
        port: int = 161,
    ) -> None:
        self.host = host
        self.service = service
        self.ip = ip
        self.community = community
        self.oid = oid
        self.max_allowed = max_allowed
        self.ignore = tuple(ignore)
        self.timeout_s = timeout_s
        self.retries = retries
        self.port = port
        self._state_fn = below(max_allowed)

    def execute(self) -> Result:
        try:
            rows = snmp_walk(
                self.ip,
                self.community,
                self.oid,
                timeout_s=self.timeout_s,
                retries=self.retries,
                port=self.port,
            )
            highest = max_walk_value(rows, self.ignore)
        except Exception as e:
            return Result.from_exception(self.host, self.service, e)
        return Result(
            host=self.host,
            service=self.service,
            state=State(self._state_fn(highest)),
            metric=highest,
        )


def c4_cmts_temp_checker(
    host: str,
    service: str,
    ip: str,
    community: str,
    max_allowed_temp: int,
    timeout_s: float = 2.0,
    ignore: Iterable[int] = (),
) -> SnmpMaxValueChecker:
    return SnmpMaxValueChecker(
        host,
        service,
        ip,
        community,
        C4_CMTS_TEMP_OID,
        max_allowed_temp,
        ignore=(C4_CMTS_UNFITTED_SENSOR, *ignore),
        timeout_s=timeout_s,
    )


def juniper_temp_checker(
    host: str,
    service: str,
    ip: str,
    community: str,
    max_allowed_temp: int,
    timeout_s: float = 2.0,
    ignore: Iterable[int] = (),
) -> SnmpMaxValueChecker:
    return SnmpMaxValueChecker(
        host, service, ip, community, JUNIPER_TEMP_OID, max_allowed_temp, ignore=ignore, timeout_s=timeout_s
    )


def juniper_cpu_checker(
    host: str,
    service: str,
    ip: str,
    community: str,
    max_allowed_cpu: int,
    timeout_s: float = 2.0,
    ignore: Iterable[int] = (),
) -> SnmpMaxValueChecker:
    return SnmpMaxValueChecker(
        host, service, ip, community, JUNIPER_CPU_OID, max_allowed_cpu, ignore=ignore, timeout_s=timeout_s
    )


PRESETS = {
    "c4_cmts_temp": c4_cmts_temp_checker,
    "juniper_temp": juniper_temp_checker,
    "juniper_cpu": juniper_cpu_checker,
}
