from __future__ import annotations

from icmplib import ping

from felixcheck.checks.base import Check
from felixcheck.checks.results import Result

MAX_PING_TIME_S = 4.0


class PingChecker(Check):
    """Single ICMP echo request. Metric is the round trip time in ms.

    Unprivileged mode uses ICMP datagram sockets, which Linux only allows when
    the process group is inside ``net.ipv4.ping_group_range``.
    """

    def __init__(
        self,
        host: str,
        service: str,
        ip: str,
        timeout_s: float = MAX_PING_TIME_S,
        privileged: bool = False,
    ) -> None:
        self.host = host
        self.service = service
        self.ip = ip
        self.timeout_s = timeout_s
        self.privileged = privileged

    def execute(self) -> Result:
        try:
            reply = ping(self.ip, count=1, timeout=self.timeout_s, privileged=self.privileged)
        except Exception as e:
            return Result.from_exception(self.host, self.service, e)

        if not reply.is_alive:
            return Result.critical(
                self.host,
                self.service,
                description=f"No reply from {self.ip} within {self.timeout_s}s",
            )
        return Result.ok(self.host, self.service, metric=reply.avg_rtt)
