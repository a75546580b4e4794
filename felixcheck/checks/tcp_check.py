from __future__ import annotations

import socket
import time

from felixcheck.checks.base import Check
from felixcheck.checks.results import Result


class TcpPortChecker(Check):
    def __init__(
        self, host: str, service: str, ip: str, port: int, timeout_s: float = 3
    ) -> None:
        self.host = host
        self.service = service
        self.ip = ip
        self.port = port
        self.timeout_s = timeout_s

    def execute(self) -> Result:
        start = time.perf_counter()
        try:
            with socket.create_connection((self.ip, self.port), timeout=self.timeout_s):
                latency_ms = (time.perf_counter() - start) * 1000
                return Result.ok(self.host, self.service, metric=latency_ms)
        except Exception as e:
            return Result.critical(
                self.host, self.service, description=f"{self.ip}:{self.port}: {e}"
            )
