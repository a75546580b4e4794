from __future__ import annotations

import math
import time

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.pool import NullPool

from felixcheck.checks.base import Check
from felixcheck.checks.results import Result

DEFAULT_QUERY = "SELECT CURRENT_TIMESTAMP"


class DatabaseConnectionChecker(Check):
    """Opens a fresh connection, runs one trivial query and closes it again.

    Any SQLAlchemy URL works as long as its driver is installed and it carries
    a user and a password. Metric is the full round trip in ms.
    """

    def __init__(
        self,
        host: str,
        service: str,
        uri: str,
        timeout_s: float = 5,
        query: str = DEFAULT_QUERY,
    ) -> None:
        self.host = host
        self.service = service
        self.uri = uri
        self.timeout_s = timeout_s
        self.query = query

    def execute(self) -> Result:
        try:
            url = make_url(self.uri)
        except Exception as e:
            return Result.from_exception(self.host, self.service, e)

        if not url.username:
            return Result.critical(self.host, self.service, description="No user defined")
        if url.password is None:
            return Result.critical(self.host, self.service, description="No password defined")

        start = time.perf_counter()
        engine = None
        try:
            engine = create_engine(
                url,
                poolclass=NullPool,
                connect_args={"connect_timeout": max(1, math.ceil(self.timeout_s))},
            )
            with engine.connect() as conn:
                conn.execute(text(self.query)).scalar()
            latency_ms = (time.perf_counter() - start) * 1000
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return Result.from_exception(self.host, self.service, e, metric=latency_ms)
        finally:
            if engine is not None:
                engine.dispose()

        return Result.ok(self.host, self.service, metric=latency_ms)
