from __future__ import annotations

import logging
from typing import Protocol

from felixcheck.checks.results import Result
from felixcheck.formatting import format_result

logger = logging.getLogger(__name__)


class ResultSink(Protocol):
    def accept(self, result: Result) -> None: ...


class LogSink:
    """Writes one line per Result; critical results are logged as warnings."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    def accept(self, result: Result) -> None:
        level = logging.INFO if result.is_ok else logging.WARNING
        self.log.log(
            level,
            "Result %s",
            format_result(result),
            extra={
                "host": result.host,
                "service": result.service,
                "state": result.state.value,
                "metric": result.metric,
                "description": result.description,
            },
        )
