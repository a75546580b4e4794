from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Callable, Iterable, Mapping

from felixcheck.checks.results import Result

logger = logging.getLogger(__name__)


class Check(ABC):
    """A zero-argument probe producing exactly one Result per call.

    Implementations close over everything they need (address, credentials,
    thresholds) at construction time and turn probe failures into critical
    Results instead of raising.
    """

    @abstractmethod
    def execute(self) -> Result:
        raise NotImplementedError

    def __call__(self) -> Result:
        return self.execute()

    def with_tags(self, *tags: str) -> "Tags":
        return Tags(self, tags)

    def with_attributes(self, attributes: Mapping[str, str]) -> "Attributes":
        return Attributes(self, attributes)

    def with_ttl(self, ttl: float) -> "Ttl":
        return Ttl(self, ttl)

    def with_retry(self, times: int, sleep: float = 0.0) -> "Retry":
        return Retry(self, times, sleep)


class FunctionCheck(Check):
    def __init__(self, fn: Callable[[], Result]) -> None:
        self.fn = fn

    def execute(self) -> Result:
        return self.fn()

    def __repr__(self) -> str:
        return f"FunctionCheck({getattr(self.fn, '__name__', self.fn)!r})"


class CheckDecorator(Check):
    def __init__(self, check: Check) -> None:
        self.check = check

    def execute(self) -> Result:
        return self.transform(self.check.execute())

    def transform(self, result: Result) -> Result:
        return result


class Tags(CheckDecorator):
    def __init__(self, check: Check, tags: Iterable[str]) -> None:
        super().__init__(check)
        self.tags = tuple(tags)

    def transform(self, result: Result) -> Result:
        return replace(result, tags=self.tags)


class Attributes(CheckDecorator):
    def __init__(self, check: Check, attributes: Mapping[str, str]) -> None:
        super().__init__(check)
        self.attributes = dict(attributes)

    def transform(self, result: Result) -> Result:
        return replace(result, attributes=self.attributes)


class Ttl(CheckDecorator):
    def __init__(self, check: Check, ttl: float) -> None:
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0, got {ttl}")
        super().__init__(check)
        self.ttl = float(ttl)

    def transform(self, result: Result) -> Result:
        return replace(result, ttl=self.ttl)


class Retry(CheckDecorator):
    """Run the wrapped check until it reports ok, at most ``times`` attempts.

    The first ok Result is returned as soon as it is seen. When every attempt
    fails, the Result of the last attempt is returned. The calling thread
    sleeps ``sleep`` seconds between attempts, never after the last one.
    """

    def __init__(self, check: Check, times: int, sleep: float = 0.0) -> None:
        if times < 1:
            raise ValueError(f"retry times must be >= 1, got {times}")
        if sleep < 0:
            raise ValueError(f"retry sleep must be >= 0, got {sleep}")
        super().__init__(check)
        self.times = int(times)
        self.sleep = float(sleep)

    def execute(self) -> Result:
        attempt = 1
        while True:
            result = self.check.execute()
            if result.is_ok or attempt >= self.times:
                return result
            logger.debug(
                "Attempt %d/%d for %s/%s failed: %s",
                attempt,
                self.times,
                result.host,
                result.service,
                result.description,
            )
            attempt += 1
            time.sleep(self.sleep)
