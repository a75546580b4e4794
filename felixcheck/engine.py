from __future__ import annotations

import logging
import signal
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Iterable

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from felixcheck.checks.base import Check
from felixcheck.checks.results import Result
from felixcheck.sinks import ResultSink
from felixcheck.state import binding_key

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 20


@dataclass(frozen=True)
class Binding:
    host: str
    service: str
    period: timedelta
    check: Check

    @property
    def key(self) -> str:
        return binding_key(self.host, self.service)


def as_period(period: float | timedelta) -> timedelta:
    td = period if isinstance(period, timedelta) else timedelta(seconds=float(period))
    if td <= timedelta(0):
        raise ValueError(f"period must be positive, got {period!r}")
    return td


class CheckEngine:
    """Runs every registered binding on its own interval and reports each Result.

    Ticks run on a thread pool, so a slow check only delays itself. A tick
    that comes due while the previous run of the same binding is still in
    flight is skipped rather than queued or run concurrently.
    """

    def __init__(
        self,
        sinks: Iterable[ResultSink] = (),
        workers: int = DEFAULT_WORKERS,
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        self.sinks: list[ResultSink] = list(sinks)
        self.workers = workers
        self._scheduler = scheduler or BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(workers)},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": None,
            },
            timezone=timezone.utc,
        )
        self._bindings: dict[str, Binding] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()

    def add_sink(self, sink: ResultSink) -> None:
        self.sinks.append(sink)

    def add_check(
        self,
        host: str,
        service: str,
        period: float | timedelta,
        check: Check,
        initial_delay: float = 0.0,
    ) -> Binding:
        if initial_delay < 0:
            raise ValueError(f"initial_delay must be >= 0, got {initial_delay}")
        binding = Binding(host=host, service=service, period=as_period(period), check=check)

        with self._lock:
            if binding.key in self._bindings:
                raise ValueError(f"Duplicate binding: {binding.key}")
            self._scheduler.add_job(
                self.run_binding,
                trigger=IntervalTrigger(
                    seconds=binding.period.total_seconds(), timezone=timezone.utc
                ),
                args=(binding,),
                id=binding.key,
                name=binding.key,
                next_run_time=datetime.now(timezone.utc) + timedelta(seconds=initial_delay),
            )
            self._bindings[binding.key] = binding
            if len(self._bindings) > self.workers:
                logger.warning(
                    "%d bindings share %d workers; slow checks may delay others",
                    len(self._bindings),
                    self.workers,
                )
            if not self._scheduler.running:
                self._scheduler.start()

        logger.info(
            "Registered %s every %ss", binding.key, binding.period.total_seconds()
        )
        return binding

    def bindings(self) -> list[Binding]:
        with self._lock:
            return list(self._bindings.values())

    def run_binding(self, binding: Binding) -> Result:
        try:
            result = binding.check.execute()
        except Exception as e:
            logger.exception("Check %s raised instead of returning a result", binding.key)
            result = Result.from_exception(binding.host, binding.service, e)

        if not isinstance(result, Result):
            result = Result.critical(
                binding.host,
                binding.service,
                description=f"Check returned {type(result).__name__}, not a Result",
            )
        elif (result.host, result.service) != (binding.host, binding.service):
            logger.warning(
                "Check %s returned a result for %s; reporting it under the binding",
                binding.key,
                binding_key(result.host, result.service),
            )
            result = replace(result, host=binding.host, service=binding.service)
        self.report(result)
        return result

    def report(self, result: Result) -> None:
        for sink in self.sinks:
            try:
                sink.accept(result)
            except Exception:
                # A broken sink must not stop the others or the binding.
                logger.exception(
                    "Sink %r failed for %s/%s", sink, result.host, result.service
                )

    def stop(self) -> None:
        self._stop.set()

    def run_forever(self) -> None:
        """Block until SIGINT/SIGTERM (or ``stop()``), then shut the scheduler down."""

        def _request_stop(signum: int, _frame: object) -> None:
            logger.info("Received signal %d, stopping", signum)
            self._stop.set()

        if threading.current_thread() is threading.main_thread():
            signal.signal(signal.SIGINT, _request_stop)
            signal.signal(signal.SIGTERM, _request_stop)

        self._stop.wait()
        self.shutdown()

    def shutdown(self, wait: bool = False) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
