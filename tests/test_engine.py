import threading
import time
import unittest
from datetime import timedelta
from unittest.mock import Mock

from felixcheck.checks.base import Check, FunctionCheck
from felixcheck.checks.results import Result, State
from felixcheck.engine import CheckEngine, as_period
from felixcheck.state import StateStore


class RecordingSink:
    def __init__(self) -> None:
        self.results: list[Result] = []
        self._lock = threading.Lock()

    def accept(self, result: Result) -> None:
        with self._lock:
            self.results.append(result)

    def count(self, service: str) -> int:
        with self._lock:
            return sum(1 for r in self.results if r.service == service)


class SlowCheck(Check):
    def __init__(self, service: str, duration_s: float) -> None:
        self.service = service
        self.duration_s = duration_s

    def execute(self) -> Result:
        time.sleep(self.duration_s)
        return Result.ok("hostA", self.service)


def _wait_for(predicate, timeout_s: float) -> bool:
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


class RunBindingTests(unittest.TestCase):
    def test_reports_each_result_to_every_sink(self) -> None:
        first, second = RecordingSink(), RecordingSink()
        engine = CheckEngine(sinks=[first, second])
        check = FunctionCheck(lambda: Result.ok("web1", "http", metric=12))
        binding = engine.add_check("web1", "http", 60, check, initial_delay=3600)
        try:
            result = engine.run_binding(binding)
        finally:
            engine.shutdown()

        self.assertTrue(result.is_ok)
        self.assertEqual(first.results, [result])
        self.assertEqual(second.results, [result])

    def test_raising_check_is_reported_as_critical(self) -> None:
        sink = RecordingSink()
        engine = CheckEngine(sinks=[sink])

        def explode() -> Result:
            raise RuntimeError("socket exploded")

        binding = engine.add_check("web1", "http", 60, FunctionCheck(explode), initial_delay=3600)
        try:
            engine.run_binding(binding)
        finally:
            engine.shutdown()

        self.assertEqual(len(sink.results), 1)
        self.assertIs(sink.results[0].state, State.CRITICAL)
        self.assertEqual(sink.results[0].description, "socket exploded")
        self.assertEqual(sink.results[0].host, "web1")

    def test_non_result_is_reported_as_critical(self) -> None:
        sink = RecordingSink()
        engine = CheckEngine(sinks=[sink])
        binding = engine.add_check("web1", "http", 60, FunctionCheck(lambda: None), initial_delay=3600)
        try:
            engine.run_binding(binding)
        finally:
            engine.shutdown()

        self.assertIs(sink.results[0].state, State.CRITICAL)
        self.assertIn("NoneType", sink.results[0].description)

    def test_failing_sink_does_not_block_others(self) -> None:
        broken = Mock()
        broken.accept.side_effect = RuntimeError("disk full")
        sink = RecordingSink()
        engine = CheckEngine(sinks=[broken, sink])
        binding = engine.add_check(
            "web1", "http", 60, FunctionCheck(lambda: Result.ok("web1", "http")), initial_delay=3600
        )
        try:
            engine.run_binding(binding)
        finally:
            engine.shutdown()

        broken.accept.assert_called_once()
        self.assertEqual(len(sink.results), 1)

    def test_result_is_reported_under_its_binding(self) -> None:
        sink = RecordingSink()
        store = StateStore()
        store.ensure_check("web1", "http")
        engine = CheckEngine(sinks=[sink, store])
        check = FunctionCheck(lambda: Result.ok("localhost", "healthz", metric=5))
        binding = engine.add_check("web1", "http", 60, check, initial_delay=3600)
        try:
            with self.assertLogs("felixcheck.engine", level="WARNING"):
                result = engine.run_binding(binding)
        finally:
            engine.shutdown()

        self.assertEqual((result.host, result.service), ("web1", "http"))
        self.assertEqual(result.metric, 5)
        self.assertEqual(sink.results, [result])
        self.assertEqual(list(store.snapshot()), ["web1/http"])
        self.assertEqual(store.check_state("web1/http")["state"], "ok")


class RegistrationTests(unittest.TestCase):
    def test_as_period(self) -> None:
        self.assertEqual(as_period(5), timedelta(seconds=5))
        self.assertEqual(as_period(timedelta(minutes=1)), timedelta(seconds=60))
        for bad in (0, -1, timedelta(0)):
            with self.subTest(period=bad):
                with self.assertRaises(ValueError):
                    as_period(bad)

    def test_invalid_registration_is_rejected(self) -> None:
        engine = CheckEngine()
        check = FunctionCheck(lambda: Result.ok("web1", "http"))
        try:
            engine.add_check("web1", "http", 60, check, initial_delay=3600)
            with self.assertRaises(ValueError):
                engine.add_check("web1", "http", 30, check)
            with self.assertRaises(ValueError):
                engine.add_check("web2", "http", 0, check)
            with self.assertRaises(ValueError):
                engine.add_check("web3", "http", 10, check, initial_delay=-1)
            self.assertEqual([b.key for b in engine.bindings()], ["web1/http"])
        finally:
            engine.shutdown()

    def test_registration_returns_without_waiting_for_first_run(self) -> None:
        sink = RecordingSink()
        engine = CheckEngine(sinks=[sink])
        try:
            start = time.monotonic()
            engine.add_check("hostA", "slow", 60, SlowCheck("slow", 1.0))
            self.assertLess(time.monotonic() - start, 0.5)
            self.assertTrue(_wait_for(lambda: sink.count("slow") == 1, timeout_s=3))
        finally:
            engine.shutdown()


class SchedulingTests(unittest.TestCase):
    def test_slow_binding_does_not_delay_another(self) -> None:
        sink = RecordingSink()
        engine = CheckEngine(sinks=[sink], workers=4)
        try:
            engine.add_check("hostA", "slow", 0.3, SlowCheck("slow", 0.8))
            engine.add_check("hostB", "fast", 0.3, SlowCheck("fast", 0.0))

            self.assertTrue(_wait_for(lambda: sink.count("fast") >= 4, timeout_s=3))
            self.assertGreaterEqual(sink.count("slow"), 1)
        finally:
            engine.shutdown()

    def test_same_binding_never_overlaps(self) -> None:
        running = 0
        peak = 0
        lock = threading.Lock()

        def probe() -> Result:
            nonlocal running, peak
            with lock:
                running += 1
                peak = max(peak, running)
            time.sleep(0.5)
            with lock:
                running -= 1
            return Result.ok("hostA", "overlap")

        sink = RecordingSink()
        engine = CheckEngine(sinks=[sink], workers=4)
        try:
            engine.add_check("hostA", "overlap", 0.1, FunctionCheck(probe))
            self.assertTrue(_wait_for(lambda: sink.count("overlap") >= 2, timeout_s=3))
        finally:
            engine.shutdown()

        self.assertEqual(peak, 1)

    def test_run_forever_returns_after_stop(self) -> None:
        engine = CheckEngine()
        engine.add_check(
            "web1", "http", 60, FunctionCheck(lambda: Result.ok("web1", "http")), initial_delay=3600
        )
        runner = threading.Thread(target=engine.run_forever, daemon=True)
        runner.start()

        engine.stop()
        runner.join(timeout=5)

        self.assertFalse(runner.is_alive())


if __name__ == "__main__":
    unittest.main()
