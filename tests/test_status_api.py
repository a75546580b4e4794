import asyncio
import importlib
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest.mock import patch

from felixcheck.checks.results import Result
from felixcheck.state import StateStore


class StatusApiTests(unittest.TestCase):
    def _load_main_module(self):
        mod = importlib.import_module("felixcheck.main")
        mod.store = StateStore()
        return mod

    def test_openapi_schema_generation(self) -> None:
        main_mod = self._load_main_module()

        schema = main_mod.app.openapi()

        paths = schema["paths"]
        for path in [
            "/health",
            "/config",
            "/api/registry/raw",
            "/api/registry",
            "/api/status/checks",
            "/api/status/summary",
            "/api/status/events",
        ]:
            with self.subTest(path=path):
                self.assertIn(path, paths)

    def test_status_endpoints_read_the_store(self) -> None:
        main_mod = self._load_main_module()
        main_mod.store.accept(Result.ok("web1", "http", metric=8))
        main_mod.store.accept(Result.critical("web1", "http", description="Response 503"))

        checks = main_mod.status_checks()
        summary = main_mod.status_summary()
        events = main_mod.status_events(limit=10)

        self.assertEqual(checks["web1/http"]["state"], "critical")
        self.assertEqual(summary["critical"], 1)
        self.assertEqual([e["event"] for e in events], ["DOWN", "INIT"])
        self.assertEqual(main_mod.health(), {"status": "ok"})

    def test_lifespan_registers_bindings_and_shuts_down(self) -> None:
        main_mod = self._load_main_module()
        text = textwrap.dedent(
            """
            checks:
              - host: db1
                service: ssh
                type: tcp
                ip: 127.0.0.1
                port: 1
                period_s: 3600
            """
        )

        async def run_lifespan(engine_cls):
            async with main_mod.lifespan(main_mod.app):
                engine = engine_cls.return_value
                self.assertEqual(engine.add_check.call_args.args[:3], ("db1", "ssh", 3600))
                self.assertIsNone(main_mod.store.check_state("db1/ssh")["state"])
            engine.shutdown.assert_called_once()

        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "checks.yml"
            path.write_text(text)
            with patch.object(main_mod.settings, "CHECKS_PATH", path), patch.object(
                main_mod, "CheckEngine"
            ) as engine_cls:
                asyncio.run(run_lifespan(engine_cls))

    def test_lifespan_fails_when_checks_file_missing(self) -> None:
        main_mod = self._load_main_module()

        async def run_lifespan():
            async with main_mod.lifespan(main_mod.app):
                pass

        with patch.object(main_mod.settings, "CHECKS_PATH", Path("/nonexistent/checks.yml")), patch.object(
            main_mod, "CheckEngine"
        ):
            with self.assertRaises(FileNotFoundError):
                asyncio.run(run_lifespan())


if __name__ == "__main__":
    unittest.main()
