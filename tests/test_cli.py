import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from felixcheck.cli import main


class CliTests(unittest.TestCase):
    def test_run_registers_bindings_and_blocks(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "checks.yml"
            path.write_text(
                textwrap.dedent(
                    """
                    checks:
                      - host: router1
                        service: ping
                        type: ping
                        ip: 192.168.1.1
                        period_s: 5
                    """
                )
            )
            with patch("felixcheck.cli.CheckEngine") as engine_cls, patch(
                "felixcheck.cli.configure_logging"
            ):
                result = CliRunner().invoke(main, ["run", "--checks", str(path), "--workers", "3"])

        self.assertEqual(result.exit_code, 0, result.output)
        engine_cls.assert_called_once()
        self.assertEqual(engine_cls.call_args.kwargs["workers"], 3)
        engine = engine_cls.return_value
        self.assertEqual(engine.add_check.call_args.args[:3], ("router1", "ping", 5))
        engine.run_forever.assert_called_once()

    def test_serve_starts_uvicorn(self) -> None:
        with patch("felixcheck.cli.uvicorn.run") as run, patch("felixcheck.cli.configure_logging"):
            result = CliRunner().invoke(main, ["serve", "--port", "9100"])

        self.assertEqual(result.exit_code, 0, result.output)
        run.assert_called_once_with("felixcheck.main:app", host="0.0.0.0", port=9100)


if __name__ == "__main__":
    unittest.main()
