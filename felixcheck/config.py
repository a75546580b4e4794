import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CHECKS_PATH = Path(__file__).resolve().parents[1] / "checks.yml"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings:
    CHECKS_PATH: Path = Path(
        os.getenv("FELIXCHECK_CHECKS_PATH") or DEFAULT_CHECKS_PATH
    )
    DEFAULT_PERIOD: float = float(os.getenv("FELIXCHECK_DEFAULT_PERIOD", 30))
    WORKERS: int = int(os.getenv("FELIXCHECK_WORKERS", 20))
    MAX_EVENTS: int = int(os.getenv("FELIXCHECK_MAX_EVENTS", 500))
    LOG_LEVEL: str = os.getenv("FELIXCHECK_LOG_LEVEL", "INFO").upper()


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
