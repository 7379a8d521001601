import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from paperinsight.config import Config


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def setup_logging(
    level: Optional[str] = None,
    log_file: str = "paper_insight.log",
) -> None:
    """
    Console + rotating file logging.

    Safe to call more than once (uvicorn reload, CLI + scheduler):
    handlers are only installed on the first call.
    """
    global _configured
    if _configured:
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    # ---- Console ----
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    # ---- File (rotating) ----
    log_dir = Path(Config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / log_file,
        maxBytes=20 * 1024 * 1024,  # 20MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    logging.basicConfig(
        level=(level or Config.log_level).upper(),
        handlers=[console_handler, file_handler],
    )

    # httpx 每个请求都会打 INFO，太吵
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _configured = True
