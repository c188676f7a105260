# stampfix/core/logs.py
# Process-wide logging for a stampfix run. Configured once by fix_pass.main().

from __future__ import annotations
import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

LOGGER_NAME = "stampfix"


def file_logger(run_id: str, file_token: str) -> logging.LoggerAdapter:
    """Attach run_id + file_token to every log record about one file."""
    return logging.LoggerAdapter(logging.getLogger(LOGGER_NAME), {"run_id": run_id, "file_token": file_token})


class EnsureContext(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "run_id"):     record.run_id = "-"
        if not hasattr(record, "file_token"): record.file_token = "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "name": record.name,
            "run_id": getattr(record, "run_id", None),
            "file_token": getattr(record, "file_token", None),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(logs_dir: Optional[Path], verbose: int, quiet: bool,
                  log_level_arg: Optional[str], json_logs: bool) -> logging.Logger:
    """
    Console/File matrix:
      - -q:   console = WARNING+;  file = INFO+
      - none: console = INFO+;    file = INFO+
      - -vv:  console = DEBUG;    file = DEBUG
      - --log-level=X: both console & file use X
    The file handler only exists when logs_dir is given.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    if log_level_arg:
        console_level = getattr(logging, log_level_arg.upper())
        file_level = console_level
    elif quiet:
        console_level = logging.WARNING
        file_level = logging.INFO
    elif verbose >= 2:
        console_level = logging.DEBUG
        file_level = logging.DEBUG
    else:
        console_level = logging.INFO
        file_level = logging.INFO

    ch = logging.StreamHandler()
    ch.setLevel(console_level)
    ch.addFilter(EnsureContext())
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)

    if logs_dir is None:
        return logger

    logs_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_path = logs_dir / f"stampfix-{ts}.log"

    fh = logging.handlers.TimedRotatingFileHandler(
        log_path, when="midnight", backupCount=14, encoding="utf-8"
    )
    fh.setLevel(file_level)
    fh.addFilter(EnsureContext())
    if json_logs:
        fh.setFormatter(JsonFormatter())
    else:
        fh.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] [%(run_id)s:%(file_token)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S"
        ))
    logger.addHandler(fh)

    logger.debug(f"Log file: {log_path}")
    return logger
