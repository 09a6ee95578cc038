"""Logging for scrape runs.

Everything logs under the ``wooscrape`` logger namespace. ``setup_logging``
attaches two handlers:

- a console handler for people watching the run, and
- a JSONL file handler (``logs/wooscrape_YYYYMMDD.jsonl``) where every
  line carries the run id, the worker thread and any structured fields
  passed to ``log_scrape_event``.
"""

import json
import logging
import sys
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

__all__ = [
    "setup_logging",
    "get_logger",
    "log_scrape_event",
    "RunContextFilter",
    "LOG_DIR",
]

LOG_DIR = Path(__file__).parent.parent / "logs"

ROOT_LOGGER = "wooscrape"


class RunContextFilter(logging.Filter):
    """Stamps every record with the id of the current run."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id
        return True


class JSONLFileHandler(logging.Handler):
    """Appends one JSON object per record to a daily log file."""

    def __init__(self, log_dir: Path, prefix: str = ROOT_LOGGER):
        super().__init__()
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix

    @property
    def path(self) -> Path:
        return self.log_dir / f"{self.prefix}_{datetime.now():%Y%m%d}.jsonl"

    def _entry(self, record: logging.LogRecord) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "run_id": getattr(record, "run_id", None),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        event_type = getattr(record, "event_type", None)
        if event_type:
            entry["event_type"] = event_type
        entry.update(getattr(record, "extra_data", {}))
        if record.exc_info:
            entry["exception"] = logging.Formatter().formatException(record.exc_info)
        return entry

    def emit(self, record: logging.LogRecord) -> None:
        # Called with the handler lock held, so worker threads never interleave lines
        try:
            line = json.dumps(self._entry(record), ensure_ascii=False, default=str)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


class ColoredConsoleHandler(logging.StreamHandler):
    """Colors whole console lines by level when writing to a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        isatty = getattr(self.stream, "isatty", None)
        color = self.COLORS.get(record.levelname)
        if color and isatty is not None and isatty():
            return f"{color}{message}{self.RESET}"
        return message


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None,
    run_id: Optional[str] = None,
) -> logging.Logger:
    """Configure the ``wooscrape`` logger for one run.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Console level; the JSONL file always gets DEBUG and up
        log_to_file: Write the JSONL run log
        log_to_console: Write human-readable lines to stdout
        log_dir: Directory for the JSONL files (default: ``logs/``)
        run_id: Identifier stamped on every record (random if omitted)

    Returns:
        The package logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_to_file else level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for old_filter in list(logger.filters):
        logger.removeFilter(old_filter)

    context = RunContextFilter(run_id or uuid.uuid4().hex[:12])

    if log_to_console:
        console = ColoredConsoleHandler(sys.stdout)
        console.setLevel(level)
        console.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%H:%M:%S",
        ))
        logger.addHandler(console)

    if log_to_file:
        file_handler = JSONLFileHandler(log_dir or LOG_DIR)
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(context)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Logger for a module: ``get_logger("pool")`` -> ``wooscrape.pool``."""
    if name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_scrape_event(
    event_type: str,
    data: Dict[str, Any],
    level: int = logging.INFO,
    logger_name: str = ROOT_LOGGER,
) -> None:
    """Log a structured event such as ``product_failed`` or ``export_complete``.

    ``data["message"]`` (if given) becomes the log message; every other key
    is written as a separate field of the JSONL entry.
    """
    logger = get_logger(logger_name)
    if not logger.isEnabledFor(level):
        return

    fields = {k: v for k, v in data.items() if k != "message"}
    logger.log(
        level,
        data.get("message", event_type),
        extra={"event_type": event_type, "extra_data": fields},
    )
