"""Structured logging setup with rotating file handlers.

Provides JSON-formatted file logs and simple console output.
Three log files:
  - app.log     : all logs
  - trades.log  : ledger, market simulator and session logs only
  - errors.log  : WARNING and above
"""

import json
import logging
import logging.handlers
import traceback
from datetime import datetime, timezone
from pathlib import Path

_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "relativeCreated", "exc_info",
    "exc_text", "stack_info", "lineno", "funcName", "pathname",
    "filename", "module", "levelno", "levelname", "msecs",
    "processName", "process", "threadName", "thread", "taskName",
    "message",
}


class JsonFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Output keys: timestamp, level, logger, message, plus any ``extra=``
    fields attached to the record. Exception info goes under ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                entry[key] = value
            except (TypeError, ValueError):
                entry[key] = str(value)

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(entry, default=str)


class _TradeLogFilter(logging.Filter):
    """Passes only records from the ledger, simulator and session loggers."""

    _prefixes = ("core.portfolio_ledger", "core.market_simulator", "core.paper_session")

    def filter(self, record: logging.LogRecord) -> bool:
        return record.name.startswith(self._prefixes)


def _rotating(path: Path, level: int, fmt: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(fmt)
    return handler


def setup(log_dir: str = "data/logs", level: str = "INFO") -> logging.Logger:
    """Configure root logger with rotating file handlers and console output.

    Parameters
    ----------
    log_dir:
        Directory for log files. Created if it does not exist.
    level:
        Root logger level (e.g. ``"DEBUG"``, ``"INFO"``).

    Returns
    -------
    logging.Logger
        The root logger, fully configured.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Streamlit reruns the script on every interaction
    if root_logger.handlers:
        return root_logger

    json_fmt = JsonFormatter()

    trades_handler = _rotating(log_path / "trades.log", logging.DEBUG, json_fmt)
    trades_handler.addFilter(_TradeLogFilter())

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    ))

    root_logger.addHandler(_rotating(log_path / "app.log", logging.DEBUG, json_fmt))
    root_logger.addHandler(trades_handler)
    root_logger.addHandler(_rotating(log_path / "errors.log", logging.WARNING, json_fmt))
    root_logger.addHandler(console_handler)

    return root_logger


def setup_from_config(config: dict) -> logging.Logger:
    """Configure logging from the ``logging`` section of config.yaml."""
    log_cfg = config.get("logging", {})
    return setup(log_dir=log_cfg.get("dir", "data/logs"), level=log_cfg.get("level", "INFO"))
