"""Structured logging."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

from boom_oracle.core.types import PredictionOutcome


def setup_logging(
    level: str = "INFO",
    structured: bool = True,
    log_file: Optional[Path] = None,
) -> None:
    """Configure stdlib logging and structlog."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if structured:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(file_handler)


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Return a structured logger."""
    return structlog.get_logger(name)


class OutcomeLog:
    """Append-only JSONL journal of prediction outcomes."""

    def __init__(self, path: Path):
        """
        Args:
            path: JSONL file; parent directories are created
        """
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = None

    def write(self, outcome: PredictionOutcome) -> None:
        """Append one outcome."""
        if self._file is None:
            self._file = open(self.path, "a", encoding="utf-8")

        line = json.dumps(outcome.to_dict(), ensure_ascii=False)
        self._file.write(line + "\n")
        self._file.flush()

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None
