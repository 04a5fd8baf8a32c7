"""
Computex Logging
================

Every module logs through `get_logger(__name__)`; all of them hang below the
`computex` logger, which is set up once on first use:

  - console: a rich handler on stderr that highlights tx hashes, addresses,
    amounts and settlement stages (plain stream handler when highlighting
    is off)
  - file: optional size-rotated `logs/computex.log`

Settings come from computex.constants (LOG_LEVEL, LOG_FORMAT,
LOG_DATE_FORMAT, LOG_CONSOLE_HIGHLIGHTING, LOG_FILE_OUTPUT).

    >>> from computex.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("withdrawEth [submitted] txHash: 0x...")
"""

import logging
import re
import sys
import threading
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from . import constants

PACKAGE_LOGGER = "computex"

LOG_THEME = Theme({
    "computex.tx_hash": "bold blue",
    "computex.address": "cyan",
    "computex.amount":  "bold white",
    "computex.stage":   "bold magenta",
    "computex.failed":  "bold red",
    "computex.level":   "bold yellow",
})


class SettlementHighlighter(RegexHighlighter):
    """Colours the values settlement logs are read for."""

    base_style = "computex."
    highlights = [
        r"(?P<tx_hash>0x[0-9a-fA-F]{64})",
        r"(?P<address>0x[0-9a-fA-F]{40})(?![0-9a-fA-F])",
        r"(?P<amount>\b\d+ (?:wei|nRLC)\b)",
        r"(?P<failed>\[failed\])",
        r"(?P<stage>\[(?:validated|submitted|confirmed|reconciled)\])",
        r"(?P<level>\b(?:WARNING|ERROR|CRITICAL)\b)",
    ]


class TerminalSafeFormatter(logging.Formatter):
    """
    Drops terminal escape sequences and control characters.

    Logged values include event fields and revert reasons read from the
    ledger, which anyone can put there.
    """

    _unsafe = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"      # CSI sequences
        r"|\x1b[@-Z\\-_]"              # two-byte escapes
        r"|[\x00-\x08\x0B-\x1F\x7F]"   # controls except tab and newline
    )

    def format(self, record: logging.LogRecord) -> str:
        return self._unsafe.sub("", super().format(record))


def _checked_format(fmt: str) -> str:
    """LOG_FORMAT if it formats a record, else its default."""
    probe = logging.LogRecord(PACKAGE_LOGGER, logging.INFO, "", 0, "probe", (), None)
    try:
        logging.Formatter(fmt).format(probe)
    except (ValueError, KeyError, TypeError) as e:
        sys.stderr.write(f"computex.logger: invalid LOG_FORMAT ({e}), using default\n")
        return constants.LOG_FORMAT.fallback
    return fmt


class LogManager:
    """Configures the `computex` logger exactly once per process."""

    _instance: Optional["LogManager"] = None
    _guard = threading.Lock()

    def __new__(cls) -> "LogManager":
        with cls._guard:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance.configured = False
                cls._instance = instance
        return cls._instance

    def setup(
        self,
        level: Optional[str] = None,
        file_output: Optional[bool] = None,
        log_dir: Optional[Path] = None,
    ) -> None:
        with self._guard:
            if self.configured:
                return
            numeric_level = logging.getLevelName(str(level or constants.LOG_LEVEL).upper())
            if not isinstance(numeric_level, int):
                numeric_level = logging.INFO

            formatter = TerminalSafeFormatter(
                fmt=_checked_format(str(constants.LOG_FORMAT)),
                datefmt=f"{constants.LOG_DATE_FORMAT} UTC",
            )
            formatter.converter = time.gmtime

            handlers: List[logging.Handler] = [self._console_handler()]
            if constants.LOG_FILE_OUTPUT if file_output is None else file_output:
                handlers.append(self._file_handler(log_dir or Path.cwd() / "logs"))

            package_logger = logging.getLogger(PACKAGE_LOGGER)
            package_logger.setLevel(numeric_level)
            package_logger.handlers.clear()
            for handler in handlers:
                handler.setLevel(numeric_level)
                handler.setFormatter(formatter)
                package_logger.addHandler(handler)
            self.configured = True

    @staticmethod
    def _console_handler() -> logging.Handler:
        if not constants.LOG_CONSOLE_HIGHLIGHTING:
            return logging.StreamHandler(sys.stderr)
        return RichHandler(
            console=Console(theme=LOG_THEME, stderr=True, highlight=False),
            highlighter=SettlementHighlighter(),
            show_time=False,
            show_level=False,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )

    @staticmethod
    def _file_handler(log_dir: Path) -> logging.Handler:
        log_dir.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            log_dir / constants.LOG_FILE_NAME,
            maxBytes=constants.LOG_ROTATE_BYTES,
            backupCount=constants.LOG_ROTATE_KEEP,
            encoding="utf-8",
        )


def get_logger(name: str) -> logging.Logger:
    """Logger for `name`, setting up the package logger on first call."""
    manager = LogManager()
    if not manager.configured:
        manager.setup()
    return logging.getLogger(name)
