"""
chainconf Logging

Root logging setup shared by every chainconf module. Console output goes
through ``rich`` with a highlighter tuned for configuration traces (layer
presence flags, dotted keys, enode URLs, addresses). A rotating log file
can be enabled from ``.env`` (``LOG_FILE_OUTPUT=true``).

Setup happens once, on the first :func:`get_logger` call, and only adds
handlers; handlers installed by the embedding application are kept.

    >>> from chainconf.logger import get_logger
    >>> logger = get_logger(__name__)
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    DEFAULT_LOG_DATE_FORMAT,
    DEFAULT_LOG_FORMAT,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_DATE_FORMAT,
    LOG_FILE_OUTPUT,
    LOG_FORMAT,
    LOG_LEVEL,
    LOG_MAX_FILE_SIZE,
)

LOG_FILE_PATH = Path("logs") / "chainconf.log"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore")

CONSOLE_THEME = Theme({
    "chainconf.present": "bold green",
    "chainconf.absent": "dim",
    "chainconf.key": "magenta",
    "chainconf.enode": "cyan",
    "chainconf.ip": "cyan",
    "chainconf.url": "underline cyan",
    "chainconf.logger_name": "blue",
    "chainconf.level_debug": "dim",
    "chainconf.level_info": "green",
    "chainconf.level_warning": "yellow",
    "chainconf.level_error": "bold red",
    "chainconf.level_critical": "bold white on red",
})


class ConfigLogHighlighter(RegexHighlighter):
    """Highlights layer flags like ``( yes )``, quoted dotted keys, enode URLs and IPs."""

    base_style = "chainconf."
    highlights = [
        r"(?P<present>\(\s+yes\s+\))",
        r"(?P<absent>\(\s+no\s+\))",
        r"'(?P<key>[A-Za-z][\w-]*(?:\.[\w-]+)+)'",
        r"(?P<enode>enode://[0-9a-fA-F]*@\S+)",
        r"(?P<url>https?://\S+)",
        r"(?<![\w.])(?P<ip>\d{1,3}(?:\.\d{1,3}){3}(?::\d{1,5})?)(?![\w.])",
        r" - (?P<logger_name>chainconf[\w.]*) - ",
        r"\b(?P<level_debug>DEBUG)\b",
        r"\b(?P<level_info>INFO)\b",
        r"\b(?P<level_warning>WARNING)\b",
        r"\b(?P<level_error>ERROR)\b",
        r"\b(?P<level_critical>CRITICAL)\b",
    ]


class TerminalSafeFormatter(logging.Formatter):
    """
    Strips ANSI escapes and control characters from formatted records.

    Logged values come from config files and environment variables, which
    must not be able to drive the terminal.
    """

    _escape_sequence = re.compile(r"\x1b(?:\[[0-?]*[ -/]*[@-~]|[@-Z\\-_])")
    _control = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")

    @classmethod
    def sanitize(cls, text: str) -> str:
        return cls._control.sub("", cls._escape_sequence.sub("", text))

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


def _usable_format(fmt: str) -> str:
    """*fmt* if it renders a sample record, else the default format."""
    sample = logging.LogRecord("chainconf", logging.INFO, __file__, 0, "sample", (), None)
    try:
        logging.Formatter(fmt=fmt).format(sample)
    except (ValueError, KeyError, TypeError) as e:
        print(f"chainconf.logger: unusable LOG_FORMAT ({e}), using the default", file=sys.stderr)
        return DEFAULT_LOG_FORMAT
    return fmt


def _usable_date_format(datefmt: str) -> str:
    """*datefmt* if it contains at least one strftime directive, else the default."""
    if not re.search(r"%[A-Za-z]", datefmt):
        print("chainconf.logger: unusable LOG_DATE_FORMAT, using the default", file=sys.stderr)
        return DEFAULT_LOG_DATE_FORMAT
    try:
        time.strftime(datefmt)
    except ValueError as e:
        print(f"chainconf.logger: unusable LOG_DATE_FORMAT ({e}), using the default", file=sys.stderr)
        return DEFAULT_LOG_DATE_FORMAT
    return datefmt


class LogManager:
    """Process-wide logging setup, applied at most once."""

    _instance: Optional["LogManager"] = None
    _lock = threading.RLock()

    def __new__(cls) -> "LogManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._configured = False
            return cls._instance

    @property
    def is_configured(self) -> bool:
        return self._configured

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Install console and file handlers on the root logger.

        Args:
            log_level: Level name; ``LOG_LEVEL`` from ``.env`` when omitted.
            log_file: Rotating log file; ``logs/chainconf.log`` under the working
                directory when omitted.
            console_output: Log to stderr.
            file_output: Log to *log_file*; ``LOG_FILE_OUTPUT`` when omitted.
        """
        with self._lock:
            if self._configured:
                return

            level = logging.getLevelName(str(log_level or LOG_LEVEL).upper())
            if not isinstance(level, int):
                level = logging.INFO

            root = logging.getLogger()
            root.setLevel(level)
            for name in QUIET_LOGGERS:
                logging.getLogger(name).setLevel(logging.WARNING)

            formatter = TerminalSafeFormatter(
                fmt=_usable_format(LOG_FORMAT),
                datefmt=_usable_date_format(LOG_DATE_FORMAT) + " UTC",
            )
            formatter.converter = time.gmtime

            handlers = []
            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    handler = RichHandler(
                        console=Console(theme=CONSOLE_THEME, stderr=True, highlight=False),
                        highlighter=ConfigLogHighlighter(),
                        show_time=False,
                        show_level=False,
                        show_path=False,
                        markup=False,
                        rich_tracebacks=True,
                        keywords=[],
                    )
                else:
                    handler = logging.StreamHandler(sys.stderr)
                handlers.append(handler)

            if LOG_FILE_OUTPUT if file_output is None else file_output:
                path = Path(log_file or LOG_FILE_PATH)
                path.parent.mkdir(parents=True, exist_ok=True)
                handlers.append(logging.handlers.RotatingFileHandler(
                    path,
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                ))

            for handler in handlers:
                handler.setLevel(level)
                handler.setFormatter(formatter)
                root.addHandler(handler)

            self._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.configure()
        return logging.getLogger(name)


_manager = LogManager()


def configure(**kwargs) -> None:
    """Configure logging explicitly before the first :func:`get_logger` call."""
    _manager.configure(**kwargs)


def get_logger(name: str) -> logging.Logger:
    """Logger for *name*, setting up chainconf logging on first use."""
    return _manager.get_logger(name)
