"""Logging setup shared by the planning CLI and library callers.

Modules only ever do ``logger = logging.getLogger(__name__)``; handlers
are installed once by the entry point through :func:`setup_logging`.

Contextual fields (``app``, ``procedure``, ...) are attached to every
record emitted while they are active:

    setup_logging("INFO", context={"app": "plan"})
    with log_context(procedure="drill"):
        logger.info('Saved as "%s"', path)

Output:
    Human: 2026-10-18T13:45:12.345Z | INFO     | app=plan procedure=drill | Saved as "..."
    JSON:  {"t": "2026-10-18T13:45:12.345000+00:00", "lvl": "INFO", "app": "plan", ...}

Calling :func:`setup_logging` again replaces the handlers it installed
earlier instead of stacking new ones.
"""

import contextlib
import contextvars
import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

_context_var: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    'stereotax_log_context', default={}
)

# Handlers installed by setup_logging (removed on the next call)
_installed: List[logging.Handler] = []

_LEVEL_COLORS = {
    'DEBUG': '\033[36m',
    'INFO': '\033[32m',
    'WARNING': '\033[33m',
    'ERROR': '\033[31m',
    'CRITICAL': '\033[35m',
}
_RESET = '\033[0m'


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class _ContextFormatter(logging.Formatter):
    """Common timestamp handling for the two output formats."""

    def __init__(self, utc: bool = True) -> None:
        super().__init__()
        self.utc = utc

    def timestamp(self, record: logging.LogRecord) -> datetime:
        if self.utc:
            return datetime.fromtimestamp(record.created, tz=timezone.utc)
        return datetime.fromtimestamp(record.created)


class HumanFormatter(_ContextFormatter):
    """``time | LEVEL | key=value ... | message`` lines."""

    def __init__(self, utc: bool = True, color: bool = False) -> None:
        super().__init__(utc)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        ts = self.timestamp(record).strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3]
        if self.utc:
            ts += 'Z'

        level = f"{record.levelname:8s}"
        if self.color:
            level = f"{_LEVEL_COLORS.get(record.levelname, '')}{level}{_RESET}"

        parts = [ts, level]
        fields = get_context()
        if fields:
            parts.append(' '.join(f"{k}={v}" for k, v in fields.items()))
        parts.append(record.getMessage())
        line = ' | '.join(parts)

        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


class JsonFormatter(_ContextFormatter):
    """One JSON object per line, context fields merged at top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            't': self.timestamp(record).isoformat(),
            'lvl': record.levelname,
            'name': record.name,
            'msg': record.getMessage(),
        }
        entry.update(get_context())
        if record.exc_info:
            entry['exc'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    max_bytes: int = 0,
    backup_count: int = 3,
    utc: bool = True,
    context: Optional[Dict[str, Any]] = None,
) -> List[logging.Handler]:
    """Install console (and optionally file) handlers on the root logger.

    Parameters
    ----------
    log_level : str
        Level name: "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL".
    log_file : str, optional
        Also log to this file (parent directories are created).
    json : bool
        Use :class:`JsonFormatter` for the file handler.
    color : bool
        Colour the console level name when stderr is a terminal.
    max_bytes : int
        Rotate the log file at this size; 0 disables rotation.
    backup_count : int
        Rotated files to keep.
    utc : bool
        Timestamps in UTC (default) or local time.
    context : dict, optional
        Initial contextual fields, e.g. ``{"app": "plan"}``.

    Returns
    -------
    list of logging.Handler
        The handlers that were installed.
    """
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    root.setLevel(getattr(logging, log_level.upper()))

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(HumanFormatter(utc, color=color and sys.stderr.isatty()))
    _installed.append(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        if max_bytes:
            file_handler: logging.Handler = logging.handlers.RotatingFileHandler(
                path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
            )
        else:
            file_handler = logging.FileHandler(path, encoding='utf-8')
        file_handler.setFormatter(JsonFormatter(utc) if json else HumanFormatter(utc))
        _installed.append(file_handler)

    for handler in _installed:
        root.addHandler(handler)

    if context:
        push_context(**context)
    logging.captureWarnings(True)

    return list(_installed)


# ---------------------------------------------------------------------------
# Context fields
# ---------------------------------------------------------------------------


def push_context(**fields: Any) -> None:
    """Add contextual fields to all subsequent records."""
    _context_var.set({**_context_var.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Remove the given fields, or all of them when *keys* is None."""
    if keys is None:
        _context_var.set({})
        return
    current = dict(_context_var.get())
    for key in keys:
        current.pop(key, None)
    _context_var.set(current)


def get_context() -> Dict[str, Any]:
    return dict(_context_var.get())


@contextlib.contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Attach *fields* for the duration of a ``with`` block.

    Fields that were already set are restored on exit.
    """
    token = _context_var.set({**_context_var.get(), **fields})
    try:
        yield
    finally:
        _context_var.reset(token)
