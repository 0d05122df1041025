"""
Logging setup for mesh_volume.

Modules log through ``logging.getLogger(__name__)`` and attach measurement
fields with ``extra={...}``. This module decides how those records look:

- ``JSONFormatter``: one JSON object per line; numpy scalars and small
  arrays become plain JSON values
- ``ConsoleFormatter``: short, optionally coloured lines for a terminal
- ``log_timing`` / ``timed``: start/finish/failure records with elapsed time
- ``LogContext``: fields (model id, request id) stamped on every record of a
  scope; safe with the analyzer's thread pool

Usage:
    from mesh_volume.logging_config import setup_logging, LogContext

    setup_logging(level=logging.DEBUG, json_file="analysis.jsonl")
    with LogContext(model_id="chair-42"):
        result = analyze_scene(root)
"""

import contextvars
import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Tuple, TypeVar, Union

import numpy as np

F = TypeVar('F', bound=Callable[..., Any])

PACKAGE_LOGGER = "mesh_volume"

# Arrays longer than this are summarised instead of listed.
MAX_INLINE_VALUES = 16

_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    'message', 'asctime', 'taskName',
}

_context_stack: contextvars.ContextVar[Tuple['LogContext', ...]] = \
    contextvars.ContextVar('mesh_volume_log_context', default=())


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields that came in through ``extra`` or a LogContext."""
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}


def _jsonable(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        if value.size <= MAX_INLINE_VALUES:
            return value.tolist()
        return f"<array shape={value.shape} dtype={value.dtype}>"
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)
    return value


def _short_value(value: Any) -> str:
    if isinstance(value, (float, np.floating)):
        return f"{value:.4g}"
    if isinstance(value, np.ndarray):
        return f"array{value.shape}"
    if isinstance(value, (list, tuple)) and len(value) > 3:
        return f"[{len(value)} items]"
    return str(value)


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Keys: ``timestamp``, ``level``, ``logger``, ``message``; ``location``
    ("file:line in function") for warnings and above; ``exception`` when a
    traceback is attached; then every extra field.
    """

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.WARNING:
            entry["location"] = f"{record.filename}:{record.lineno} in {record.funcName}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if self.include_extra:
            for key, value in _record_fields(record).items():
                entry[key] = _jsonable(value)
        return json.dumps(entry, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL module: message  key=value ...``

    The ``mesh_volume.`` prefix is dropped from logger names.
    """

    COLORS = {
        'DEBUG': '\033[2m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[1;31m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True, show_extra: bool = True):
        super().__init__()
        self.use_colors = use_colors
        self.show_extra = show_extra

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:<8}"
        if self.use_colors and record.levelname in self.COLORS:
            level = f"{self.COLORS[record.levelname]}{level}{self.RESET}"

        name = record.name
        if name.startswith(PACKAGE_LOGGER + "."):
            name = name[len(PACKAGE_LOGGER) + 1:]

        line = f"{stamp} {level} {name}: {record.getMessage()}"
        if self.show_extra:
            fields = _record_fields(record)
            if fields:
                line += "  " + " ".join(f"{k}={_short_value(v)}" for k, v in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class _ContextFilter(logging.Filter):
    """Copies the active LogContext fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for context in _context_stack.get():
            for key, value in context.fields.items():
                setattr(record, key, value)
        return True


_CONTEXT_FILTER = _ContextFilter()


def _install_context_filter(logger: logging.Logger) -> None:
    for handler in logger.handlers:
        handler.addFilter(_CONTEXT_FILTER)


def setup_logging(
    level: int = logging.INFO,
    json_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    use_colors: bool = True,
    root_logger: bool = False,
) -> logging.Logger:
    """Replace the handlers of the ``mesh_volume`` logger (or the root logger).

    Args:
        level: Minimum level for the logger and its handlers
        json_file: Also write JSON lines to this file
        console: Write ConsoleFormatter lines to stderr
        use_colors: ANSI colours on the console
        root_logger: Configure the root logger instead

    Returns:
        The configured logger
    """
    logger = logging.getLogger("" if root_logger else PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)

    handlers = []
    if console:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ConsoleFormatter(use_colors=use_colors))
        handlers.append(handler)
    if json_file:
        handler = logging.FileHandler(Path(json_file), encoding='utf-8')
        handler.setFormatter(JSONFormatter())
        handlers.append(handler)

    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)
    _install_context_filter(logger)

    if not root_logger:
        logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    **fields: Any
) -> Iterator[Dict[str, Any]]:
    """Log ``operation`` start and finish with elapsed seconds.

    Fill the yielded dict with results; they are attached to the finish
    record. A ``triangles`` entry also yields ``triangles_per_second``.
    Failures are logged at ERROR and re-raised.
    """
    results: Dict[str, Any] = {}
    started = time.perf_counter()
    logger.log(level, "%s started", operation,
               extra={"event": "start", "operation": operation, **fields})

    try:
        yield results
    except Exception as e:
        elapsed = time.perf_counter() - started
        logger.error("%s failed after %.3fs: %s", operation, elapsed, e,
                     extra={"event": "error", "operation": operation,
                            "elapsed_seconds": elapsed, "error": str(e), **fields})
        raise

    elapsed = time.perf_counter() - started
    results["elapsed_seconds"] = elapsed
    if results.get("triangles") and elapsed > 0:
        results["triangles_per_second"] = results["triangles"] / elapsed
    logger.log(level, "%s finished in %.3fs", operation, elapsed,
               extra={"event": "finish", "operation": operation, **fields, **results})


def timed(
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
    operation: Optional[str] = None,
) -> Callable[[F], F]:
    """Decorator form of :func:`log_timing`; defaults to the function's module logger."""
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with log_timing(logger or logging.getLogger(func.__module__),
                            operation or func.__qualname__, level):
                return func(*args, **kwargs)
        return wrapper  # type: ignore
    return decorator


class LogContext:
    """Stamp ``fields`` on every mesh_volume record logged inside the block.

    Contexts nest; inner fields win on key clashes. The active stack lives in
    a context variable, so concurrent callers do not see each other's fields.

    Raises:
        KeyError: if a field name clashes with a LogRecord attribute
    """

    def __init__(self, **fields: Any):
        reserved = sorted(set(fields) & _STANDARD_ATTRS)
        if reserved:
            raise KeyError(f"Attempt to overwrite LogRecord attributes: {', '.join(reserved)}")
        self.fields = fields
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> 'LogContext':
        _install_context_filter(logging.getLogger(PACKAGE_LOGGER))
        self._token = _context_stack.set(_context_stack.get() + (self,))
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._token is not None:
            _context_stack.reset(self._token)
            self._token = None

    @classmethod
    def current(cls) -> Optional['LogContext']:
        stack = _context_stack.get()
        return stack[-1] if stack else None


def configure_default_logging(verbose: bool = False) -> logging.Logger:
    """Console logging at DEBUG when verbose, INFO otherwise."""
    return setup_logging(level=logging.DEBUG if verbose else logging.INFO)
