"""
Structured logging configuration using structlog.

Provides consistent, structured logging across the orchestrator with:
- JSON output in production
- Pretty console output in development
- Context binding for session/request tracing
- Optional file output (one file per run, old runs culled)
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.typing import Processor

from sarufi.core.config import settings


def _cull_old_logs(logs_dir: Path, keep: int) -> None:
    """Delete old log files, keeping only the N most recent.

    Args:
        logs_dir: Directory containing log files
        keep: Number of recent log files to retain
    """
    log_files = sorted(
        logs_dir.glob("sarufi_*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )

    for old_file in log_files[keep:]:
        try:
            os.remove(old_file)
        except OSError:
            pass  # Ignore permission errors, etc.


def configure_logging(
    log_sessions_to_keep: int = 5, log_dir: Optional[Path] = None
) -> None:
    """Configure structlog for the application.

    Call this once at application startup, before any logging.

    Args:
        log_sessions_to_keep: Number of recent run logs to retain (default: 5)
        log_dir: Directory for the run log file. Defaults to settings.log_dir;
            when neither is set, output goes to the console only.

    Outputs:
        - Console (colored in dev, JSON in production)
        - File: <log_dir>/sarufi_YYYYMMDD_HHMMSS.log (if a log dir is configured)
    """
    log_dir = log_dir or settings.log_dir

    shared_processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]

    if settings.debug:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    # Clear any existing handlers first (needed for reconfiguration in tests)
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    root_logger.setLevel(logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        logs_dir = Path(log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)
        # keep-1 to make room for the new file
        _cull_old_logs(logs_dir, keep=log_sessions_to_keep - 1)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        file_handler = logging.FileHandler(logs_dir / f"sarufi_{timestamp}.log", mode="w")
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a logger instance with the given name.

    Usage:
        from sarufi.core.logging import get_logger

        log = get_logger(__name__)
        log.info("something_happened", key="value")
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """
    Bind context variables that will be included in all subsequent logs.

    Useful for turn-scoped context like session_id:

        bind_context(session_id=context.session_id, strategy=context.strategy_name)
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from the logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context variables from the logging context.

    Call this after a request completes to prevent context leakage
    between requests.
    """
    structlog.contextvars.clear_contextvars()
