"""
Structured logging system for jobmatch.

Provides centralized logging with console and file outputs, log levels,
and metrics tracking for monitoring matching runs.
"""

import logging
import sys
import threading
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring scoring and store reconciliation.
    """

    def __init__(
        self,
        name: str = "jobmatch",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)

        # Metrics tracking, shared by scoring workers
        self._metrics_lock = threading.Lock()
        self.metrics = {
            "candidates_scored": 0,
            "candidates_skipped": 0,
            "pairs_scored": 0,
            "upserts": 0,
            "deletes": 0,
            "store_failures": 0,
            "errors_by_type": {},
        }

        self.configure(level, log_dir, enable_file, enable_console)

    def configure(
        self,
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """(Re)attach handlers, e.g. once the CLI has read its settings."""
        self.logger.setLevel(getattr(logging, level.upper()))
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()  # Remove existing handlers

        # Console handler
        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        # File handler
        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"jobmatch_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_candidate_scored(self, pairs: int):
        """Record a candidate scored against `pairs` active jobs."""
        with self._metrics_lock:
            self.metrics["candidates_scored"] += 1
            self.metrics["pairs_scored"] += pairs

    def record_candidate_skipped(self):
        with self._metrics_lock:
            self.metrics["candidates_skipped"] += 1

    def record_upsert(self):
        with self._metrics_lock:
            self.metrics["upserts"] += 1

    def record_delete(self):
        with self._metrics_lock:
            self.metrics["deletes"] += 1

    def record_failure(self, error_type: str):
        """Record a failed store write or skipped record by error type."""
        with self._metrics_lock:
            if error_type == "StoreWriteFailure":
                self.metrics["store_failures"] += 1

            # Track error types
            if error_type not in self.metrics["errors_by_type"]:
                self.metrics["errors_by_type"][error_type] = 0
            self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return a copy of the current metrics."""
        with self._metrics_lock:
            metrics_copy = self.metrics.copy()
            metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Matching Run Metrics ===")
        self.info(
            f"Candidates: {metrics['candidates_scored']} scored, "
            f"{metrics['candidates_skipped']} skipped"
        )
        self.info(f"Pairs scored: {metrics['pairs_scored']}")
        self.info(
            f"Store: {metrics['upserts']} upserts, {metrics['deletes']} deletes, "
            f"{metrics['store_failures']} failures"
        )

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "jobmatch",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
