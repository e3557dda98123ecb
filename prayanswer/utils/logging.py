import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import structlog


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = True,
    logs_dir: Union[str, Path] = "logs",
) -> None:
    """Set up logging configuration for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to files in addition to console
        logs_dir: Directory for rotating log files
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.set_exc_info,
            (
                structlog.processors.JSONRenderer()
                if log_to_file
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    if not log_to_file:
        return

    logs_path = Path(logs_dir)
    logs_path.mkdir(parents=True, exist_ok=True)

    app_handler = logging.handlers.RotatingFileHandler(
        logs_path / "app.log", maxBytes=10 * 1024 * 1024, backupCount=5  # 10MB
    )
    app_handler.setLevel(logging.INFO)
    app_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        )
    )
    root_logger.addHandler(app_handler)

    # Text extraction gets its own file; OCR and AI cleanup are the slow paths
    pipeline_handler = logging.handlers.RotatingFileHandler(
        logs_path / "text_extraction.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
    )
    pipeline_handler.setLevel(logging.DEBUG)
    pipeline_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        )
    )
    pipeline_logger = logging.getLogger("text_extraction")
    pipeline_logger.addHandler(pipeline_handler)
    pipeline_logger.propagate = True

    error_handler = logging.handlers.RotatingFileHandler(
        logs_path / "errors.log", maxBytes=5 * 1024 * 1024, backupCount=10  # 5MB
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        )
    )
    root_logger.addHandler(error_handler)


def get_pipeline_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Get a structured logger for the text extraction pipeline."""
    return structlog.get_logger(name or "text_extraction")


def log_pipeline_step(
    step: str, details: Dict[str, Any], logger: structlog.BoundLogger = None
) -> None:
    """Log a text extraction step with its details."""
    if logger is None:
        logger = get_pipeline_logger()

    logger.info(
        f"Text extraction step: {step}",
        step=step,
        timestamp=datetime.now().isoformat(),
        **details,
    )


class PipelineLogContext:
    """Context manager that logs start, duration and outcome of a pipeline stage."""

    def __init__(self, operation: str, **context):
        self.operation = operation
        self.context = context
        self.logger = get_pipeline_logger()
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        log_pipeline_step(
            f"{self.operation} - START",
            {"start_time": self.start_time.isoformat(), **self.context},
            self.logger,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = (datetime.now() - self.start_time).total_seconds()

        if exc_type is not None:
            # Expected failures (no text, cancelled) are warnings, not errors
            self.logger.warning(
                f"{self.operation} failed",
                operation=self.operation,
                error_type=exc_type.__name__,
                error_message=str(exc_val),
                processing_time_seconds=elapsed,
                **self.context,
            )
        else:
            self.logger.info(
                f"{self.operation} completed",
                operation=self.operation,
                processing_time_seconds=elapsed,
                **self.context,
            )
        return False
