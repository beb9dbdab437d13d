"""
Logging Utilities for the Plinth decision engine

Provides run-level logging configuration and structured exception logging
for batch scoring and evidence QC runs.
"""

import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


def setup_run_logging(log_dir: str, label: str) -> Tuple[logging.Logger, str]:
    """
    Set up file-based logging for a scoring run.
    Configures the ROOT logger so every module logger inherits the handlers.

    Args:
        log_dir: Directory where the log file is written
        label: Short description of the run (project id, bundle name...)

    Returns:
        Tuple of (run_logger instance, log_file_path)
    """
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_filename = f"plinth_run_{timestamp}.log"
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    log_file_path = str(Path(log_dir) / log_filename)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    file_handler = logging.FileHandler(log_file_path, mode='w', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')
    )
    root_logger.addHandler(file_handler)

    # Console only shows INFO and above; scorer DEBUG output stays in the file
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    root_logger.addHandler(console_handler)

    run_logger = logging.getLogger('plinth_run')
    run_logger.setLevel(logging.DEBUG)

    run_logger.info("=" * 70)
    run_logger.info("Plinth Decision Engine - Run Log")
    run_logger.info(f"Run: {label}")
    run_logger.info(f"Log File: {log_filename}")
    run_logger.info(f"Started: {datetime.now().isoformat()}")
    run_logger.info("=" * 70)

    return run_logger, log_file_path


def log_exception(logger: logging.Logger, exc: Exception, context: str = "", **kwargs) -> None:
    """
    Log an exception with its traceback and any context information.

    Args:
        logger: Logger instance to use
        exc: Exception that was raised
        context: Additional context string
        **kwargs: Additional context key-value pairs
    """
    error_msg = f"Exception occurred: {type(exc).__name__}: {exc}"
    if context:
        error_msg = f"{context} - {error_msg}"
    logger.error(error_msg)

    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(f"Traceback:\n{tb_str}")

    if kwargs:
        logger.error(f"Context: {kwargs}")


def get_error_info(exc: Exception, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Structured error information for an exception, suitable for JSON output."""
    return {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
        "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        "timestamp": datetime.now().isoformat(),
        "context": context or {},
    }
