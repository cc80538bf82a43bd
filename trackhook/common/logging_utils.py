"""Logging utilities for consistent logging across modules."""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

LOG_DIR_ENV = "TRACKHOOK_LOG_DIR"


def _log_path(log_dir: Optional[str] = None) -> Path:
    log_path = Path(log_dir or os.getenv(LOG_DIR_ENV, "logs"))
    log_path.mkdir(parents=True, exist_ok=True)
    return log_path


def setup_logging(log_dir: Optional[str] = None) -> None:
    """Setup logging configuration."""
    log_path = _log_path(log_dir)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_path / "trackhook.log"),
            logging.StreamHandler()
        ]
    )


def log_server_message(message: str) -> None:
    """Log server-related messages."""
    logging.info(f"[SERVER] {message}")


def log_webhook_request(webhook_data: Dict[str, Any], event_header: Optional[str] = None) -> None:
    """Write a received webhook payload to its own timestamped file."""
    try:
        log_path = _log_path()

        timestamp = datetime.now().strftime("%Y%m%dT%H%M%S%f")
        webhook_file = log_path / f"webhook-{timestamp}.log"

        with open(webhook_file, "w", encoding="utf-8") as f:
            f.write(f"Webhook received at: {datetime.now().isoformat()}\n")
            if event_header:
                f.write(f"X-Gitlab-Event: {event_header}\n")
            f.write(f"Webhook payload:\n{json.dumps(webhook_data, indent=2)}\n")

        logging.info(f"Webhook logged to: {webhook_file}")

    except OSError as e:
        logging.error(f"Failed to log webhook request: {e}")


def log_error(error_message: str, error_data: str = "") -> None:
    """Write an error and its request data to a timestamped file."""
    try:
        log_path = _log_path()

        timestamp = datetime.now().strftime("%Y%m%dT%H%M%S%f")
        error_file = log_path / f"error-{timestamp}.log"

        with open(error_file, "w", encoding="utf-8") as f:
            f.write(f"Error occurred at: {datetime.now().isoformat()}\n")
            f.write(f"Error message: {error_message}\n")
            if error_data:
                f.write(f"Error data:\n{error_data}\n")

        logging.error(f"Error logged to: {error_file}")

    except OSError as e:
        logging.error(f"Failed to log error: {e}")
