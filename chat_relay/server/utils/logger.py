"""
Server logging module.

This module handles server-side logging functionality.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from chat_relay.common.constants import LOGGER_NAME


class ServerLogger:
    """Server logging class."""

    def __init__(self, name: str = LOGGER_NAME, log_level: int = logging.INFO):
        # Set up main logger
        self.logger = logging.getLogger(name)
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        # Create formatter
        self.formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Create console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(self.formatter)
        self.logger.addHandler(console_handler)

        self.log_file: Optional[Path] = None

    def configure(self, log_level: Union[int, str] = logging.INFO, log_file: Optional[str] = None):
        """Apply the level to every handler and optionally add a file handler."""
        if isinstance(log_level, str):
            log_level = logging.getLevelName(log_level.upper())
            if not isinstance(log_level, int):
                raise ValueError("Unknown log level")

        self.logger.setLevel(log_level)
        for handler in self.logger.handlers:
            handler.setLevel(log_level)

        if log_file and self.log_file != Path(log_file):
            self.log_file = Path(log_file)
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
            file_handler.setLevel(log_level)
            file_handler.setFormatter(self.formatter)
            self.logger.addHandler(file_handler)

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, peer, conn_id: str):
        """Log client connection."""
        self.info(f"User connected from {peer}, assigned id={conn_id}")

    def log_disconnect(self, conn_id: str, peer=None):
        """Log client disconnect."""
        if peer is not None:
            self.info(f"User disconnected (id={conn_id}, peer={peer})")
        else:
            self.info(f"User disconnected (id={conn_id})")

    def log_chat(self, conn_id: str, payload, recipients: int):
        """Log a relayed chat message."""
        self.debug(f"Chat from id={conn_id} to {recipients} connection(s): {payload!r}")

    def log_send_failure(self, conn_id: str, reason: Exception):
        """Log a connection dropped because it could not accept a message."""
        self.warning(f"Dropping id={conn_id}: {reason}")

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")


# Global logger instance
logger = ServerLogger()
