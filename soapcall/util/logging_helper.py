"""
Logging utilities for the SOAP client.

Provides centralized logging configuration and the pluggable communication
logger used to dump outgoing requests and incoming replies.
"""

import logging
import sys
from collections.abc import Mapping
from typing import Optional, Protocol


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ or module name)
        level: Optional log level override

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if level is not None:
        logger.setLevel(level)

    return logger


def setup_logging(level: int = logging.INFO, debug_modules: Optional[list[str]] = None) -> None:
    """
    Configure root logging for the application.

    Args:
        level: Default log level for the application
        debug_modules: List of module names to set to DEBUG level
    """
    formatter = logging.Formatter(
        fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    if debug_modules:
        for module in debug_modules:
            logging.getLogger(module).setLevel(logging.DEBUG)


def concat_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Flatten HTTP headers into a plain dict, joining repeated fields with ', '."""
    flattened: dict[str, str] = {}
    multi_items = getattr(headers, "multi_items", None)
    items = multi_items() if multi_items is not None else headers.items()
    for key, value in items:
        if key in flattened:
            flattened[key] = f"{flattened[key]}, {value}"
        else:
            flattened[key] = value
    return flattened


class CommunicationLogger(Protocol):
    """Receives the raw bytes of every request sent and reply received."""

    def log_request(self, operation: str, headers: Mapping[str, str], body: bytes) -> None: ...

    def log_response(self, operation: str, headers: Mapping[str, str], body: bytes) -> None: ...


class LoggingAdapter:
    """CommunicationLogger that writes dumps to a stdlib logger."""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.logger = logger or get_logger(COMMUNICATION_LOGGER)
        self.level = level

    def log_request(self, operation: str, headers: Mapping[str, str], body: bytes) -> None:
        self.logger.log(
            self.level,
            "SOAP request operation=%s headers=%s body=%s",
            operation,
            concat_headers(headers),
            body.decode("utf-8", errors="replace"),
        )

    def log_response(self, operation: str, headers: Mapping[str, str], body: bytes) -> None:
        self.logger.log(
            self.level,
            "SOAP response operation=%s headers=%s body=%s",
            operation,
            concat_headers(headers),
            body.decode("utf-8", errors="replace"),
        )


# Module-level loggers for each component
CLIENT_LOGGER = 'soapcall.soap.client'
ENCODER_LOGGER = 'soapcall.soap.encoder'
BINDING_LOGGER = 'soapcall.wsdl.binding'
WSDL_LOGGER = 'soapcall.wsdl.parser'
COMMUNICATION_LOGGER = 'soapcall.communication'
