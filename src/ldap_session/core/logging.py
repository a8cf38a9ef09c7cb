# # Copyright (c) 2024 LDAP Session Adapter
# # SPDX-License-Identifier: MIT
# #
# # LDAP Session Adapter
# # Session identity and naming context discovery on top of ldap3

"""Logging configuration and utilities for LDAP Session Adapter."""

import logging
import sys

from ..config.models import LoggingConfig

ROOT_LOGGER_NAME = "ldap-session"


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup logging configuration.

    Args:
        config: Logging configuration
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, config.level))

    # Clear any existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(config.format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, config.level))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.file:
        try:
            file_handler = logging.FileHandler(config.file, encoding="utf-8")
            file_handler.setLevel(getattr(logging, config.level))
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            logger.info(f"Logging to file: {config.file}")
        except OSError as e:
            logger.warning(f"Failed to setup file logging: {e}")

    logger.info(f"Logging initialized at level: {config.level}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_ldap_operation(operation: str, dn: str, success: bool, details: str | None = None) -> None:
    """
    Log LDAP operation for audit purposes.

    Args:
        operation: Operation name (e.g., 'open', 'bind', 'search')
        dn: Distinguished name or endpoint involved
        success: Whether operation succeeded
        details: Additional details or error message
    """
    logger = get_logger("audit")

    status = "SUCCESS" if success else "FAILURE"
    log_msg = f"LDAP {operation.upper()}: {status} - DN: {dn}"

    if details:
        log_msg += f" - Details: {details}"

    if success:
        logger.info(log_msg)
    else:
        logger.warning(log_msg)
