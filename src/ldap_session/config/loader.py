# # Copyright (c) 2024 LDAP Session Adapter
# # SPDX-License-Identifier: MIT
# #
# # LDAP Session Adapter
# # Session identity and naming context discovery on top of ldap3

"""Configuration loader for LDAP Session Adapter."""

import json
import logging
import os
from pathlib import Path

from .models import SAMPLE_CONFIG, Config

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LDAP_SESSION_CONFIG"


def load_config(config_path: str | None = None) -> Config:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to configuration file. If None, uses LDAP_SESSION_CONFIG
                    environment variable.

    Returns:
        Config: Loaded and validated configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
        json.JSONDecodeError: If config file is not valid JSON
    """
    if config_path is None:
        config_path = os.getenv(CONFIG_ENV_VAR)
        if not config_path:
            raise ValueError(
                "No configuration file specified. Either provide config_path or "
                f"set {CONFIG_ENV_VAR} environment variable."
            )

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    try:
        with open(config_file, encoding="utf-8") as f:
            config_data = json.load(f)

        config = Config(**config_data)
        logger.info("Configuration loaded successfully")

        _log_config_summary(config)

        return config

    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in configuration file: {e}")
        raise
    except Exception as e:
        logger.error(f"Error loading configuration: {e}")
        raise


def _log_config_summary(config: Config) -> None:
    """Log configuration summary without the password."""
    logger.debug(f"Directory Host: {config.session.host}:{config.session.port}")
    logger.debug(f"Base DN: {config.session.base_dn or '(discover)'}")
    logger.debug(f"Auth Method: {config.credential.auth_method}")
    logger.debug(f"SSL Enabled: {config.session.use_ssl}")
    logger.debug(f"Logging Level: {config.logging.level}")


def validate_config(config: Config) -> None:
    """
    Perform cross-field validation on configuration.

    Args:
        config: Configuration to validate

    Raises:
        ValueError: If configuration is invalid
    """
    credential = config.credential

    if credential.auth_method in ("simple", "ntlm"):
        if not credential.bind_dn or not credential.password:
            raise ValueError(
                f"{credential.auth_method.upper()} authentication requires both bind_dn and password"
            )
        if credential.auth_method == "ntlm" and "\\" not in credential.bind_dn:
            raise ValueError("NTLM authentication requires bind_dn in DOMAIN\\user form")
    elif credential.bind_dn or credential.password:
        logger.warning(
            "Anonymous authentication specified but bind_dn/password provided. "
            "They will be ignored."
        )

    session = config.session
    if session.use_ssl and session.port == 389:
        logger.warning("SSL enabled but port is 389; LDAPS usually listens on 636")
    elif not session.use_ssl and session.port in (636, 3269):
        logger.warning(f"Port {session.port} is an LDAPS port but SSL is not enabled")

    if not session.base_dn:
        logger.info("No base DN configured; it will be discovered from naming contexts")

    logger.info("Configuration validation completed")


def create_sample_config(output_path: str) -> None:
    """
    Create a sample configuration file.

    Args:
        output_path: Path where to create the sample config
    """
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(SAMPLE_CONFIG, f, indent=2, ensure_ascii=False)

    logger.info(f"Sample configuration created at: {output_path}")
