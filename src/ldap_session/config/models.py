# # Copyright (c) 2024 LDAP Session Adapter
# # SPDX-License-Identifier: MIT
# #
# # LDAP Session Adapter
# # Session identity and naming context discovery on top of ldap3

"""Configuration models for LDAP Session Adapter."""

from typing import Literal

from ldap3.core.exceptions import LDAPInvalidDnError
from ldap3.utils.dn import parse_dn
from pydantic import BaseModel, Field, field_validator


class SessionConfig(BaseModel):
    """Connection parameters for a single directory session."""

    host: str = Field(..., description="Directory server host name or address")
    port: int = Field(default=389, description="Directory server port")
    base_dn: str | None = Field(
        default=None, description="Base DN for searches (discovered from the server when unset)"
    )
    use_ssl: bool = Field(default=False, description="Connect with LDAP over SSL")
    connect_timeout: int | None = Field(default=30, description="Connection timeout in seconds")
    receive_timeout: int | None = Field(default=10, description="Receive timeout in seconds")

    @field_validator("host")
    @classmethod
    def validate_host(cls, v):
        """Reject URLs and empty hosts."""
        v = v.strip()
        if not v:
            raise ValueError("Host must not be empty")
        if "://" in v:
            raise ValueError("Host must be a bare host name, not a URL")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        if not 0 < v < 65536:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("base_dn")
    @classmethod
    def validate_base_dn(cls, v):
        """Validate the base DN syntax when one is supplied."""
        if v is None or v == "":
            return None
        try:
            parse_dn(v)
        except LDAPInvalidDnError as e:
            raise ValueError(f"Invalid base DN {v}: {e}") from e
        return v


class CredentialConfig(BaseModel):
    """Credential descriptor used to bind a session."""

    auth_method: Literal["anonymous", "simple", "ntlm"] = Field(
        default="anonymous", description="Authentication method"
    )
    bind_dn: str | None = Field(
        default=None,
        description="Bind DN, or DOMAIN\\user for NTLM (required for simple and ntlm auth)",
    )
    password: str | None = Field(default=None, repr=False, description="Bind password")


class SecurityConfig(BaseModel):
    """TLS settings handed to ldap3 when SSL is used."""

    validate_certificate: bool = Field(default=True, description="Validate server certificate")
    ca_cert_file: str | None = Field(default=None, description="CA certificate file path")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    file: str | None = Field(default=None, description="Log file path")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Level must be one of: {valid_levels}")
        return v.upper()


class Config(BaseModel):
    """Main configuration class for LDAP Session Adapter."""

    session: SessionConfig
    credential: CredentialConfig = Field(default_factory=CredentialConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


SAMPLE_CONFIG = {
    "session": {
        "host": "dc01.corp.example.com",
        "port": 389,
        "use_ssl": False,
        "connect_timeout": 30,
        "receive_timeout": 10,
    },
    "credential": {
        "auth_method": "simple",
        "bind_dn": "CN=svc-reader,CN=Users,DC=corp,DC=example,DC=com",
        "password": "change-me",
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}
