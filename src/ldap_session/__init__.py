# # Copyright (c) 2024 LDAP Session Adapter
# # SPDX-License-Identifier: MIT
# #
# # LDAP Session Adapter
# # Session identity and naming context discovery on top of ldap3

"""LDAP Session Adapter - kept-alive ldap3 sessions with base DN and schema DN discovery."""

from .core.errors import (
    AlreadyOpeningError,
    DirectoryError,
    DirectorySearchError,
    SessionError,
    SessionOpenFailedError,
)
from .core.session import DirectorySession, SessionState

__version__ = "0.1.0"
__description__ = "Session identity accessors and naming context discovery for ldap3 clients"

__all__ = [
    "AlreadyOpeningError",
    "DirectoryError",
    "DirectorySearchError",
    "DirectorySession",
    "SessionError",
    "SessionOpenFailedError",
    "SessionState",
]
