# # Copyright (c) 2024 LDAP Session Adapter
# # SPDX-License-Identifier: MIT
# #
# # LDAP Session Adapter
# # Session identity and naming context discovery on top of ldap3

"""Exceptions raised by directory sessions and clients."""

from typing import Any


class SessionError(Exception):
    """Base class for session adapter errors."""


class AlreadyOpeningError(SessionError):
    """Raised when open is called on a session that is opening or already open."""


class SessionOpenFailedError(SessionError):
    """Raised when open is called again after a failed open."""


class DirectoryError(SessionError):
    """Raised when the directory client cannot complete an operation."""


class DirectorySearchError(DirectoryError):
    """Raised when a search returns a non-success result."""

    def __init__(self, message: str, result: dict[str, Any] | None = None):
        super().__init__(message)
        self.result = result or {}
