# # Copyright (c) 2024 LDAP Session Adapter
# # SPDX-License-Identifier: MIT
# #
# # LDAP Session Adapter
# # Session identity and naming context discovery on top of ldap3

"""Directory session adapter with naming context discovery."""

import enum
import logging
from threading import Lock
from typing import Any

from ldap3 import BASE
from ldap3.core.exceptions import LDAPException

from ..config.loader import validate_config
from ..config.models import Config, CredentialConfig
from . import discovery
from .client import BindResult, DirectoryClient, Ldap3Client, SearchEntry
from .errors import AlreadyOpeningError, DirectoryError, SessionOpenFailedError
from .logging import get_logger, setup_logging

_UNSET: Any = object()


class SessionState(enum.Enum):
    """Lifecycle of a session's transport."""

    UNOPENED = "unopened"
    OPENING = "opening"
    OPEN = "open"
    FAILED = "failed"


class DirectorySession:
    """
    A single directory connection with identity accessors and discovery.

    The session holds a directory client rather than extending one. Once
    opened, the client's connection stays alive so later searches reuse it.

    Base DN, schema DN and naming contexts are looked up at most once; a
    failed lookup is logged and remembered as None.
    """

    def __init__(
        self,
        client: DirectoryClient,
        base_dn: str | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize directory session.

        Args:
            client: Directory client used for open, bind and search
            base_dn: Base DN to use instead of discovering one
            logger: Logger for discovery messages (defaults to the session logger)
        """
        self.client = client
        self.logger = logger or get_logger("session")

        self._base_dn: str | None = base_dn or _UNSET
        self._schema_dn: str | None = _UNSET
        self._naming_contexts: list[str] | None = _UNSET

        self._state = SessionState.UNOPENED
        self._state_lock = Lock()
        self._transport: Any = None
        self._socket: Any = None
        self._bind_result: BindResult | None = None

    @classmethod
    def from_config(
        cls, config: Config, logger: logging.Logger | None = None
    ) -> "DirectorySession":
        """
        Build a session over an ldap3 client described by config.

        Validates the configuration and applies its logging settings first.

        Raises:
            ValueError: If the configuration is inconsistent
        """
        validate_config(config)
        setup_logging(config.logging)
        return cls(Ldap3Client.from_config(config), config.session.base_dn, logger)

    @classmethod
    def open_session(
        cls,
        target: DirectoryClient | Config,
        base_dn: str | None = None,
        logger: logging.Logger | None = None,
    ) -> "DirectorySession":
        """
        Construct a session and open it in one call.

        Args:
            target: A directory client, or a Config to build an ldap3 client from
            base_dn: Base DN override
            logger: Logger for discovery messages

        Returns:
            The opened session
        """
        if isinstance(target, Config):
            session = cls.from_config(target, logger)
            if base_dn:
                session._base_dn = base_dn
        else:
            session = cls(target, base_dn, logger)
        return session.open()

    @property
    def peer_host(self) -> str:
        """Remote host the session is connected (or will connect) to."""
        return self.client.host

    @property
    def peer_port(self) -> int:
        """Remote port the session is connected (or will connect) to."""
        return self.client.port

    @property
    def peer_info(self) -> str:
        return f"{self.peer_host}:{self.peer_port}"

    @property
    def credential(self) -> CredentialConfig:
        return self.client.credential

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def transport(self) -> Any:
        """Transport handle from the client, None until open() succeeds."""
        return self._transport

    @property
    def socket(self) -> Any:
        """Socket of the open transport, None until open() succeeds."""
        return self._socket

    @property
    def bind_result(self) -> BindResult | None:
        return self._bind_result

    def open(self) -> "DirectorySession":
        """
        Open the transport and bind, keeping the connection for later use.

        Returns:
            The session itself

        Raises:
            AlreadyOpeningError: If an open is in progress or has completed
            SessionOpenFailedError: If a previous open failed
            LDAPException: If the client cannot open or bind
        """
        with self._state_lock:
            if self._state in (SessionState.OPENING, SessionState.OPEN):
                raise AlreadyOpeningError("Open already in progress")
            if self._state is SessionState.FAILED:
                raise SessionOpenFailedError(
                    f"{self.peer_info} A previous open failed; create a new session"
                )
            self._state = SessionState.OPENING

        try:
            transport = self.client.open()
            bind_result = self.client.bind(transport)
        except Exception:
            self._state = SessionState.FAILED
            self.client.close()
            self.logger.error(f"{self.peer_info} Failed to open session")
            raise

        self._transport = transport
        self._socket = getattr(transport, "socket", None)
        self._bind_result = bind_result
        self._state = SessionState.OPEN

        if bind_result.success:
            self.logger.debug(f"{self.peer_info} Session opened and bound")
        else:
            self.logger.warning(
                f"{self.peer_info} Session opened but bind failed: {bind_result.description}"
            )
        return self

    def search(
        self, base: str, attributes: list[str], scope: str = BASE
    ) -> list[SearchEntry]:
        """Search through the session's client."""
        return self.client.search(base, attributes, scope)

    def naming_contexts(self) -> list[str] | None:
        """
        Naming contexts advertised by the server's root DSE.

        Returns:
            The naming contexts, or None if the root DSE could not be read
        """
        if self._naming_contexts is _UNSET:
            self._naming_contexts = self._fetch_naming_contexts()
        return self._naming_contexts

    def _fetch_naming_contexts(self) -> list[str] | None:
        try:
            entries = self.search("", [discovery.NAMING_CONTEXTS_ATTRIBUTE], BASE)
        except (LDAPException, DirectoryError) as e:
            self.logger.warning(f"{self.peer_info} Could not read naming contexts: {e}")
            return None

        if not entries:
            return None
        contexts = entries[0].get(discovery.NAMING_CONTEXTS_ATTRIBUTE)
        return list(contexts) if contexts is not None else None

    def base_dn(self) -> str | None:
        """
        Base DN supplied at construction, or discovered from naming contexts.

        Returns:
            The base DN, or None if it cannot be determined
        """
        if self._base_dn is _UNSET:
            self._base_dn = self._discover_base_dn()
        return self._base_dn

    def _discover_base_dn(self) -> str | None:
        naming_contexts = self.naming_contexts()
        if not naming_contexts:
            self.logger.error(
                f"{self.peer_info} Base DN cannot be determined, no naming contexts available"
            )
            return None

        base_dn = discovery.select_base_dn(naming_contexts)
        if base_dn is None:
            self.logger.error(
                f"{self.peer_info} A base DN matching the expected format could not be found!"
            )
            return None

        self.logger.debug(f"{self.peer_info} Discovered base DN: {base_dn}")
        return base_dn

    def schema_dn(self) -> str | None:
        """
        Schema naming context from the root DSE.

        Returns:
            The schema DN, or None if the server does not advertise one
        """
        if self._schema_dn is _UNSET:
            self._schema_dn = self._discover_schema_dn()
        return self._schema_dn

    def _discover_schema_dn(self) -> str | None:
        try:
            entries = self.search("", [discovery.SCHEMA_NAMING_CONTEXT_ATTRIBUTE], BASE)
        except (LDAPException, DirectoryError) as e:
            self.logger.warning(f"{self.peer_info} Could not discover Schema DN: {e}")
            return None

        schema_dn = discovery.first_attribute_value(
            entries, discovery.SCHEMA_NAMING_CONTEXT_ATTRIBUTE
        )
        if schema_dn:
            self.logger.info(f"{self.peer_info} Discovered Schema DN: {schema_dn}")
            return schema_dn

        self.logger.warning(f"{self.peer_info} Could not discover Schema DN")
        return None

    def close(self) -> None:
        """Release the client's connection."""
        self.client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def __repr__(self) -> str:
        return f"<DirectorySession {self.peer_info} state={self._state.value}>"
