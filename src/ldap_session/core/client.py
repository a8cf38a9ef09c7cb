# # Copyright (c) 2024 LDAP Session Adapter
# # SPDX-License-Identifier: MIT
# #
# # LDAP Session Adapter
# # Session identity and naming context discovery on top of ldap3

"""Directory client capability and its ldap3 implementation."""

import logging
import ssl
from typing import Any, Protocol

import ldap3
from ldap3 import AUTO_BIND_NONE, BASE, NONE, Connection, Server
from ldap3.core.results import RESULT_SUCCESS
from ldap3.utils.ciDict import CaseInsensitiveDict
from pydantic import BaseModel, Field

from ..config.models import Config, CredentialConfig, SecurityConfig, SessionConfig
from .errors import DirectorySearchError
from .logging import log_ldap_operation

logger = logging.getLogger(__name__)

SearchEntry = CaseInsensitiveDict

AUTHENTICATION_METHODS = {
    "anonymous": ldap3.ANONYMOUS,
    "simple": ldap3.SIMPLE,
    "ntlm": ldap3.NTLM,
}


class BindResult(BaseModel):
    """Outcome of a bind over an open transport."""

    success: bool = Field(description="Whether the server accepted the credentials")
    result: dict[str, Any] = Field(default_factory=dict, description="ldap3 result record")

    @property
    def description(self) -> str | None:
        return self.result.get("description")


class DirectoryClient(Protocol):
    """What a session needs from a directory protocol client."""

    host: str
    port: int
    credential: CredentialConfig

    def open(self) -> Any:
        """Establish the transport and return its handle."""
        ...

    def bind(self, transport: Any) -> BindResult:
        """Authenticate over an open transport."""
        ...

    def search(
        self, base: str, attributes: list[str], scope: str = BASE
    ) -> list[SearchEntry]:
        """Run a search and return entries as case-insensitive mappings."""
        ...

    def close(self) -> None:
        """Release the transport, if any."""
        ...


class Ldap3Client:
    """
    Directory client backed by ldap3.

    Once open() has been called the connection is kept and reused by
    search(). Without an open connection each search opens, binds and
    unbinds a connection of its own.
    """

    def __init__(
        self,
        session_config: SessionConfig,
        credential: CredentialConfig | None = None,
        security_config: SecurityConfig | None = None,
    ):
        """
        Initialize ldap3 client.

        Args:
            session_config: Host, port and timeouts
            credential: Bind credential (anonymous when None)
            security_config: TLS settings used when use_ssl is set
        """
        self.session_config = session_config
        self.credential = credential or CredentialConfig()
        self.security_config = security_config or SecurityConfig()

        self._connection: Connection | None = None
        self._server = self._setup_server()

    @classmethod
    def from_config(cls, config: Config) -> "Ldap3Client":
        return cls(config.session, config.credential, config.security)

    @property
    def host(self) -> str:
        return self.session_config.host

    @property
    def port(self) -> int:
        return self.session_config.port

    def _setup_server(self) -> Server:
        """Build the ldap3 server description."""
        tls_config = None
        if self.session_config.use_ssl:
            tls_config = ldap3.Tls(
                validate=(
                    ssl.CERT_REQUIRED
                    if self.security_config.validate_certificate
                    else ssl.CERT_NONE
                ),
                ca_certs_file=self.security_config.ca_cert_file,
            )

        server = Server(
            self.session_config.host,
            port=self.session_config.port,
            use_ssl=self.session_config.use_ssl,
            tls=tls_config,
            get_info=NONE,
            connect_timeout=self.session_config.connect_timeout,
        )
        logger.debug(f"Configured LDAP server: {self.host}:{self.port}")
        return server

    def _create_connection(self) -> Connection:
        """Create an unbound connection for the configured credential."""
        method = self.credential.auth_method
        if method not in AUTHENTICATION_METHODS:
            raise ValueError(f"Unsupported authentication method: {method}")

        if method == "anonymous":
            user, password = None, None
        else:
            if not self.credential.bind_dn or not self.credential.password:
                raise ValueError(f"{method.upper()} authentication requires bind_dn and password")
            user, password = self.credential.bind_dn, self.credential.password

        return Connection(
            self._server,
            user=user,
            password=password,
            authentication=AUTHENTICATION_METHODS[method],
            auto_bind=AUTO_BIND_NONE,
            receive_timeout=self.session_config.receive_timeout,
            raise_exceptions=False,
        )

    def open(self) -> Connection:
        """
        Open a connection and keep it for later operations.

        Returns:
            Connection: The open ldap3 connection; its socket is the transport

        Raises:
            LDAPException: If the socket cannot be opened
        """
        connection = self._create_connection()
        connection.open()
        self._connection = connection
        log_ldap_operation("open", f"{self.host}:{self.port}", True)
        return connection

    def bind(self, transport: Connection) -> BindResult:
        """
        Bind over an open connection.

        Args:
            transport: Connection returned by open()

        Returns:
            BindResult with the server's result record
        """
        success = bool(transport.bind())
        result = dict(transport.result or {})
        log_ldap_operation(
            "bind",
            self.credential.bind_dn or "<anonymous>",
            success,
            None if success else result.get("description"),
        )
        return BindResult(success=success, result=result)

    def search(
        self, base: str, attributes: list[str], scope: str = BASE
    ) -> list[SearchEntry]:
        """
        Search with an always-true filter.

        Args:
            base: Search base DN ("" for the root DSE)
            attributes: Attributes to retrieve
            scope: BASE, LEVEL or SUBTREE

        Returns:
            Entries as case-insensitive mappings of attribute to value list

        Raises:
            DirectorySearchError: If the server returns a non-success result
            LDAPException: On transport errors
        """
        if self._connection is not None and not self._connection.closed:
            return self._search(self._connection, base, attributes, scope)

        connection = self._create_connection()
        try:
            connection.open()
            connection.bind()
            return self._search(connection, base, attributes, scope)
        finally:
            connection.unbind()

    def _search(
        self, connection: Connection, base: str, attributes: list[str], scope: str
    ) -> list[SearchEntry]:
        logger.debug(f"Searching: base={base!r}, scope={scope}, attributes={attributes}")

        connection.search(
            search_base=base,
            search_filter="(objectClass=*)",
            search_scope=scope,
            attributes=attributes,
        )
        result = dict(connection.result or {})

        if result.get("result") != RESULT_SUCCESS:
            log_ldap_operation("search", base, False, result.get("description"))
            raise DirectorySearchError(f"Search failed: {result.get('description')}", result)

        entries = [
            self._process_entry(item)
            for item in connection.response or []
            if item.get("type") == "searchResEntry"
        ]
        logger.debug(f"Search returned {len(entries)} entries")
        return entries

    def _process_entry(self, item: dict[str, Any]) -> SearchEntry:
        """Normalise an ldap3 response item to attribute -> list of values."""
        entry = CaseInsensitiveDict()
        for name, value in (item.get("attributes") or {}).items():
            if isinstance(value, (list, tuple)):
                entry[name] = list(value)
            else:
                entry[name] = [value]
        return entry

    def close(self) -> None:
        """Unbind the kept connection."""
        if self._connection is None:
            return
        try:
            self._connection.unbind()
            logger.info(f"Disconnected from LDAP server {self.host}:{self.port}")
        except Exception as e:
            logger.warning(f"Error during disconnect: {e}")
        finally:
            self._connection = None
