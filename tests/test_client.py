# # Copyright (c) 2024 LDAP Session Adapter
# # SPDX-License-Identifier: MIT
# #
# # LDAP Session Adapter
# # Session identity and naming context discovery on top of ldap3

"""Tests for the ldap3 directory client."""

from unittest.mock import Mock, patch

import pytest
from ldap3.core.exceptions import LDAPSocketOpenError

from ldap_session.config.models import Config, CredentialConfig, SecurityConfig, SessionConfig
from ldap_session.core.client import BindResult, Ldap3Client
from ldap_session.core.errors import DirectorySearchError


def search_response(*attribute_maps):
    return [{"type": "searchResEntry", "dn": "", "attributes": attrs} for attrs in attribute_maps]


class TestLdap3ClientInit:
    """Test client initialization."""

    def test_client_initialization(self):
        """Test basic client initialization."""
        client = Ldap3Client(SessionConfig(host="dc01.test.com", port=3268))

        assert client.host == "dc01.test.com"
        assert client.port == 3268
        assert client.credential.auth_method == "anonymous"
        assert client._connection is None

    @patch("ldap_session.core.client.Server")
    def test_server_setup_without_tls(self, mock_server):
        """Test server setup without TLS."""
        Ldap3Client(SessionConfig(host="dc01.test.com", connect_timeout=5))

        mock_server.assert_called_once()
        call_args = mock_server.call_args
        assert call_args[0][0] == "dc01.test.com"
        assert call_args[1]["port"] == 389
        assert call_args[1]["tls"] is None
        assert call_args[1]["connect_timeout"] == 5

    @patch("ldap_session.core.client.Server")
    @patch("ldap_session.core.client.ldap3.Tls")
    def test_server_setup_with_tls(self, mock_tls, mock_server):
        """Test server setup with SSL enabled."""
        Ldap3Client(
            SessionConfig(host="dc01.test.com", port=636, use_ssl=True),
            security_config=SecurityConfig(validate_certificate=True, ca_cert_file="/ca.pem"),
        )

        mock_tls.assert_called_once()
        assert mock_tls.call_args[1]["ca_certs_file"] == "/ca.pem"
        assert mock_server.call_args[1]["use_ssl"] is True
        assert mock_server.call_args[1]["tls"] is mock_tls.return_value

    @patch("ldap_session.core.client.Server")
    def test_from_config(self, mock_server):
        """Test building from the aggregate config."""
        config = Config(
            session={"host": "dc01"},
            credential={"auth_method": "simple", "bind_dn": "cn=a", "password": "b"},
        )
        client = Ldap3Client.from_config(config)

        assert client.credential.bind_dn == "cn=a"
        assert client.session_config.host == "dc01"


class TestLdap3ClientAuth:
    """Test connection creation per authentication method."""

    def setup_method(self):
        """Set up test fixtures."""
        self.session_config = SessionConfig(host="dc01.test.com", receive_timeout=7)

    @patch("ldap_session.core.client.Connection")
    def test_anonymous_connection(self, mock_connection):
        """Test creating anonymous connection."""
        Ldap3Client(self.session_config)._create_connection()

        call_kwargs = mock_connection.call_args[1]
        assert call_kwargs["authentication"] == "ANONYMOUS"
        assert call_kwargs["user"] is None
        assert call_kwargs["auto_bind"] == "NONE"
        assert call_kwargs["receive_timeout"] == 7

    @patch("ldap_session.core.client.Connection")
    def test_simple_connection(self, mock_connection):
        """Test creating simple bind connection."""
        credential = CredentialConfig(
            auth_method="simple", bind_dn="cn=admin,dc=test,dc=com", password="secret"
        )
        Ldap3Client(self.session_config, credential)._create_connection()

        call_kwargs = mock_connection.call_args[1]
        assert call_kwargs["user"] == "cn=admin,dc=test,dc=com"
        assert call_kwargs["password"] == "secret"
        assert call_kwargs["authentication"] == "SIMPLE"

    @patch("ldap_session.core.client.Connection")
    def test_ntlm_connection(self, mock_connection):
        """Test creating NTLM connection."""
        credential = CredentialConfig(auth_method="ntlm", bind_dn="CORP\\svc", password="secret")
        Ldap3Client(self.session_config, credential)._create_connection()

        assert mock_connection.call_args[1]["authentication"] == "NTLM"

    def test_simple_connection_missing_credentials(self):
        """Test simple connection without credentials raises error."""
        credential = CredentialConfig(auth_method="simple")

        with pytest.raises(ValueError, match="SIMPLE authentication requires"):
            Ldap3Client(self.session_config, credential)._create_connection()


class TestLdap3ClientOpenBind:
    """Test open and bind."""

    @patch("ldap_session.core.client.Connection")
    def test_open_keeps_connection(self, mock_connection_class):
        """Test open returns and keeps the connection."""
        mock_connection = Mock()
        mock_connection_class.return_value = mock_connection
        client = Ldap3Client(SessionConfig(host="dc01"))

        transport = client.open()

        assert transport is mock_connection
        assert client._connection is mock_connection
        mock_connection.open.assert_called_once()
        mock_connection.bind.assert_not_called()

    @patch("ldap_session.core.client.Connection")
    def test_open_failure(self, mock_connection_class):
        """Test socket errors propagate and nothing is kept."""
        mock_connection_class.return_value.open.side_effect = LDAPSocketOpenError("refused")
        client = Ldap3Client(SessionConfig(host="dc01"))

        with pytest.raises(LDAPSocketOpenError):
            client.open()

        assert client._connection is None

    def test_bind_success(self):
        """Test bind result is captured."""
        transport = Mock()
        transport.bind.return_value = True
        transport.result = {"result": 0, "description": "success"}

        result = Ldap3Client(SessionConfig(host="dc01")).bind(transport)

        assert isinstance(result, BindResult)
        assert result.success is True
        assert result.description == "success"

    def test_bind_failure(self):
        """Test failed bind is reported, not raised."""
        transport = Mock()
        transport.bind.return_value = False
        transport.result = {"result": 49, "description": "invalidCredentials"}

        result = Ldap3Client(SessionConfig(host="dc01")).bind(transport)

        assert result.success is False
        assert result.result["result"] == 49


class TestLdap3ClientSearch:
    """Test search and entry normalisation."""

    def _connection(self, response, result=None):
        connection = Mock()
        connection.closed = False
        connection.search.return_value = True
        connection.result = result or {"result": 0, "description": "success"}
        connection.response = response
        return connection

    def test_search_uses_kept_connection(self):
        """Test searches reuse the opened connection."""
        client = Ldap3Client(SessionConfig(host="dc01"))
        connection = self._connection(
            search_response({"namingContexts": ["DC=corp,DC=com", "CN=Configuration,DC=corp,DC=com"]})
        )
        client._connection = connection

        entries = client.search("", ["namingContexts"])

        assert entries[0]["namingcontexts"] == ["DC=corp,DC=com", "CN=Configuration,DC=corp,DC=com"]
        call_kwargs = connection.search.call_args[1]
        assert call_kwargs["search_base"] == ""
        assert call_kwargs["search_filter"] == "(objectClass=*)"
        assert call_kwargs["search_scope"] == "BASE"
        assert call_kwargs["attributes"] == ["namingContexts"]
        connection.unbind.assert_not_called()

    def test_scalar_values_normalised(self):
        """Test single values are wrapped in lists and references skipped."""
        client = Ldap3Client(SessionConfig(host="dc01"))
        response = search_response({"schemaNamingContext": "CN=Schema,DC=corp,DC=com"})
        response.append({"type": "searchResRef", "uri": ["ldap://other/"]})
        client._connection = self._connection(response)

        entries = client.search("", ["schemaNamingContext"])

        assert len(entries) == 1
        assert entries[0]["SCHEMANAMINGCONTEXT"] == ["CN=Schema,DC=corp,DC=com"]

    @patch("ldap_session.core.client.Connection")
    def test_search_without_open_uses_transient_connection(self, mock_connection_class):
        """Test a search before open binds and unbinds its own connection."""
        connection = self._connection(search_response({"namingContexts": ["DC=a,DC=b"]}))
        mock_connection_class.return_value = connection
        client = Ldap3Client(SessionConfig(host="dc01"))

        entries = client.search("", ["namingContexts"])

        assert entries[0]["namingContexts"] == ["DC=a,DC=b"]
        connection.open.assert_called_once()
        connection.bind.assert_called_once()
        connection.unbind.assert_called_once()
        assert client._connection is None

    def test_search_failure_raises(self):
        """Test non-success results raise DirectorySearchError."""
        client = Ldap3Client(SessionConfig(host="dc01"))
        client._connection = self._connection(
            [], result={"result": 32, "description": "noSuchObject"}
        )

        with pytest.raises(DirectorySearchError, match="noSuchObject") as exc_info:
            client.search("DC=missing,DC=com", ["cn"])

        assert exc_info.value.result["result"] == 32

    def test_empty_success(self):
        """Test a successful search with no entries."""
        client = Ldap3Client(SessionConfig(host="dc01"))
        client._connection = self._connection([])

        assert client.search("", ["schemaNamingContext"]) == []


class TestLdap3ClientClose:
    """Test close."""

    def test_close_unbinds(self):
        """Test close unbinds and forgets the connection."""
        client = Ldap3Client(SessionConfig(host="dc01"))
        connection = Mock()
        client._connection = connection

        client.close()

        connection.unbind.assert_called_once()
        assert client._connection is None

    def test_close_error_logged(self, caplog):
        """Test unbind errors are logged."""
        client = Ldap3Client(SessionConfig(host="dc01"))
        connection = Mock()
        connection.unbind.side_effect = Exception("socket closed")
        client._connection = connection

        client.close()

        assert "Error during disconnect" in caplog.text
        assert client._connection is None

    def test_close_without_connection(self):
        """Test close is a no-op before open."""
        Ldap3Client(SessionConfig(host="dc01")).close()
