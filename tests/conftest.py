# # Copyright (c) 2024 LDAP Session Adapter
# # SPDX-License-Identifier: MIT
# #
# # LDAP Session Adapter
# # Session identity and naming context discovery on top of ldap3

"""Shared test fixtures."""

import logging
from unittest.mock import Mock

import pytest
from ldap3.utils.ciDict import CaseInsensitiveDict

from ldap_session.core.client import BindResult

NAMING_CONTEXTS = [
    "DC=corp,DC=example,DC=com",
    "CN=Configuration,DC=corp,DC=example,DC=com",
    "CN=Schema,CN=Configuration,DC=corp,DC=example,DC=com",
]
SCHEMA_DN = "CN=Schema,CN=Configuration,DC=corp,DC=example,DC=com"


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging between tests."""
    yield
    logger = logging.getLogger("ldap-session")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


def make_entry(**attributes) -> CaseInsensitiveDict:
    entry = CaseInsensitiveDict()
    for name, values in attributes.items():
        entry[name] = values
    return entry


@pytest.fixture
def mock_client():
    """Directory client double with a root DSE."""
    client = Mock()
    client.host = "dc01.corp.example.com"
    client.port = 389
    client.open.return_value = Mock(socket=Mock(name="socket"))
    client.bind.return_value = BindResult(success=True, result={"result": 0})

    def search(base, attributes, scope="BASE"):
        attribute = attributes[0]
        if attribute == "namingContexts":
            return [make_entry(namingContexts=list(NAMING_CONTEXTS))]
        if attribute == "schemaNamingContext":
            return [make_entry(schemaNamingContext=[SCHEMA_DN])]
        return []

    client.search.side_effect = search
    return client


@pytest.fixture
def session_logger():
    """Logger injected into sessions under test."""
    logger = logging.getLogger("test-session")
    logger.setLevel(logging.DEBUG)
    return logger
