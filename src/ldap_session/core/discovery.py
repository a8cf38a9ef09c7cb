# # Copyright (c) 2024 LDAP Session Adapter
# # SPDX-License-Identifier: MIT
# #
# # LDAP Session Adapter
# # Session identity and naming context discovery on top of ldap3

"""Base DN and schema DN selection heuristics."""

import re
from collections.abc import Mapping, Sequence
from typing import Any

# One or more DC= components, optionally comma separated
BASE_DN_PATTERN = re.compile(r"([Dd][Cc]=[A-Za-z0-9-]+,?)+")

# Active Directory special naming contexts
EXCLUDED_CONTEXTS = re.compile(r"(Configuration)|(Schema)|(ForestDnsZones)")

NAMING_CONTEXTS_ATTRIBUTE = "namingContexts"
SCHEMA_NAMING_CONTEXT_ATTRIBUTE = "schemaNamingContext"


def candidate_base_dns(naming_contexts: Sequence[str]) -> list[str]:
    """
    Filter naming contexts down to those that look like a domain base DN.

    Args:
        naming_contexts: Naming contexts in server order

    Returns:
        Matching contexts, original order preserved
    """
    return [
        context
        for context in naming_contexts
        if BASE_DN_PATTERN.fullmatch(context) and not EXCLUDED_CONTEXTS.search(context)
    ]


def select_base_dn(naming_contexts: Sequence[str] | None) -> str | None:
    """
    Pick the base DN from a server's naming contexts.

    The first context made only of DC= components that is not one of the
    Configuration, Schema or ForestDnsZones partitions wins.

    Args:
        naming_contexts: Naming contexts in server order

    Returns:
        The base DN, or None if no context qualifies
    """
    if not naming_contexts:
        return None

    candidates = candidate_base_dns(naming_contexts)
    return candidates[0] if candidates else None


def first_attribute_value(entries: Sequence[Mapping[str, Any]], attribute: str) -> str | None:
    """Return the first value of attribute in the first entry, if any."""
    if not entries:
        return None

    values = entries[0].get(attribute)
    if not values:
        return None
    if isinstance(values, (list, tuple)):
        return values[0]
    return values
