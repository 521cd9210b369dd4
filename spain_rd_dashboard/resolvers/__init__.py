"""Canonical entity lookup tables and resolution."""

from spain_rd_dashboard.resolvers.entity_resolver import EntityResolver
from spain_rd_dashboard.resolvers.lookup_tables import (
    LookupTables,
    NameOverride,
    load_lookup_tables,
)

__all__ = [
    "EntityResolver",
    "LookupTables",
    "NameOverride",
    "load_lookup_tables",
]
