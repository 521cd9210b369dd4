"""
Entity resolution: map a source name or code to a canonical country or region.

Rules are applied in a fixed order and the first hit wins:

1. explicit overrides (e.g. any name mentioning Madrid is the Community of Madrid)
2. exact match of the normalized name against the alias table
3. exact match of the code against the cross-code table (ISO2/ISO3/Eurostat/NUTS),
   then a parenthetical code embedded in the name, then NUTS3 -> NUTS2 parent
4. whole-word containment of a known alias inside the name

Within each rule the kind hinted by the dataset is searched before the other
kind, and entries are tried in declaration order.
"""

import logging
import re
from typing import Dict, Iterable, Optional, Tuple, Union

from spain_rd_dashboard.cleaners.text_cleaners import (
    extract_region_code,
    normalize,
    strip_region_code,
)
from spain_rd_dashboard.models import COUNTRY, ENTITY_KINDS, REGION, CanonicalEntity
from spain_rd_dashboard.resolvers.lookup_tables import LookupTables

logger = logging.getLogger(__name__)

NUTS3_PATTERN = re.compile(r"^[A-Z]{2}[0-9][0-9A-Z]{2}$")


class EntityResolver:
    """
    Resolve raw names and codes against immutable lookup tables.

    Resolution never raises: unknown input returns ``None`` and callers omit
    the entity from their output. Results are memoized per (input, hint),
    which is safe because the tables are immutable.

    Args:
        tables: Loaded lookup tables.
        min_contains_length: Shortest alias considered by the containment rule.

    Example:
        >>> resolver = EntityResolver(tables)
        >>> resolver.resolve("Comunidad (ES51) Cataluña", "region").code
        'ES51'
    """

    def __init__(self, tables: LookupTables, min_contains_length: int = 4):
        self.tables = tables
        self.min_contains_length = min_contains_length
        self._cache: Dict[Tuple[str, Optional[str]], Optional[CanonicalEntity]] = {}

    @staticmethod
    def _kinds(dataset_hint: Optional[str]) -> Tuple[str, ...]:
        if dataset_hint in ENTITY_KINDS:
            return (dataset_hint,) + tuple(k for k in ENTITY_KINDS if k != dataset_hint)
        return ENTITY_KINDS

    def resolve(
        self, name_or_code: Optional[str], dataset_hint: Optional[str] = None
    ) -> Optional[CanonicalEntity]:
        """
        Resolve a name or code to its canonical entity.

        Args:
            name_or_code: Raw value from a dataset column.
            dataset_hint: Entity class the dataset carries ('country' or 'region').

        Returns:
            The matching CanonicalEntity, or None when no rule matches.
        """
        raw = str(name_or_code).strip() if name_or_code is not None else ""
        if not raw:
            return None

        cache_key = (raw, dataset_hint)
        if cache_key in self._cache:
            return self._cache[cache_key]

        entity = self._resolve(raw, dataset_hint)
        if entity is None:
            logger.debug("No entity matches %r (hint=%s)", raw, dataset_hint)
        self._cache[cache_key] = entity
        return entity

    def _resolve(self, raw: str, dataset_hint: Optional[str]) -> Optional[CanonicalEntity]:
        kinds = self._kinds(dataset_hint)
        key = normalize(raw)
        stripped_key = normalize(strip_region_code(raw))

        for rule in self.tables.overrides:
            if dataset_hint not in (None, rule.kind):
                continue
            if rule.contains and rule.contains in key:
                entity = self.tables.by_code(rule.code, rule.kind)
                if entity is not None:
                    return entity

        for kind in kinds:
            entity = self.tables.by_alias(key, kind) or self.tables.by_alias(stripped_key, kind)
            if entity is not None:
                return entity

        entity = self._match_code(raw, kinds)
        if entity is not None:
            return entity

        embedded = extract_region_code(raw)
        if embedded:
            entity = self._match_code(embedded, kinds)
            if entity is not None:
                return entity

        return self._match_contained(stripped_key, kinds)

    def _match_code(self, code: str, kinds: Iterable[str]) -> Optional[CanonicalEntity]:
        upper = code.upper()
        for kind in kinds:
            entity = self.tables.by_code(upper, kind)
            if entity is not None:
                return entity
        if NUTS3_PATTERN.match(upper):
            # Provinces roll up to their autonomous community
            return self.tables.by_code(upper[:4], REGION)
        return None

    def _match_contained(self, probe: str, kinds: Iterable[str]) -> Optional[CanonicalEntity]:
        if len(probe) < self.min_contains_length:
            return None
        for kind in kinds:
            for alias, entity in self.tables.aliases(kind):
                if len(alias) < self.min_contains_length:
                    continue
                if re.search(r"(?<!\w)" + re.escape(alias) + r"(?!\w)", probe):
                    return entity
        return None

    def is_supranational(self, entity_or_code: Union[CanonicalEntity, str, None]) -> bool:
        """True for EU / Euro Area aggregates, by entity flag or code allowlist."""
        if entity_or_code is None:
            return False
        if isinstance(entity_or_code, CanonicalEntity):
            return entity_or_code.supranational or self.tables.is_supranational_code(
                entity_or_code.code
            )
        if self.tables.is_supranational_code(entity_or_code):
            return True
        entity = self.tables.by_code(entity_or_code, COUNTRY)
        return bool(entity and entity.supranational)

    def lookup(self, code: str, kind: Optional[str] = None) -> Optional[CanonicalEntity]:
        """Fetch an entity by canonical or alternative code only."""
        return self._match_code(code, self._kinds(kind)) if code else None

    def display_name(self, code_or_name: str, language: str = "es", kind: Optional[str] = None) -> str:
        """
        Localized display name, falling back to the input when unresolved.

        Example:
            >>> resolver.display_name("Catalunya", "en")
            'Catalonia'
        """
        entity = self.resolve(code_or_name, kind)
        return entity.name(language) if entity else code_or_name

    def flag_for(self, code_or_name: str, kind: Optional[str] = None) -> str:
        """Flag asset reference, or an empty string when unresolved."""
        entity = self.resolve(code_or_name, kind)
        return entity.flag if entity else ""
