"""
Static lookup tables for entity resolution.

The tables (alias table, cross-code table, flag references) are versioned data
kept in ``config/lookups.yaml``. They are loaded once and handed to the
resolver explicitly, so resolution stays a pure function of (input, tables).
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

import yaml

from spain_rd_dashboard.cleaners.text_cleaners import normalize
from spain_rd_dashboard.models import COUNTRY, ENTITY_KINDS, REGION, CanonicalEntity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NameOverride:
    """Rule applied before the generic tables: normalized substring -> entity code."""

    contains: str
    code: str
    kind: str


def _entity_from_dict(entry: Dict[str, Any], kind: str, parent: Optional[str] = None) -> CanonicalEntity:
    return CanonicalEntity(
        code=str(entry["code"]).upper(),
        kind=kind,
        name_es=entry["es"],
        name_en=entry["en"],
        flag=entry.get("flag", ""),
        iso3=entry.get("iso3"),
        parent=entry.get("parent", parent),
        supranational=bool(entry.get("supranational", False)),
        european=bool(entry.get("european", True)),
        codes=tuple(str(code).upper() for code in entry.get("codes", [])),
        aliases=tuple(entry.get("aliases", [])),
    )


class LookupTables:
    """
    Immutable, indexed view over the country and region lookup data.

    Indexes are built once at construction. When two entries share a code or
    an alias, the entry declared first keeps it; later duplicates are logged
    and ignored.

    Attributes:
        version: Version string of the lookup data file.
        supranational_codes: Codes treated as aggregates (EU, Euro Area).
        overrides: Special-case rules checked before the generic tables.

    Example:
        >>> tables = load_lookup_tables("config/lookups.yaml")
        >>> tables.by_code("ESP", COUNTRY).name("en")
        'Spain'
    """

    def __init__(
        self,
        countries: List[CanonicalEntity],
        regions: List[CanonicalEntity],
        supranational_codes: FrozenSet[str] = frozenset(),
        overrides: Tuple[NameOverride, ...] = (),
        version: str = "",
    ):
        self.version = version
        self.supranational_codes = frozenset(code.upper() for code in supranational_codes)
        self.overrides = tuple(overrides)

        self._entities: Dict[str, Tuple[CanonicalEntity, ...]] = {
            COUNTRY: tuple(countries),
            REGION: tuple(regions),
        }
        self._codes: Dict[str, Dict[str, CanonicalEntity]] = {}
        self._aliases: Dict[str, Dict[str, CanonicalEntity]] = {}
        self._alias_order: Dict[str, Tuple[Tuple[str, CanonicalEntity], ...]] = {}

        for kind in ENTITY_KINDS:
            self._index(kind)

    def _index(self, kind: str) -> None:
        codes: Dict[str, CanonicalEntity] = {}
        aliases: Dict[str, CanonicalEntity] = {}
        ordered: List[Tuple[str, CanonicalEntity]] = []

        for entity in self._entities[kind]:
            for code in (entity.code, entity.iso3, *entity.codes):
                if not code:
                    continue
                key = code.upper()
                if key in codes and codes[key].code != entity.code:
                    logger.debug(
                        "Code %s already bound to %s; ignoring for %s",
                        key,
                        codes[key].code,
                        entity.code,
                    )
                    continue
                codes.setdefault(key, entity)

            for name in (entity.name_es, entity.name_en, *entity.aliases):
                key = normalize(name.strip())
                if not key:
                    continue
                if key in aliases:
                    if aliases[key].code != entity.code:
                        logger.debug(
                            "Alias %r already bound to %s; ignoring for %s",
                            name,
                            aliases[key].code,
                            entity.code,
                        )
                    continue
                aliases[key] = entity
                ordered.append((key, entity))

        self._codes[kind] = codes
        self._aliases[kind] = aliases
        self._alias_order[kind] = tuple(ordered)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LookupTables":
        """Build tables from the parsed YAML structure."""
        countries = [_entity_from_dict(entry, COUNTRY) for entry in data.get("countries", [])]
        regions = [
            _entity_from_dict(entry, REGION, parent=data.get("region_parent"))
            for entry in data.get("regions", [])
        ]
        overrides = tuple(
            NameOverride(
                contains=normalize(rule["contains"]),
                code=str(rule["code"]).upper(),
                kind=rule.get("kind", REGION),
            )
            for rule in data.get("overrides", [])
        )
        return cls(
            countries=countries,
            regions=regions,
            supranational_codes=frozenset(data.get("supranational_codes", [])),
            overrides=overrides,
            version=str(data.get("version", "")),
        )

    def entities(self, kind: str) -> Tuple[CanonicalEntity, ...]:
        """All entities of ``kind`` in declaration order."""
        return self._entities[kind]

    def codes(self, kind: str) -> Mapping[str, CanonicalEntity]:
        return MappingProxyType(self._codes[kind])

    def aliases(self, kind: str) -> Tuple[Tuple[str, CanonicalEntity], ...]:
        """(normalized alias, entity) pairs in declaration order."""
        return self._alias_order[kind]

    def by_code(self, code: Optional[str], kind: str) -> Optional[CanonicalEntity]:
        if not code:
            return None
        return self._codes[kind].get(code.strip().upper())

    def by_alias(self, normalized_name: str, kind: str) -> Optional[CanonicalEntity]:
        if not normalized_name:
            return None
        return self._aliases[kind].get(normalized_name)

    def is_supranational_code(self, code: Optional[str]) -> bool:
        return bool(code) and code.strip().upper() in self.supranational_codes


def load_lookup_tables(path: Union[str, Path]) -> LookupTables:
    """
    Load lookup tables from a YAML data file.

    Args:
        path: Path to the lookups YAML file.

    Returns:
        Indexed LookupTables instance.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file has invalid YAML syntax.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Lookup tables file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    tables = LookupTables.from_dict(data)
    logger.info(
        "Loaded lookup tables v%s: %d countries, %d regions",
        tables.version,
        len(tables.entities(COUNTRY)),
        len(tables.entities(REGION)),
    )
    return tables
