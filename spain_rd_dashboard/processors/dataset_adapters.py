"""
Per-dataset adapters: native CSV rows -> canonical series points.

Each published dataset has its own column vocabulary, sector codes, decimal
convention and layout. An adapter is driven entirely by the dataset's
``DatasetConfig``, so the joiner and the metrics never branch on dataset
identity.

Transformation steps:
1. Keep only rows matching the fixed-dimension filters
2. Melt wide layouts (one column per year) into long form
3. Resolve the entity through the ordered entity columns
4. Translate the native sector code to a canonical sector id
5. Parse year and value (unparseable values become None)
6. Deduplicate per (entity, year, sector, unit): keep first, or sum
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Set

import pandas as pd

from spain_rd_dashboard.cleaners.value_parsers import parse_number, parse_year
from spain_rd_dashboard.config.settings import DatasetConfig
from spain_rd_dashboard.models import RawObservation, SeriesPoint
from spain_rd_dashboard.resolvers.entity_resolver import EntityResolver

logger = logging.getLogger(__name__)

YEAR_COLUMN_PATTERN = re.compile(r"^\s*(?:19|20)\d{2}\s*$")

# Internal column names used after melting a wide layout
_MELT_YEAR = "__year"
_MELT_VALUE = "__value"

KEY_COLUMNS = ["entity_code", "year", "sector_code", "unit"]


def _sum_present(values: pd.Series) -> Optional[float]:
    present = [v for v in values if v is not None and not pd.isna(v)]
    return float(sum(present)) if present else None


class DatasetAdapter:
    """
    Map a dataset's raw observations to canonical ``SeriesPoint`` records.

    Args:
        config: Dataset schema.
        resolver: Entity resolver shared across datasets.
        warn_unresolved: Log unresolved names at WARNING (else DEBUG).

    Example:
        >>> adapter = DatasetAdapter(settings.dataset("gdp_consolidado"), resolver)
        >>> points = adapter.adapt(rows)
        >>> points[0]
        SeriesPoint(year=2020, entity_code='ES', sector_code='total', value=1.41, unit='')
    """

    def __init__(self, config: DatasetConfig, resolver: EntityResolver, warn_unresolved: bool = True):
        self.config = config
        self.resolver = resolver
        self.warn_unresolved = warn_unresolved
        self._canonical_sectors: Dict[str, str] = {
            str(native).strip().upper(): canonical
            for canonical, native in config.sector_codes.items()
        }
        self.unresolved: Set[str] = set()

    @property
    def name(self) -> str:
        return self.config.name

    def native_sector(self, sector: str) -> Optional[str]:
        """Native code of a canonical sector id, e.g. 'business' -> 'BES'."""
        return self.config.sector_codes.get(sector)

    def canonical_sector(self, native: Optional[str]) -> Optional[str]:
        """
        Canonical sector id of a native code, or None for untracked sectors.

        Datasets without a sector column only carry totals.
        """
        if not self.config.sector_column:
            return "total"
        if native is None:
            return None
        return self._canonical_sectors.get(str(native).strip().upper())

    def adapt(self, rows: Iterable[RawObservation]) -> List[SeriesPoint]:
        """
        Convert raw rows into deduplicated series points.

        Rows whose entity cannot be resolved, whose sector is not tracked, or
        whose year cannot be parsed are omitted. Values that cannot be parsed
        are kept as None.
        """
        df = pd.DataFrame(list(rows))
        if df.empty:
            return []
        df = df.fillna("").astype(str)

        # 1) Fixed dimensions
        df = self._apply_filters(df)
        if df.empty:
            return []

        # 2) Wide -> long
        year_column, value_column = self.config.year_column, self.config.value_column
        if self.config.layout == "wide":
            df = self._melt(df)
            year_column, value_column = _MELT_YEAR, _MELT_VALUE

        records = []
        for row in df.to_dict(orient="records"):
            # 3) Entity
            entity_code = self._resolve_entity(row)
            if entity_code is None:
                continue

            # 4) Sector
            native = row.get(self.config.sector_column) if self.config.sector_column else None
            sector_code = self.canonical_sector(native)
            if sector_code is None:
                continue

            # 5) Year and value
            year = parse_year(row.get(year_column))
            if year is None:
                continue
            value = parse_number(row.get(value_column), decimal=self.config.decimal)
            unit = row.get(self.config.unit_column, "") if self.config.unit_column else ""

            records.append(
                {
                    "entity_code": entity_code,
                    "year": year,
                    "sector_code": sector_code,
                    "unit": unit,
                    "value": value,
                }
            )

        if not records:
            return []

        # 6) One observation per key
        points = self._deduplicate(pd.DataFrame(records))
        logger.debug("%s: %d points from %d rows", self.name, len(points), len(df))
        return points

    def _apply_filters(self, df: pd.DataFrame) -> pd.DataFrame:
        for column, expected in self.config.filters.items():
            if column not in df.columns:
                logger.warning("%s: filter column %r not found; no rows match", self.name, column)
                return df.iloc[0:0]
            df = df[df[column].str.strip() == str(expected).strip()]
        return df

    def _melt(self, df: pd.DataFrame) -> pd.DataFrame:
        excluded = set(self.config.exclude_columns)
        year_cols = [c for c in df.columns if YEAR_COLUMN_PATTERN.match(c) and c not in excluded]
        id_cols = [c for c in df.columns if c not in year_cols and c not in excluded]
        if not year_cols:
            logger.warning("%s: wide layout without year columns", self.name)
            return df.iloc[0:0]
        return df.melt(
            id_vars=id_cols,
            value_vars=year_cols,
            var_name=_MELT_YEAR,
            value_name=_MELT_VALUE,
        )

    def _resolve_entity(self, row: RawObservation) -> Optional[str]:
        candidates: List[str] = []
        for column in self.config.entity_columns:
            cell = (row.get(column) or "").strip()
            if not cell:
                continue
            entity = self.resolver.resolve(cell, self.config.entity_kind)
            if entity is not None:
                return entity.code
            candidates.append(cell)

        label = " | ".join(candidates) or "<empty>"
        if label not in self.unresolved:
            self.unresolved.add(label)
            level = logging.WARNING if self.warn_unresolved else logging.DEBUG
            logger.log(level, "%s: unresolved entity %r omitted", self.name, label)
        return None

    def _deduplicate(self, frame: pd.DataFrame) -> List[SeriesPoint]:
        if self.config.duplicates == "sum":
            frame = frame.groupby(KEY_COLUMNS, sort=False, as_index=False)["value"].agg(_sum_present)
        else:
            duplicated = frame.duplicated(subset=KEY_COLUMNS, keep="first")
            if duplicated.any():
                logger.debug("%s: %d duplicate observations dropped", self.name, int(duplicated.sum()))
            frame = frame[~duplicated]

        return [
            SeriesPoint(
                year=int(rec["year"]),
                entity_code=rec["entity_code"],
                sector_code=rec["sector_code"],
                value=None if rec["value"] is None or pd.isna(rec["value"]) else float(rec["value"]),
                unit=rec["unit"],
            )
            for rec in frame.to_dict(orient="records")
        ]


def build_adapters(
    datasets: Dict[str, DatasetConfig], resolver: EntityResolver, warn_unresolved: bool = True
) -> Dict[str, DatasetAdapter]:
    """One adapter per configured dataset, sharing the resolver."""
    return {
        name: DatasetAdapter(config, resolver, warn_unresolved=warn_unresolved)
        for name, config in datasets.items()
    }

