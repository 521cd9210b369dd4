"""
Time-series joiner: align independently sourced series on a common year axis.

Each series is declared as a ``SeriesSpec`` (key, canonical points, match
predicate). For every requested year the first matching point supplies the
value; years without a match carry ``None``. Rows always come out in ascending
year order with every declared key present.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from spain_rd_dashboard.models import SeriesPoint, TimeSeriesRow

logger = logging.getLogger(__name__)

MatchPredicate = Callable[[SeriesPoint], bool]


@dataclass
class SeriesSpec:
    """One line of a chart: a key, the points to draw from, and a filter."""

    key: str
    rows: Sequence[SeriesPoint]
    match: MatchPredicate


def match_point(
    entity_code: Optional[str] = None,
    sector_code: Optional[str] = None,
    unit: Optional[str] = None,
) -> MatchPredicate:
    """
    Build the usual predicate on entity, sector and unit.

    Arguments left as None are not constrained.

    Example:
        >>> pred = match_point(entity_code="ES51", sector_code="total")
        >>> pred(SeriesPoint(2020, "ES51", "total", 1.5))
        True
    """

    def _match(point: SeriesPoint) -> bool:
        if entity_code is not None and point.entity_code != entity_code:
            return False
        if sector_code is not None and point.sector_code != sector_code:
            return False
        if unit is not None and point.unit != unit:
            return False
        return True

    return _match


def join(years: Iterable[int], series_specs: Sequence[SeriesSpec]) -> List[TimeSeriesRow]:
    """
    Join several series on the requested years.

    Args:
        years: Years to emit (any order, duplicates ignored).
        series_specs: Declared series; keys must be unique.

    Returns:
        One TimeSeriesRow per distinct year, ascending, each holding a value
        (or None) for every declared key.

    Raises:
        ValueError: If two specs share a key.

    Example:
        >>> rows = join([2021, 2020], [SeriesSpec("community", points, match_point("ES51"))])
        >>> [(r.year, r.get("community")) for r in rows]
        [(2020, 1.52), (2021, None)]
    """
    keys = [spec.key for spec in series_specs]
    if len(set(keys)) != len(keys):
        raise ValueError(f"Duplicate series keys: {keys}")

    wanted = sorted({int(year) for year in years})
    wanted_set = set(wanted)

    columns: Dict[str, Dict[int, Optional[float]]] = {}
    for spec in series_specs:
        found: Dict[int, Optional[float]] = {}
        duplicates: Dict[int, int] = defaultdict(int)
        for point in spec.rows:
            if point.year not in wanted_set or not spec.match(point):
                continue
            if point.year in found:
                duplicates[point.year] += 1
                continue
            found[point.year] = point.value
        if duplicates:
            logger.warning(
                "Series %r: several points match years %s; first one used",
                spec.key,
                sorted(duplicates),
            )
        columns[spec.key] = found

    return [
        TimeSeriesRow(year=year, values={key: columns[key].get(year) for key in keys})
        for year in wanted
    ]


def years_of(series_specs: Sequence[SeriesSpec]) -> List[int]:
    """Ascending years for which at least one spec has a matching point."""
    years = {
        point.year
        for spec in series_specs
        for point in spec.rows
        if spec.match(point)
    }
    return sorted(years)


def year_range(start: int, end: int) -> List[int]:
    """Inclusive year range, e.g. ``year_range(2013, 2023)``."""
    return list(range(int(start), int(end) + 1))


def rows_to_frame(rows: Sequence[TimeSeriesRow], keys: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Expose joined rows as a DataFrame indexed by year.

    Columns are object dtype so absent values stay ``None``.
    """
    if keys is None:
        keys = list(rows[0].values) if rows else []
    index = pd.Index([row.year for row in rows], name="year")
    data = {key: pd.Series([row.get(key) for row in rows], index=index, dtype=object) for key in keys}
    return pd.DataFrame(data, index=index)
