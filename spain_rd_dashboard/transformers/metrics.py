"""
Derived metrics and chart-end annotation layout.

All functions are total: a missing input or a zero denominator yields None,
never an exception, Infinity or NaN.
"""

from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from spain_rd_dashboard.models import AnnotationPoint, MetricsSummary, RankEntry, TimeSeriesRow

MIN_GAP = 24.0

Number = Optional[float]


def _ratio_pct(numerator: Number, denominator: Number) -> Number:
    if numerator is None or denominator is None or denominator == 0:
        return None
    return numerator / denominator * 100


def yoy_change(current: Number, previous: Number) -> Number:
    """
    Year-over-year change in percent.

    Example:
        >>> yoy_change(1.5, 1.2)
        25.0
        >>> yoy_change(1.5, 0) is None
        True
    """
    if current is None:
        return None
    return _ratio_pct(current - previous, previous) if previous is not None else None


def _previous_year_value(rows: Sequence[TimeSeriesRow], index: int, key: str) -> Number:
    """Value of ``key`` in the calendar year before ``rows[index]``, if that row exists."""
    if index <= 0 or rows[index - 1].year != rows[index].year - 1:
        return None
    return rows[index - 1].get(key)


def yoy_series(rows: Sequence[TimeSeriesRow], key: str) -> List[Number]:
    """
    YoY change of ``key`` for each row.

    A row whose preceding calendar year is missing from the axis gets None.
    """
    return [yoy_change(row.get(key), _previous_year_value(rows, i, key)) for i, row in enumerate(rows)]


def peer_difference(focal: Number, reference: Number) -> Number:
    """
    Percentage difference of a focal value against a reference (EU, national).

    Example:
        >>> peer_difference(1.8, 2.0)
        -10.0
        >>> peer_difference(1.8, 0) is None
        True
    """
    if focal is None:
        return None
    return _ratio_pct(focal - reference, reference) if reference is not None else None


def share_of_total(value: Number, total: Number) -> Number:
    """Percentage of ``total`` represented by ``value``."""
    return _ratio_pct(value, total)


def average_per_entity(total: Number, count: int) -> Number:
    """Average of ``total`` over ``count`` entities, e.g. national per community."""
    if total is None or count <= 0:
        return None
    return total / count


def sector_shares(values: Mapping[str, Number], total_key: str = "total") -> Dict[str, Number]:
    """Share of every non-total sector in the total, in percent."""
    total = values.get(total_key)
    return {
        sector: share_of_total(value, total)
        for sector, value in values.items()
        if sector != total_key
    }


def rank_entities(
    values: Union[Mapping[str, Number], Iterable[Tuple[str, Number]]],
    is_supranational: Optional[Callable[[str], bool]] = None,
) -> List[RankEntry]:
    """
    Rank entities by descending value.

    Supranational aggregates and absent values are excluded. Equal values
    keep their input order (the sort is stable); no further tie-break is
    applied.

    Args:
        values: code -> value mapping, or (code, value) pairs in source order.
        is_supranational: Predicate flagging aggregate codes to exclude.

    Returns:
        RankEntry list with 1-based ranks.

    Example:
        >>> [e.code for e in rank_entities({"EU27_2020": 2.2, "DE": 3.1, "ES": 1.4},
        ...                               lambda c: c.startswith("EU"))]
        ['DE', 'ES']
    """
    pairs = values.items() if isinstance(values, Mapping) else values
    eligible = [
        (code, float(value))
        for code, value in pairs
        if value is not None and not (is_supranational and is_supranational(code))
    ]
    ordered = sorted(eligible, key=lambda pair: pair[1], reverse=True)
    return [RankEntry(code=code, value=value, rank=i) for i, (code, value) in enumerate(ordered, start=1)]


def rank_of(code: str, ranking: Sequence[RankEntry]) -> Optional[Tuple[int, int]]:
    """(rank, total) of ``code`` in ``ranking``, or None when it is not ranked."""
    for entry in ranking:
        if entry.code == code:
            return entry.rank, len(ranking)
    return None


def linear_scale(
    domain: Tuple[float, float], pixel_range: Tuple[float, float]
) -> Callable[[float], float]:
    """
    Map values to pixel Y positions linearly.

    Example:
        >>> y = linear_scale((0, 4), (300, 0))
        >>> y(1)
        225.0
    """
    d0, d1 = domain
    r0, r1 = pixel_range
    span = d1 - d0

    def _scale(value: float) -> float:
        if span == 0:
            return float(r0)
        return r0 + (value - d0) / span * (r1 - r0)

    return _scale


def layout_annotations(points: Sequence[AnnotationPoint], min_gap: float = MIN_GAP) -> List[AnnotationPoint]:
    """
    Push chart-end markers apart so they do not overlap.

    Markers are sorted by ``raw_y``; walking down the list, a marker closer
    than ``min_gap`` to the previous adjusted position is moved to exactly
    ``min_gap`` below it. Markers may end up outside the plot area.

    Returns:
        New AnnotationPoint objects, sorted by ``raw_y``, with ``adjusted_y`` set.

    Example:
        >>> pts = [AnnotationPoint("a", 1.0, 100.0), AnnotationPoint("b", 0.9, 105.0),
        ...        AnnotationPoint("c", 0.5, 140.0)]
        >>> [p.adjusted_y for p in layout_annotations(pts, 24)]
        [100.0, 124.0, 148.0]
    """
    laid_out: List[AnnotationPoint] = []
    previous: Optional[float] = None
    for point in sorted(points, key=lambda p: p.raw_y):
        adjusted = point.raw_y
        if previous is not None and adjusted - previous < min_gap:
            adjusted = previous + min_gap
        laid_out.append(point.with_adjusted(adjusted))
        previous = adjusted
    return laid_out


def annotation_points(
    row: TimeSeriesRow,
    y_scale: Callable[[float], float],
    styles: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> List[AnnotationPoint]:
    """
    Build chart-end markers for the present values of a row.

    Args:
        row: Usually the last row of the joined table.
        y_scale: Value -> pixel Y mapping.
        styles: series key -> {"color": ..., "icon": ...}.
    """
    styles = styles or {}
    points = []
    for key, value in row.values.items():
        if value is None:
            continue
        style = styles.get(key, {})
        points.append(
            AnnotationPoint(
                series_key=key,
                value=value,
                raw_y=float(y_scale(value)),
                color=style.get("color", ""),
                icon_ref=style.get("icon", ""),
            )
        )
    return points


def latest_row(rows: Sequence[TimeSeriesRow], key: str) -> Optional[int]:
    """Index of the last row where ``key`` has a value."""
    for i in range(len(rows) - 1, -1, -1):
        if rows[i].get(key) is not None:
            return i
    return None


def summarize(
    rows: Sequence[TimeSeriesRow],
    focal_key: str,
    reference_key: Optional[str] = None,
    ranking: Optional[Sequence[RankEntry]] = None,
    focal_code: Optional[str] = None,
) -> MetricsSummary:
    """
    KPI summary of the focal series at its latest available year.

    Args:
        rows: Joined rows, ascending by year.
        focal_key: Series whose value is summarized.
        reference_key: Series used as comparison baseline.
        ranking: Ranking snapshot for the summary year.
        focal_code: Entity code of the focal series, to look up its rank.
    """
    index = latest_row(rows, focal_key)
    if index is None:
        return MetricsSummary()

    row = rows[index]
    value = row.get(focal_key)
    previous = _previous_year_value(rows, index, focal_key)
    reference = row.get(reference_key) if reference_key else None

    rank = rank_total = None
    if ranking and focal_code:
        position = rank_of(focal_code, ranking)
        if position is not None:
            rank, rank_total = position

    return MetricsSummary(
        year=row.year,
        value=value,
        yoy=yoy_change(value, previous),
        rank=rank,
        rank_total=rank_total,
        reference_value=reference,
        peer_difference=peer_difference(value, reference),
    )
