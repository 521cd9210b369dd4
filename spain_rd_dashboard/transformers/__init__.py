"""Transformers: time-series join and derived metrics."""

from spain_rd_dashboard.transformers.joiner import (
    SeriesSpec,
    join,
    match_point,
    rows_to_frame,
    year_range,
    years_of,
)
from spain_rd_dashboard.transformers.metrics import (
    MIN_GAP,
    annotation_points,
    average_per_entity,
    layout_annotations,
    linear_scale,
    peer_difference,
    rank_entities,
    rank_of,
    sector_shares,
    share_of_total,
    summarize,
    yoy_change,
    yoy_series,
)

__all__ = [
    # Joiner
    "SeriesSpec",
    "join",
    "match_point",
    "rows_to_frame",
    "year_range",
    "years_of",
    # Metrics
    "average_per_entity",
    "peer_difference",
    "rank_entities",
    "rank_of",
    "sector_shares",
    "share_of_total",
    "summarize",
    "yoy_change",
    "yoy_series",
    # Layout
    "MIN_GAP",
    "annotation_points",
    "layout_annotations",
    "linear_scale",
]
