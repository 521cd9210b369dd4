"""
Dashboard orchestration: load datasets, build charts, rank entities.

``DashboardPipeline`` ties the stages together for every chart:

1. Load datasets (file or URL) and adapt them to canonical series points
2. Resolve the entities a chart asks for
3. Join the requested series on a common year axis
4. Compute the KPI summary, ranking and chart-end annotations

Each dataset carries a presentation state (loading / unavailable / no data /
ready). Loads are tagged with a per-dataset generation number so a stale
response can never overwrite the state of a newer request.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd
import requests

from spain_rd_dashboard.config.settings import Settings
from spain_rd_dashboard.loaders.csv_loader import load_datasets
from spain_rd_dashboard.models import (
    AnnotationPoint,
    ChartState,
    MetricsSummary,
    RankEntry,
    RawObservation,
    SeriesPoint,
    TimeSeriesRow,
)
from spain_rd_dashboard.processors.dataset_adapters import DatasetAdapter, build_adapters
from spain_rd_dashboard.resolvers.entity_resolver import EntityResolver
from spain_rd_dashboard.resolvers.lookup_tables import LookupTables, load_lookup_tables
from spain_rd_dashboard.transformers.joiner import SeriesSpec, join, match_point, rows_to_frame, years_of
from spain_rd_dashboard.transformers.metrics import (
    annotation_points,
    latest_row,
    layout_annotations,
    linear_scale,
    rank_entities,
    summarize,
)

logger = logging.getLogger(__name__)


class RequestTracker:
    """
    Generation counter per request channel (usually a dataset name).

    ``begin`` issues a new token and invalidates every earlier token of the
    same channel; a result is applied only while its token is still current.

    Example:
        >>> tracker = RequestTracker()
        >>> old = tracker.begin("patents_spain")
        >>> new = tracker.begin("patents_spain")
        >>> tracker.is_current("patents_spain", old)
        False
    """

    def __init__(self):
        self._generations: Dict[str, int] = {}

    def begin(self, channel: str) -> int:
        self._generations[channel] = self._generations.get(channel, 0) + 1
        return self._generations[channel]

    def current(self, channel: str) -> int:
        return self._generations.get(channel, 0)

    def is_current(self, channel: str, token: int) -> bool:
        return token == self._generations.get(channel)


@dataclass(frozen=True)
class ChartSeries:
    """
    Declaration of one chart line.

    ``entity`` may be a canonical code or any name the resolver understands.
    ``unit`` is only needed for datasets that publish several units.
    """

    key: str
    dataset: str
    entity: str
    sector: str = "total"
    unit: Optional[str] = None


@dataclass
class ChartOutput:
    """Everything the presentation layer needs to draw one chart."""

    state: ChartState
    rows: List[TimeSeriesRow] = field(default_factory=list)
    summary: MetricsSummary = field(default_factory=MetricsSummary)
    annotations: List[AnnotationPoint] = field(default_factory=list)
    ranking: List[RankEntry] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    def to_frame(self) -> pd.DataFrame:
        return rows_to_frame(self.rows)


class DashboardPipeline:
    """
    Shared reconciliation pipeline consumed by every chart.

    Args:
        settings: Loaded settings (datasets, layout, HTTP, features).
        tables: Lookup tables; loaded from ``settings.paths.lookups`` if omitted.
        session: Optional HTTP session reused for remote datasets.

    Example:
        >>> pipeline = DashboardPipeline(get_settings())
        >>> states = pipeline.load(["gdp_consolidado", "rd_communities"])
        >>> chart = pipeline.build_chart(
        ...     [ChartSeries("country", "gdp_consolidado", "ES"),
        ...      ChartSeries("eu", "gdp_consolidado", "EU27_2020"),
        ...      ChartSeries("community", "rd_communities", "Cataluña")],
        ...     focal_key="community", reference_key="country")
        >>> chart.state
        <ChartState.READY: 'ready'>
    """

    def __init__(
        self,
        settings: Settings,
        tables: Optional[LookupTables] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings
        self.tables = tables if tables is not None else load_lookup_tables(settings.paths.lookups)
        self.resolver = EntityResolver(self.tables)
        self.adapters: Dict[str, DatasetAdapter] = build_adapters(
            settings.datasets, self.resolver, warn_unresolved=settings.features.warn_unresolved
        )
        self.session = session
        self.tracker = RequestTracker()
        self._points: Dict[str, List[SeriesPoint]] = {}
        self._states: Dict[str, ChartState] = {}
        self._errors: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Dataset state
    # ------------------------------------------------------------------

    def state(self, dataset: str) -> ChartState:
        """Presentation state of a dataset; never-loaded datasets are LOADING."""
        return self._states.get(dataset, ChartState.LOADING)

    def points(self, dataset: str) -> List[SeriesPoint]:
        return self._points.get(dataset, [])

    def begin(self, dataset: str) -> int:
        """Start a request for ``dataset`` and mark it as loading."""
        self.settings.dataset(dataset)
        self._states[dataset] = ChartState.LOADING
        return self.tracker.begin(dataset)

    def apply_rows(self, dataset: str, token: int, rows: Iterable[RawObservation]) -> bool:
        """
        Adapt and store the rows of a finished request.

        Returns:
            False when the request was superseded and its rows were discarded.
        """
        if not self.tracker.is_current(dataset, token):
            logger.info("Discarding stale response for %s (generation %d)", dataset, token)
            return False
        points = self.adapters[dataset].adapt(rows)
        self._points[dataset] = points
        self._errors.pop(dataset, None)
        self._states[dataset] = ChartState.READY if points else ChartState.NO_DATA
        return True

    def apply_failure(self, dataset: str, token: int, reason: str) -> bool:
        """Record a failed request, unless it was superseded."""
        if not self.tracker.is_current(dataset, token):
            logger.info("Discarding stale failure for %s (generation %d)", dataset, token)
            return False
        self._points.pop(dataset, None)
        self._errors[dataset] = reason
        self._states[dataset] = ChartState.UNAVAILABLE
        return True

    def ingest(self, dataset: str, rows: Iterable[RawObservation]) -> ChartState:
        """Feed already-parsed rows for ``dataset`` (no fetching)."""
        token = self.begin(dataset)
        self.apply_rows(dataset, token, rows)
        return self.state(dataset)

    def load(self, names: Optional[Iterable[str]] = None) -> Dict[str, ChartState]:
        """
        Fetch and adapt datasets.

        Args:
            names: Dataset names; all configured datasets when omitted.

        Returns:
            Dataset name -> resulting state.
        """
        names = list(names) if names is not None else list(self.settings.datasets)
        tokens = {name: self.begin(name) for name in names}

        errors: Dict[str, str] = {}
        raw = load_datasets(names, self.settings, session=self.session, errors=errors)

        for name in names:
            if name in raw:
                self.apply_rows(name, tokens[name], raw[name])
            else:
                self.apply_failure(name, tokens[name], errors.get(name, "unknown error"))

        states = {name: self.state(name) for name in names}
        logger.info(
            "Datasets loaded: %s",
            ", ".join(f"{name}={state.value}" for name, state in states.items()),
        )
        return states

    # ------------------------------------------------------------------
    # Charts
    # ------------------------------------------------------------------

    def _series_state(self, datasets: Sequence[str]) -> Optional[ChartState]:
        states = [self.state(name) for name in datasets]
        if ChartState.UNAVAILABLE in states:
            return ChartState.UNAVAILABLE
        if ChartState.LOADING in states:
            return ChartState.LOADING
        return None

    def resolve_code(self, entity: str, dataset: str) -> Optional[str]:
        kind = self.settings.dataset(dataset).entity_kind
        resolved = self.resolver.resolve(entity, kind)
        return resolved.code if resolved else None

    def series_specs(self, series: Sequence[ChartSeries]) -> List[SeriesSpec]:
        """Build joiner specs, omitting series whose entity cannot be resolved."""
        specs = []
        for item in series:
            code = self.resolve_code(item.entity, item.dataset)
            if code is None:
                logger.warning("Series %r: entity %r not found; omitted", item.key, item.entity)
                continue
            specs.append(
                SeriesSpec(
                    key=item.key,
                    rows=self.points(item.dataset),
                    match=match_point(entity_code=code, sector_code=item.sector, unit=item.unit),
                )
            )
        return specs

    def build_chart(
        self,
        series: Sequence[ChartSeries],
        years: Optional[Iterable[int]] = None,
        focal_key: Optional[str] = None,
        reference_key: Optional[str] = None,
        y_scale: Optional[Callable[[float], float]] = None,
        styles: Optional[Mapping[str, Mapping[str, str]]] = None,
    ) -> ChartOutput:
        """
        Join the requested series and derive the chart's metrics.

        Args:
            series: Chart lines.
            years: Year axis; defaults to every year with data for any line.
            focal_key: Series summarized in the KPI tiles (first series by default).
            reference_key: Series used as comparison baseline.
            y_scale: Value -> pixel Y mapping for annotations; a linear
                scale from 0 to the largest value is used when omitted.
            styles: Series key -> {"color": ..., "icon": ...}; flags of the
                resolved entities are used as icons when no icon is given.

        Returns:
            ChartOutput whose state is UNAVAILABLE if any dataset failed,
            LOADING while any is pending, NO_DATA when no value matched,
            READY otherwise.
        """
        if not series:
            return ChartOutput(state=ChartState.NO_DATA)

        datasets = sorted({item.dataset for item in series})
        pending = self._series_state(datasets)
        if pending is not None:
            errors = {name: self._errors[name] for name in datasets if name in self._errors}
            return ChartOutput(state=pending, errors=errors)

        specs = self.series_specs(series)
        year_axis = list(years) if years is not None else years_of(specs)
        rows = join(year_axis, specs)

        if not any(value is not None for row in rows for value in row.values.values()):
            return ChartOutput(state=ChartState.NO_DATA, rows=rows)

        kept = {spec.key for spec in specs}
        focal = next(
            (item for item in series if item.key == (focal_key or series[0].key) and item.key in kept),
            None,
        )

        summary = MetricsSummary()
        ranking: List[RankEntry] = []
        if focal is not None:
            index = latest_row(rows, focal.key)
            if index is not None:
                ranking = self.ranking_snapshot(focal.dataset, rows[index].year, focal.sector, focal.unit)
            summary = summarize(
                rows,
                focal.key,
                reference_key=reference_key if reference_key in kept else None,
                ranking=ranking,
                focal_code=self.resolve_code(focal.entity, focal.dataset),
            )

        annotations = self._annotations(rows[-1], series, y_scale, styles) if rows else []
        return ChartOutput(
            state=ChartState.READY,
            rows=rows,
            summary=summary,
            annotations=annotations,
            ranking=ranking,
        )

    def _annotations(
        self,
        last: TimeSeriesRow,
        series: Sequence[ChartSeries],
        y_scale: Optional[Callable[[float], float]],
        styles: Optional[Mapping[str, Mapping[str, str]]],
    ) -> List[AnnotationPoint]:
        present = [value for value in last.values.values() if value is not None]
        if not present:
            return []
        if y_scale is None:
            y_scale = linear_scale((0.0, max(max(present), 0.0)), (self.settings.layout.plot_height, 0.0))

        merged: Dict[str, Dict[str, str]] = {}
        for item in series:
            style = dict((styles or {}).get(item.key, {}))
            if not style.get("icon"):
                style["icon"] = self.resolver.flag_for(item.entity, self.settings.dataset(item.dataset).entity_kind)
            merged[item.key] = style

        points = annotation_points(last, y_scale, merged)
        return layout_annotations(points, self.settings.layout.min_gap)

    def ranking_snapshot(
        self,
        dataset: str,
        year: int,
        sector: str = "total",
        unit: Optional[str] = None,
        european_only: bool = False,
    ) -> List[RankEntry]:
        """
        Rank all entities of a dataset for one year and sector.

        Only entities of the dataset's own kind are ranked: a national-total
        row in a community dataset (resolved to the country) is left out, as
        are supranational aggregates. Equal values keep the order in which
        the dataset lists them.
        """
        kind = self.settings.dataset(dataset).entity_kind
        values: Dict[str, Optional[float]] = {}
        for point in self.points(dataset):
            if point.year != year or point.sector_code != sector:
                continue
            if unit is not None and point.unit != unit:
                continue
            if self.tables.by_code(point.entity_code, kind) is None:
                continue
            if european_only:
                entity = self.resolver.lookup(point.entity_code)
                if entity is not None and not entity.european:
                    continue
            values.setdefault(point.entity_code, point.value)
        return rank_entities(values, self.resolver.is_supranational)
