"""Data containers shared across the pipeline stages.

Absent values are represented by ``None`` throughout, never by ``0.0`` or NaN.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Tuple

# One CSV row: column name -> raw string value
RawObservation = Dict[str, str]

COUNTRY = "country"
REGION = "region"
ENTITY_KINDS = (COUNTRY, REGION)

# Canonical R&D performance sectors
SECTORS = ("total", "business", "government", "education", "nonprofit")


@dataclass(frozen=True)
class CanonicalEntity:
    """Resolved identity of a country, aggregate or autonomous community.

    Attributes:
        code: Canonical code (Eurostat geo code for countries, NUTS2 for regions)
        kind: Entity class, ``"country"`` or ``"region"``
        name_es: Spanish display name
        name_en: English display name
        flag: Flag asset reference (URL or asset path)
        iso3: ISO 3166-1 alpha-3 code, when one exists
        parent: Code of the enclosing entity (regions -> their country)
        supranational: True for EU / Euro Area aggregates
        european: False for non-European comparators (US, Japan, ...)
        codes: Alternative identifiers (ISO2/ISO3/NUTS/short dashboard codes)
        aliases: Source spellings, in declaration order
    """

    code: str
    kind: str
    name_es: str
    name_en: str
    flag: str = ""
    iso3: Optional[str] = None
    parent: Optional[str] = None
    supranational: bool = False
    european: bool = True
    codes: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()

    @property
    def local_names(self) -> Dict[str, str]:
        return {"es": self.name_es, "en": self.name_en}

    def name(self, language: str = "es") -> str:
        """Return the display name for ``language`` ('es' or 'en')."""
        return self.name_en if language == "en" else self.name_es


@dataclass(frozen=True)
class SeriesPoint:
    """One (entity, year, sector, unit) observation in canonical shape."""

    year: int
    entity_code: str
    sector_code: str
    value: Optional[float]
    unit: str = ""


@dataclass
class TimeSeriesRow:
    """One year of a joined chart table.

    ``values`` holds an entry for every declared series key; ``None`` marks
    a year without a matching observation.
    """

    year: int
    values: Dict[str, Optional[float]] = field(default_factory=dict)

    def get(self, key: str) -> Optional[float]:
        return self.values.get(key)


@dataclass
class AnnotationPoint:
    """Chart-end marker (flag badge) positioned on the Y axis."""

    series_key: str
    value: Optional[float]
    raw_y: float
    adjusted_y: Optional[float] = None
    color: str = ""
    icon_ref: str = ""

    def with_adjusted(self, adjusted_y: float) -> "AnnotationPoint":
        return replace(self, adjusted_y=adjusted_y)

    @property
    def displaced(self) -> bool:
        """True when layout moved the marker away from its data point."""
        return self.adjusted_y is not None and abs(self.adjusted_y - self.raw_y) > 2


@dataclass(frozen=True)
class RankEntry:
    """Position of one entity in a descending ranking."""

    code: str
    value: float
    rank: int


@dataclass
class MetricsSummary:
    """KPI summary for the focal series of a chart."""

    year: Optional[int] = None
    value: Optional[float] = None
    yoy: Optional[float] = None
    rank: Optional[int] = None
    rank_total: Optional[int] = None
    reference_value: Optional[float] = None
    peer_difference: Optional[float] = None


class ChartState(str, Enum):
    """Presentation state of a chart after a (re)load."""

    LOADING = "loading"
    UNAVAILABLE = "unavailable"
    NO_DATA = "no_data"
    READY = "ready"
