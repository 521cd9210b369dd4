"""
Dataset loading: fetch a published CSV and turn it into raw observations.

A dataset is read either from the local data directory or from an http(s)
URL. Any failure to obtain the text (missing file, network error, non-2xx
status) is raised as ``DatasetFetchError`` so the orchestration layer can
surface an "unavailable" state instead of an empty chart.
"""

import io
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd
import requests
from tqdm import tqdm

from spain_rd_dashboard.config.settings import DatasetConfig, Settings
from spain_rd_dashboard.loaders.utils import get_http_session
from spain_rd_dashboard.models import RawObservation

logger = logging.getLogger(__name__)

# Order matters: the first candidate present in the header wins
DELIMITER_CANDIDATES = (";", "|", ",")


class DatasetFetchError(RuntimeError):
    """The dataset could not be obtained (missing file, network or HTTP error)."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Could not fetch {source}: {reason}")
        self.source = source
        self.reason = reason


def detect_delimiter(text: str, default: str = ",") -> str:
    """
    Guess the field separator from the header line.

    Args:
        text: Full file text (only the first non-empty line is inspected).
        default: Separator returned when no candidate appears.

    Returns:
        ';', '|' or ',' (checked in that order).

    Example:
        >>> detect_delimiter("Año;Comunidad;% PIB I+D\\n2020;Madrid;1,7")
        ';'
    """
    header = next((line for line in text.splitlines() if line.strip()), "")
    for candidate in DELIMITER_CANDIDATES:
        if candidate in header:
            return candidate
    return default


def fetch_text(
    source: str,
    session: Optional[requests.Session] = None,
    timeout: int = 30,
    encoding: str = "utf-8-sig",
) -> str:
    """
    Read a dataset's text from a local path or an http(s) URL.

    Raises:
        DatasetFetchError: If the file is missing, the request fails, or the
            server answers with a non-success status.
    """
    if source.startswith(("http://", "https://")):
        sess = session or get_http_session()
        try:
            response = sess.get(source, timeout=timeout)
        except requests.RequestException as exc:
            raise DatasetFetchError(source, f"network error: {exc}") from exc
        if not response.ok:
            raise DatasetFetchError(source, f"HTTP {response.status_code}")
        return response.content.decode(encoding, errors="replace")

    path = Path(source)
    if not path.exists():
        raise DatasetFetchError(source, "file not found")
    try:
        return path.read_text(encoding=encoding, errors="replace")
    except OSError as exc:
        raise DatasetFetchError(source, str(exc)) from exc


def read_csv_text(text: str, delimiter: Optional[str] = None) -> List[RawObservation]:
    """
    Parse delimited text with a header row into raw observations.

    Every cell is kept as a stripped string; nothing is coerced to NaN, so
    markers such as ':' or '..' reach the value parser untouched.
    """
    if not text.strip():
        return []

    sep = delimiter or detect_delimiter(text)
    df = pd.read_csv(
        io.StringIO(text),
        sep=sep,
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
        skip_blank_lines=True,
    )
    df.columns = [str(col).strip() for col in df.columns]
    # Short rows leave NaN in their trailing cells
    df = df.fillna("").apply(lambda col: col.str.strip())
    return df.to_dict(orient="records")


def load_dataset(
    dataset: DatasetConfig,
    settings: Settings,
    session: Optional[requests.Session] = None,
) -> List[RawObservation]:
    """
    Fetch and parse one configured dataset.

    Raises:
        DatasetFetchError: If the source cannot be read.
    """
    source = settings.resolve_source(dataset)
    if session is None and (dataset.is_remote or settings.http.base_url):
        session = get_http_session(
            total=settings.http.retries,
            backoff=settings.http.backoff_factor,
            statuses=tuple(settings.http.retry_statuses),
        )
    text = fetch_text(source, session=session, timeout=settings.http.timeout, encoding=dataset.encoding)

    try:
        rows = read_csv_text(text, dataset.delimiter)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise DatasetFetchError(source, f"unreadable CSV: {exc}") from exc

    logger.info("Loaded %s: %d rows from %s", dataset.name, len(rows), source)
    return rows


def load_datasets(
    names: Iterable[str],
    settings: Settings,
    session: Optional[requests.Session] = None,
    errors: Optional[Dict[str, str]] = None,
) -> Dict[str, List[RawObservation]]:
    """
    Load several datasets, skipping (and logging) the ones that fail.

    Args:
        names: Dataset names to load.
        settings: Loaded settings.
        session: Optional HTTP session reused across remote datasets.
        errors: If given, filled with dataset name -> failure reason.

    Returns:
        Dataset name -> raw observations, for every dataset that loaded.
        Failed datasets are absent from the result.
    """
    names = list(names)
    results: Dict[str, List[RawObservation]] = {}

    pbar = tqdm(
        names,
        desc="Loading datasets",
        unit="CSV",
        bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt}",
        colour="#3366FF",
        disable=not settings.features.show_progress,
    )
    for name in pbar:
        try:
            results[name] = load_dataset(settings.dataset(name), settings, session=session)
        except DatasetFetchError as exc:
            logger.error("Dataset %s unavailable: %s", name, exc.reason)
            if errors is not None:
                errors[name] = exc.reason
    pbar.close()

    return results
