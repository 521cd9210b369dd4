"""Loaders for the published CSV datasets."""

from spain_rd_dashboard.loaders.csv_loader import (
    DatasetFetchError,
    detect_delimiter,
    fetch_text,
    load_dataset,
    load_datasets,
    read_csv_text,
)
from spain_rd_dashboard.loaders.utils import get_http_session

__all__ = [
    # Fetching
    "DatasetFetchError",
    "fetch_text",
    "get_http_session",
    # Parsing
    "detect_delimiter",
    "read_csv_text",
    # Datasets
    "load_dataset",
    "load_datasets",
]
