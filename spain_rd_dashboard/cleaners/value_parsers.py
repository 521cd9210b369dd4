"""
Numeric parsing for raw CSV cells.

Datasets mix decimal conventions ("1,41" in INE/ISTAC exports, "1.41" in
Eurostat SDMX files) and use markers such as ":" for missing observations.
A cell that cannot be parsed becomes ``None`` (absent); NaN never leaves this
module.
"""

import re
from typing import Optional

import numpy as np
import pandas as pd

MISSING_MARKERS = {"", ":", "-", "..", "nan", "none", "null", "n/a", "na"}

YEAR_PATTERN = re.compile(r"(?<!\d)((?:19|20)\d{2})(?!\d)")


def _normalize_separators(text: str, decimal: str) -> str:
    """Rewrite a numeric string so that '.' is the only decimal separator."""
    has_comma = "," in text
    has_dot = "." in text

    if decimal == ",":
        if has_comma and has_dot:
            text = text.replace(".", "")  # "1.234,5" -> "1234,5"
        return text.replace(",", ".")

    if has_comma and has_dot:
        return text.replace(",", "")  # "1,234.5" -> "1234.5"
    if has_comma:
        # A single comma is a decimal ("0,125", "1,410"); only repeated
        # three-digit groups ("1,234,567") read as thousands
        if re.fullmatch(r"-?\d{1,3}(,\d{3}){2,}", text):
            return text.replace(",", "")
        return text.replace(",", ".")
    return text


def parse_number(raw: object, decimal: str = ".") -> Optional[float]:
    """
    Parse a raw cell into a float, honouring the dataset's decimal separator.

    Args:
        raw: Cell value (string, number or None).
        decimal: Decimal separator used by the dataset ('.' or ',').

    Returns:
        Parsed float, or None when the cell is missing or unparseable.

    Example:
        >>> parse_number("1,41", decimal=",")
        1.41
        >>> parse_number(":") is None
        True
    """
    if raw is None:
        return None
    if isinstance(raw, (int, float, np.integer, np.floating)) and not isinstance(raw, bool):
        value = float(raw)
        return value if np.isfinite(value) else None

    text = str(raw).strip().replace("\u00a0", "").replace(" ", "")
    if text.lower() in MISSING_MARKERS:
        return None

    text = _normalize_separators(text, decimal)
    try:
        value = float(text)
    except ValueError:
        return None

    return value if np.isfinite(value) else None


def parse_year(raw: object) -> Optional[int]:
    """
    Extract a four-digit year (1900-2099) from a raw cell.

    Example:
        >>> parse_year("2021")
        2021
        >>> parse_year("TIME 2019Q1")
        2019
    """
    if raw is None:
        return None
    if isinstance(raw, (int, np.integer)) and not isinstance(raw, bool):
        return int(raw) if 1900 <= int(raw) <= 2099 else None
    match = YEAR_PATTERN.search(str(raw))
    return int(match.group(1)) if match else None


def parse_number_series(series: pd.Series, decimal: str = ".") -> pd.Series:
    """
    Vectorised form of :func:`parse_number` for a DataFrame column.

    Returns:
        Object-dtype Series holding floats or None.
    """
    return pd.Series(
        [parse_number(cell, decimal=decimal) for cell in series],
        index=series.index,
        dtype=object,
    )
