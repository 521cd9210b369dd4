"""Name normalization and value parsing functions."""

# Text cleaning utilities
from spain_rd_dashboard.cleaners.text_cleaners import (
    extract_region_code,
    normalize,
    remove_tildes,
    strip_region_code,
)

# Numeric parsing utilities
from spain_rd_dashboard.cleaners.value_parsers import (
    parse_number,
    parse_number_series,
    parse_year,
)

__all__ = [
    # Text cleaners
    "extract_region_code",
    "normalize",
    "remove_tildes",
    "strip_region_code",
    # Value parsers
    "parse_number",
    "parse_number_series",
    "parse_year",
]
