"""Spain R&D Dashboard data pipeline.

This package turns the CSV datasets published for the Spain R&D dashboard
(R&D expenditure as % of GDP, researchers, patent applications) into
chart-ready structures for Spain, its autonomous communities and European
comparators.

Main components:
- cleaners: Name normalization and numeric value parsing
- resolvers: Lookup tables and canonical entity resolution
- processors: Per-dataset adapters from raw CSV rows to series points
- transformers: Time-series join, derived metrics and annotation layout
- loaders: CSV fetching and parsing
- orchestration: Chart pipeline and request tracking
- utils: Logging setup and number formatting
"""

__version__ = "1.0.0"
__author__ = "EMERGE Data Team"

# Package metadata
__all__ = [
    "__version__",
    "__author__",
]
