"""Processors that map each dataset's native schema to canonical series points."""

from spain_rd_dashboard.processors.dataset_adapters import DatasetAdapter, build_adapters

__all__ = ["DatasetAdapter", "build_adapters"]
