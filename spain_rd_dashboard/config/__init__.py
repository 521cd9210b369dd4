"""Configuration management for the Spain R&D dashboard pipeline."""

from spain_rd_dashboard.config.settings import DatasetConfig, Settings, get_settings

__all__ = ["DatasetConfig", "Settings", "get_settings"]
