"""Orchestration of dataset loading and chart building."""

from spain_rd_dashboard.orchestration.runners import (
    ChartOutput,
    ChartSeries,
    DashboardPipeline,
    RequestTracker,
)

__all__ = ["ChartOutput", "ChartSeries", "DashboardPipeline", "RequestTracker"]
