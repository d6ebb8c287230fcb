"""Service layer coordinating the engine calculators."""

from .projection_service import DashboardReport, ProjectionService

__all__ = ["DashboardReport", "ProjectionService"]
