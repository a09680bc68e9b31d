"""Service layer coordinating analytics requests."""

from .analytics_service import AnalyticsService, ProfileLookup

__all__ = ["AnalyticsService", "ProfileLookup"]
