"""
Custom exceptions for the Activity Analytics package.

This module defines all custom exceptions used throughout the application,
providing clear error hierarchies and specific error types for different scenarios.
"""


class ActivityAnalyticsError(Exception):
    """Base exception for all Activity Analytics errors."""


class ConfigurationError(ActivityAnalyticsError):
    """Raised when there is an issue with configuration settings."""


class ValidationError(ActivityAnalyticsError):
    """Raised when data validation fails."""


class InvalidDataError(ValidationError):
    """Raised when input data is invalid or missing required fields."""


class CalculationError(ActivityAnalyticsError):
    """Raised when there is an error during metric calculation."""


class DataLoadError(ActivityAnalyticsError):
    """Raised when there is an error loading data files."""


class StorageError(ActivityAnalyticsError):
    """Raised when a write to a storage collaborator fails."""


class SnapshotStoreError(StorageError):
    """Raised when a result snapshot cannot be stored or read."""


class BackfillError(StorageError):
    """Raised when run-dynamics backfills cannot be applied."""
