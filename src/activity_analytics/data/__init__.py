"""
Data access layer.

- filters: Session query constraints
- loader: CSV file I/O
- repository: Session queries and run-dynamics write-back
"""

from .filters import SessionFilters
from .loader import DataLoaderProtocol, SessionDataLoader, frame_to_sessions
from .repository import RepositoryProtocol, SessionRepository

__all__ = [
    "DataLoaderProtocol",
    "RepositoryProtocol",
    "SessionDataLoader",
    "SessionFilters",
    "SessionRepository",
    "frame_to_sessions",
]
