"""Run orchestration."""

from .result import SessionResult
from .session import CollectionSession

__all__ = ["CollectionSession", "SessionResult"]
