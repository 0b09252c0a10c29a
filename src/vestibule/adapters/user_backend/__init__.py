"""Concrete UserBackend implementations."""

from .base import TokenPurpose, UserBackendBase
from .in_memory import InMemoryUserBackend
from .sqlalchemy_adapter import SqlAlchemyUserBackend

__all__ = [
    "InMemoryUserBackend",
    "SqlAlchemyUserBackend",
    "TokenPurpose",
    "UserBackendBase",
]
