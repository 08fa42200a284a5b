"""Domain layer for bizledger application."""

from bizledger.domain.state import AppState
from bizledger.domain.session import Session

__all__ = [
    "AppState",
    "Session",
]
