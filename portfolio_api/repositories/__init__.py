"""Repository package exposing persistence-layer access for domain models."""

from __future__ import annotations

from portfolio_api.repositories.base import BaseRepository, Page, Pagination
from portfolio_api.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "Page",
    "Pagination",
    "UserRepository",
]
