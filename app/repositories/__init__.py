"""
Repository layer for relational mirror access.
"""

from app.repositories.base import BaseRepository
from app.repositories.property import PropertyRepository
from app.repositories.shortlist import ShortlistRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "ShortlistRepository",
]
