"""
Database module - SQLite storage for stories and engagement signals.

Uses repository pattern for better separation of concerns.
"""

from .connection import DatabaseConnection
from .models import DBStory, DBVisibility, DBFeaturedItem, DBEditorialPick
from .story_repository import StoryRepository, StoryQuery
from .profile_repository import ProfileRepository
from .signal_repository import SignalRepository
from .shelf_repository import ShelfRepository
from .social_repository import SocialRepository
from .visibility_repository import VisibilityRepository
from .curation_repository import CurationRepository
from .database import Database

__all__ = [
    "Database",
    "DatabaseConnection",
    "DBStory",
    "DBVisibility",
    "DBFeaturedItem",
    "DBEditorialPick",
    "StoryRepository",
    "StoryQuery",
    "ProfileRepository",
    "SignalRepository",
    "ShelfRepository",
    "SocialRepository",
    "VisibilityRepository",
    "CurationRepository",
]
