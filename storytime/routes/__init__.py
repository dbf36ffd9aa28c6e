"""
API route modules.
"""

from .actions import router as actions_router
from .discovery import router as discovery_router
from .misc import router as misc_router

__all__ = [
    "actions_router",
    "discovery_router",
    "misc_router",
]
