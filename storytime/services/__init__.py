"""
Service layer for business logic.

Services encapsulate business logic, keeping routes as thin HTTP adapters.
Each service receives its dependencies via constructor injection.

Usage in routes:
    from ..services import DiscoveryServiceDep

    @router.get("/discovery/feed")
    async def discovery_feed(service: DiscoveryServiceDep):
        return await service.list_discovery_feed(FeedPolicy())
"""

from typing import Annotated

from fastapi import Depends

from ..config import get_db
from ..database import Database

from .discovery_service import DiscoveryService
from .feed_action_service import FeedActionService

__all__ = [
    # Services
    "DiscoveryService",
    "FeedActionService",
    # Dependency factories
    "get_discovery_service",
    "get_feed_action_service",
    # Type aliases for dependency injection
    "DiscoveryServiceDep",
    "FeedActionServiceDep",
]


def get_discovery_service(db: Annotated[Database, Depends(get_db)]) -> DiscoveryService:
    """Dependency to get DiscoveryService instance."""
    return DiscoveryService(db=db)


def get_feed_action_service(db: Annotated[Database, Depends(get_db)]) -> FeedActionService:
    """Dependency to get FeedActionService instance."""
    return FeedActionService(db=db)


DiscoveryServiceDep = Annotated[DiscoveryService, Depends(get_discovery_service)]
FeedActionServiceDep = Annotated[FeedActionService, Depends(get_feed_action_service)]
