"""API routes package."""

from courier.routes.backup_routes import router as backup_router
from courier.routes.publication_routes import router as publication_router

__all__ = ["backup_router", "publication_router"]
