"""Catalog domain - Services, establishments and plans read by the booking core"""

from .repository import CatalogRepository
from .router import router

__all__ = ["CatalogRepository", "router"]
