"""Services for capture, enrichment and external integrations."""

from app.services.background import TaskRunner
from app.services.container import Services, build_services
from app.services.item_store import ItemFilter, ItemStore

__all__ = ["TaskRunner", "Services", "build_services", "ItemFilter", "ItemStore"]
