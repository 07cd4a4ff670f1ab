"""Explicitly constructed service graph, owned by the application lifespan."""

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass, field

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.services.background import TaskRunner
from app.services.images import ImageStorage
from app.services.item_store import ItemStore
from app.services.line import LineClient
from app.services.link_preview import LinkPreviewFetcher
from app.services.summarizer import Summarizer

StoreScope = Callable[[], AbstractAsyncContextManager[ItemStore]]


def session_store_scope(session_factory: async_sessionmaker[AsyncSession]) -> StoreScope:
    """Build a factory of ItemStores, each on a fresh session (commit on success)."""

    @asynccontextmanager
    async def scope() -> AsyncIterator[ItemStore]:
        async with session_factory() as session:
            try:
                yield ItemStore(session)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return scope


@dataclass
class Services:
    """Clients shared by every request, plus a way to open a store outside one."""

    line: LineClient
    images: ImageStorage
    link_previews: LinkPreviewFetcher
    summarizer: Summarizer
    store_scope: StoreScope
    tasks: TaskRunner = field(default_factory=TaskRunner)


def build_services(
    http_client: httpx.AsyncClient,
    session_factory: async_sessionmaker[AsyncSession],
) -> Services:
    """Wire the production service graph from settings."""
    return Services(
        line=LineClient(http_client),
        images=ImageStorage(),
        link_previews=LinkPreviewFetcher(http_client),
        summarizer=Summarizer(),
        store_scope=session_store_scope(session_factory),
    )
