"""
Explicit unit of work.

Every write in the registration core happens inside one of these:

    async with UnitOfWork(session_factory) as uow:
        ...  # uow.session
    # committed here, or rolled back if the block raised

Nothing is committed implicitly by request teardown, and nothing outside the
block can observe half of it.
"""

from types import TracebackType
from typing import Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.logging import get_logger

logger = get_logger(__name__)


class UnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("UnitOfWork used outside of its context")
        return self._session

    async def __aenter__(self) -> "UnitOfWork":
        self._session = self._session_factory()
        await self._session.begin()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        session = self.session
        try:
            if exc_type is None:
                await session.commit()
            else:
                await session.rollback()
                logger.debug("unit_of_work_rolled_back", error=type(exc).__name__)
        finally:
            await session.close()
            self._session = None
