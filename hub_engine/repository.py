import asyncio
from functools import wraps
from typing import Optional

from cachetools import TTLCache
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import DATABASE_URL, DB_POOL_SIZE, STORE_TIMEOUT_SECONDS
from core.errors import TransientStoreError
from core.logger import setup_logger
from hub_engine.models import HubBase, COLLECTIONS, SYSTEM_PARTY_ID, system_party

logger = setup_logger("HUB_STORE")


def build_engine(url: str):
    if url.startswith("sqlite"):
        # In-memory SQLite lives inside one connection, so it must be shared
        if ":memory:" in url or url.endswith("://"):
            return create_async_engine(url, poolclass=StaticPool)
        return create_async_engine(url)
    return create_async_engine(url, pool_size=DB_POOL_SIZE, max_overflow=20, pool_pre_ping=True)


engine = build_engine(DATABASE_URL)
AsyncSessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def db_retry(func):
    """Retries a store call with exponential backoff under a per-call timeout."""
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        for attempt in range(self.retries):
            try:
                return await asyncio.wait_for(func(self, *args, **kwargs), timeout=self.timeout)
            except IntegrityError:
                raise
            except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
                if attempt == self.retries - 1:
                    logger.error(f"Store call {func.__name__} gave up after {self.retries} attempts: {e!r}")
                    raise TransientStoreError(func.__name__, e) from e
                logger.warning(f"DB blip in {func.__name__}, retrying... ({e!r})")
                await asyncio.sleep(self.backoff * (2 ** attempt))
    return wrapper


class RecordStore:
    """Collection-oriented access to the hub tables.

    Records come back as detached ORM instances; writes take plain dicts.
    """

    def __init__(self, bind=None, retries: int = 3, timeout: float = STORE_TIMEOUT_SECONDS, backoff: float = 0.5):
        self.engine = bind if bind is not None else engine
        if bind is None:
            self.session_factory = AsyncSessionLocal
        else:
            self.session_factory = sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)
        self.retries = max(1, retries)
        self.timeout = timeout
        self.backoff = backoff
        self.party_cache = TTLCache(maxsize=1000, ttl=300)

    async def init_schema(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(HubBase.metadata.create_all)
        logger.info("✅ Hub schema ready")

    async def dispose(self):
        await self.engine.dispose()

    @staticmethod
    def model_for(collection: str):
        return COLLECTIONS[collection]

    @staticmethod
    def _filtered(model, stmt, filters: dict):
        for key, value in filters.items():
            column = getattr(model, key)
            if isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)
        return stmt

    @db_retry
    async def query(self, collection: str, **filters) -> list:
        model = self.model_for(collection)
        async with self.session_factory() as session:
            stmt = self._filtered(model, select(model), filters)
            return list((await session.execute(stmt)).scalars().all())

    @db_retry
    async def get(self, collection: str, record_id):
        model = self.model_for(collection)
        async with self.session_factory() as session:
            return await session.get(model, record_id)

    @db_retry
    async def insert(self, collection: str, record: dict):
        model = self.model_for(collection)
        async with self.session_factory() as session:
            obj = model(**record)
            session.add(obj)
            await session.commit()
            return obj

    @db_retry
    async def update(self, collection: str, record_id, partial: dict) -> bool:
        model = self.model_for(collection)
        async with self.session_factory() as session:
            result = await session.execute(update(model).where(model.id == record_id).values(**partial))
            await session.commit()
        if collection == "parties":
            self.party_cache.pop(record_id, None)
        return result.rowcount > 0

    @db_retry
    async def delete(self, collection: str, record_id) -> bool:
        model = self.model_for(collection)
        async with self.session_factory() as session:
            result = await session.execute(delete(model).where(model.id == record_id))
            await session.commit()
        if collection == "parties":
            self.party_cache.pop(record_id, None)
        return result.rowcount > 0

    @db_retry
    async def delete_where(self, collection: str, **filters) -> int:
        model = self.model_for(collection)
        async with self.session_factory() as session:
            result = await session.execute(self._filtered(model, delete(model), filters))
            await session.commit()
            return result.rowcount

    async def find_party(self, party_id: str) -> Optional[object]:
        """Loads a party; the SYSTEM party is synthesized and never stored."""
        if party_id == SYSTEM_PARTY_ID:
            return system_party()
        if party_id in self.party_cache:
            return self.party_cache[party_id]
        party = await self.get("parties", party_id)
        if party is not None:
            self.party_cache[party_id] = party
        return party
