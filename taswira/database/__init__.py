from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool

from .models import Base


class Database:
    def __init__(self, db_url: str):
        if db_url.startswith("sqlite"):
            # Single shared connection so in-memory databases survive across sessions
            engine_kwargs = {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        else:
            engine_kwargs = {
                "poolclass": AsyncAdaptedQueuePool,
                "pool_size": 10,  # Connections kept alive
                "max_overflow": 20,  # Additional connections under load
                "pool_timeout": 30,
                "pool_recycle": 3600,  # Recycle connections every hour
                "pool_pre_ping": True,
            }
        self.engine = create_async_engine(db_url, echo=False, **engine_kwargs)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    async def create_tables(self):
        """Create all tables"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    def get_session(self) -> AsyncSession:
        """Get database session"""
        return self.session_maker()

    async def close(self):
        await self.engine.dispose()


# Global database instance
db: Database = None


def get_db() -> Database:
    """Get global database instance"""
    return db


def init_db(db_url: str) -> Database:
    """Initialize database"""
    global db
    db = Database(db_url)
    return db
