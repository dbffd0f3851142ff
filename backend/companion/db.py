from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from companion.config import ASYNC_DB_URL

class Base(DeclarativeBase):
    pass

def make_engine(url: str = ASYNC_DB_URL):
    return create_async_engine(url, echo=False, pool_pre_ping=True)

def make_session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

engine = make_engine()
SessionLocal = make_session_maker(engine)

async def init_db(target_engine=engine):
    # 테이블이 없으면 생성 (로컬 단일 사용자 저장소)
    import companion.models  # noqa: F401
    async with target_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
