# app/db/session.py

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.db.base import Base


# ----------------------------------------------------------------------
# Engine assíncrono usando a URL já tratada em settings.database_url
# ----------------------------------------------------------------------
engine = create_async_engine(
    settings.database_url,
    future=True,
    echo=False,  # coloque True se quiser ver o SQL no log
)

# ----------------------------------------------------------------------
# Factory de sessão assíncrona
# ----------------------------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ----------------------------------------------------------------------
# Inicialização do banco (chamada no startup)
# ----------------------------------------------------------------------
async def init_db() -> None:
    """
    Cria as tabelas no banco com base no Base.metadata.

    Em produção, o ideal é usar Alembic para migrations.
    Para desenvolvimento/local, isso aqui resolve.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

