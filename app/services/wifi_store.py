# app/services/wifi_store.py
"""
Adaptador do store usado pelas operações de sessão WiFi.

`supports_transactions=True`: cada operação é UMA transação; os passos
intermediários só fazem flush e o commit acontece no fim do `unit()`.

`supports_transactions=False`: modo sequencial; cada `checkpoint()` é um
commit, então cada passo fica durável sozinho. A ordem dos passos e as
chaves de idempotência tornam seguro reexecutar uma operação interrompida;
o que sobrar de drift nos contadores é corrigido pelo sync de consistência.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.session import AsyncSessionLocal


class WifiStore:
    def __init__(
        self,
        session_factory=AsyncSessionLocal,
        supports_transactions: Optional[bool] = None,
    ) -> None:
        self.session_factory = session_factory
        if supports_transactions is None:
            supports_transactions = settings.WIFI_STORE_TRANSACTIONS
        self.supports_transactions = supports_transactions

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def checkpoint(self, db: AsyncSession) -> None:
        if self.supports_transactions:
            await db.flush()
        else:
            await db.commit()

    @asynccontextmanager
    async def unit(self, db: AsyncSession) -> AsyncIterator[AsyncSession]:
        """
        Delimita uma operação: commit no fim, rollback em qualquer erro.

        No modo sequencial o rollback só desfaz o que ainda não passou
        por um checkpoint.
        """
        try:
            yield db
            await db.commit()
        except Exception:
            await db.rollback()
            raise
