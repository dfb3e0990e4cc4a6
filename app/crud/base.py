# app/crud/base.py
from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base_class import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """
    Helpers genéricos de acesso a dados.

    Diferente de um CRUD "commit a cada chamada", aqui só fazemos flush:
    quem decide o commit é o WifiStore (uma transação inteira ou um
    commit por passo, conforme a capacidade do store).
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        stmt = select(self.model).where(self.model.id == id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(
        self,
        db: AsyncSession,
        obj_in: Union[BaseModel, Dict[str, Any]],
    ) -> ModelType:
        """
        Cria um objeto e faz flush (o id já fica disponível).

        Aceita tanto:
        - um Pydantic BaseModel
        - quanto um dict já pronto (caso dos services).
        """
        if isinstance(obj_in, dict):
            obj_in_data = obj_in
        elif isinstance(obj_in, BaseModel):
            obj_in_data = obj_in.model_dump(exclude_unset=True)
        else:
            raise TypeError("obj_in must be a dict or a Pydantic BaseModel instance")

        db_obj = self.model(**obj_in_data)  # type: ignore[arg-type]
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj
