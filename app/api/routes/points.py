# app/api/routes/points.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_active_user, get_db_session
from app.crud.point_transaction import point_transaction as crud_point_transaction
from app.crud.user import user as crud_user
from app.models.user import User
from app.schemas.point_transaction import PointsSummary

router = APIRouter()


@router.get("/", response_model=PointsSummary)
async def get_points(
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_active_user),
):
    """Saldo atual, total vitalício e as últimas entradas do ledger."""
    user = await crud_user.get_fresh(db, current_user.id)
    transactions = await crud_point_transaction.list_for_user(
        db,
        user_id=current_user.id,
        limit=limit,
    )
    return PointsSummary(
        points=user.points,
        all_time_points=user.all_time_points,
        transactions=transactions,
    )
