"""
Admin endpoints for the seat consistency audit.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import User
from ..schemas.consistency import ConsistencyFixResult, ConsistencyReport
from ..services.consistency_service import ConsistencyService
from ..utils.dependencies import require_admin

router = APIRouter(prefix="/consistency", tags=["consistency"])


@router.get("/report", response_model=ConsistencyReport)
async def get_consistency_report(
    admin_user: User = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """Compare occupancy flags with reservation links without changing them."""
    return await ConsistencyService(db).get_consistency_report()


@router.post("/repair", response_model=ConsistencyFixResult)
async def repair_seat_consistency(
    admin_user: User = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """Recompute occupancy flags from reservation links and drop orphaned links."""
    return await ConsistencyService(db).fix_seat_consistency()
