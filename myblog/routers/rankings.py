from fastapi import APIRouter, Depends, Query

from myblog.database import DBHandle, get_read_db
from myblog.schemas import RankingResponse
from myblog.services import ranking_service

router = APIRouter(prefix="/api/v1/rankings", tags=["rankings"])


@router.get("", response_model=list[RankingResponse])
async def list_rankings(
    limit: int = Query(10, ge=1, le=100, description="Number of top entries to return."),
    db: DBHandle = Depends(get_read_db),
):
    """Current popular-posts generation, best first.  Recomputed by the batch job."""
    return await ranking_service.get_rankings(db, limit)
