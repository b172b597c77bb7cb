from fastapi import APIRouter, Depends

from myblog.database import DBHandle, get_db
from myblog.dependencies import get_current_user_id
from myblog.schemas import CommentResponse, CommentUpdate
from myblog.services import comment_service

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(
    comment_id: str,
    db: DBHandle = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return await comment_service.get_comment(db, comment_id)


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str,
    data: CommentUpdate,
    db: DBHandle = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return await comment_service.update_comment(db, comment_id, current_user_id, data)


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: str,
    db: DBHandle = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    await comment_service.delete_comment(db, comment_id, current_user_id)
