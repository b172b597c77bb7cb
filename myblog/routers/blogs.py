from fastapi import APIRouter, Depends

from myblog.database import DBHandle, get_db
from myblog.dependencies import PaginationParams, get_current_user_id
from myblog.schemas import BlogCreate, BlogResponse, BlogUpdate, CommentCreate, CommentResponse
from myblog.services import blog_service, comment_service

router = APIRouter(
    prefix="/api/v1/blogs",
    tags=["blogs"],
    dependencies=[Depends(get_current_user_id)],
)


@router.post("", status_code=201, response_model=BlogResponse)
async def create_blog(
    data: BlogCreate,
    db: DBHandle = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return await blog_service.create_blog(db, current_user_id, data)


@router.get("", response_model=list[BlogResponse])
async def list_blogs(pagination: PaginationParams = Depends(), db: DBHandle = Depends(get_db)):
    return await blog_service.get_all_blogs(db, pagination.page, pagination.per_page)


@router.get("/{blog_id}", response_model=BlogResponse)
async def get_blog(blog_id: str, db: DBHandle = Depends(get_db)):
    return await blog_service.get_blog(db, blog_id)


@router.put("/{blog_id}", response_model=BlogResponse)
async def update_blog(
    blog_id: str,
    data: BlogUpdate,
    db: DBHandle = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return await blog_service.update_blog(db, blog_id, current_user_id, data)


@router.delete("/{blog_id}", status_code=204)
async def delete_blog(
    blog_id: str,
    db: DBHandle = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    await blog_service.delete_blog(db, blog_id, current_user_id)


@router.post("/{blog_id}/comments", status_code=201, response_model=CommentResponse)
async def create_comment(
    blog_id: str,
    data: CommentCreate,
    db: DBHandle = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return await comment_service.create_comment(db, blog_id, current_user_id, data)


@router.get("/{blog_id}/comments", response_model=list[CommentResponse])
async def list_comments(blog_id: str, db: DBHandle = Depends(get_db)):
    return await comment_service.get_comments_by_blog(db, blog_id)
