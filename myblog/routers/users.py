from fastapi import APIRouter, Depends

from myblog.database import DBHandle, get_db
from myblog.dependencies import get_current_user_id
from myblog.schemas import BlogResponse, TokenResponse, UserLogin, UserRegister, UserResponse, UserUpdate
from myblog.services import blog_service, user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post("/register", status_code=201, response_model=UserResponse)
async def register(data: UserRegister, db: DBHandle = Depends(get_db)):
    return await user_service.register(db, data)


@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: DBHandle = Depends(get_db)):
    return TokenResponse(access_token=await user_service.login(db, data))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    db: DBHandle = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return await user_service.get_user(db, user_id, current_user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: UserUpdate,
    db: DBHandle = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return await user_service.update_user(db, user_id, current_user_id, data)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    db: DBHandle = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    await user_service.delete_user(db, user_id, current_user_id)


@router.get("/{user_id}/blogs", response_model=list[BlogResponse])
async def get_user_blogs(
    user_id: str,
    db: DBHandle = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return await blog_service.get_blogs_by_user(db, user_id)
