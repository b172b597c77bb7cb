from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# --- User ---

class UserRegister(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=72)  # bcrypt input limit


class UserLogin(BaseModel):
    email: str
    password: str


class UserUpdate(BaseModel):
    # Empty string means "leave unchanged".
    username: str = Field("", max_length=100)
    email: str = Field("", max_length=255)
    password: str = Field("", max_length=72)


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# --- Blog ---

class BlogCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    content: str = Field(min_length=1)


class BlogUpdate(BaseModel):
    title: str = Field("", max_length=300)
    content: str = ""


class BlogResponse(BaseModel):
    id: str
    user_id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Comment ---

class CommentCreate(BaseModel):
    content: str = Field(min_length=1)


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1)


class CommentResponse(BaseModel):
    id: str
    blog_id: str
    user_id: str
    content: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Ranking ---

class RankingResponse(BaseModel):
    blog_id: str
    ranking_position: int
    score: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_blogs: int
    total_comments: int
    total_users: int
    avg_comments_per_blog: float
    cache_info: dict = {}
