import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from myblog.cache import cache
from myblog.config import settings
from myblog.database import database
from myblog.errors import AppError
from myblog.middleware import TimingMiddleware
from myblog.routers import blogs, comments, metrics, rankings, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; without Redis the API still serves, uncached.
    await cache.connect()
    yield
    # Shutdown
    await cache.disconnect()
    await database.dispose()


app = FastAPI(
    title="MyBlog API",
    description="Blog backend with users, blogs, comments and a popular-posts ranking",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        detail = "Internal server error"
    else:
        detail = exc.message
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


# Middleware
app.add_middleware(TimingMiddleware, timeout=settings.REQUEST_TIMEOUT_SECONDS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Accept", "Authorization", "Content-Type"],
    max_age=300,
)

# Routers
app.include_router(users.router)
app.include_router(blogs.router)
app.include_router(comments.router)
app.include_router(rankings.router)
app.include_router(metrics.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
