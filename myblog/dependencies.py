from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from myblog.config import settings
from myblog.errors import AuthenticationError
from myblog.security import decode_access_token

_bearer = HTTPBearer(auto_error=False)


class PaginationParams:
    """
    Reusable FastAPI dependency that parses pagination query parameters.

    Usage in a router::

        @router.get("/blogs")
        async def list_blogs(pagination: PaginationParams = Depends()):
            ...

    Attributes
    ----------
    page:
        0-based page number.
    per_page:
        Items per page, clamped to ``settings.MAX_PAGE_SIZE`` regardless of
        the value supplied by the caller.
    """

    def __init__(
        self,
        page: int = Query(0, ge=0, description="Page number (0-based)."),
        per_page: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=100,
            description="Number of blogs per page (max 100).",
        ),
    ) -> None:
        self.page = page
        # Respect the application-level ceiling even if the schema already
        # validates le=100, so a settings change is sufficient.
        self.per_page = min(per_page, settings.MAX_PAGE_SIZE)


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """Resolve the caller from ``Authorization: Bearer <jwt>``; 401 when absent or invalid."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("authentication required")
    return decode_access_token(credentials.credentials)
