"""Dependency injection utilities for FastAPI routes."""

from typing import Annotated

from fastapi import Depends, Header, Request

from biolink.core.config import get_settings
from biolink.core.session import ViewerSession

settings = get_settings()


def get_token(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Extract the viewer's token from the Authorization header or auth cookie."""
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return request.cookies.get(settings.auth_cookie_name) or None


def get_viewer_session(
    token: Annotated[str | None, Depends(get_token)],
    referer: Annotated[str | None, Header()] = None,
) -> ViewerSession:
    """Build the explicit session passed to the analytics operations."""
    return ViewerSession(credential=token, referrer=referer or None)


# Type aliases for dependency injection
CurrentSession = Annotated[ViewerSession, Depends(get_viewer_session)]
