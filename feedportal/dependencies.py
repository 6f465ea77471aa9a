"""
Common dependencies for route handlers.
"""
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.responses import RedirectResponse

from feedportal import roles
from feedportal.config import SESSION_COOKIE_NAME
from feedportal.session import Authenticated, SessionContext, build_context


def get_session_context(request: Request) -> SessionContext:
    """Build the caller's SessionContext from the session cookie."""
    return build_context(request.cookies.get(SESSION_COOKIE_NAME))


def get_current_user(request: Request) -> Optional[Authenticated]:
    """
    Get the current logged-in user.
    Returns the Authenticated context or None if not authenticated.
    """
    ctx = get_session_context(request)
    return ctx if ctx.is_authenticated else None


def require_auth(request: Request) -> Authenticated:
    """
    Dependency that requires authentication.
    Raises HTTPException if not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def has_permission(user: Authenticated, permission: str) -> bool:
    """Check if user has a specific permission."""
    return roles.has_permission(user.role, permission)


def require_permission(request: Request, *permissions: str):
    """
    Check if user holds any of the given permissions.
    Returns (user, None) if authorized, (None, redirect) otherwise.
    """
    user = get_current_user(request)
    if not user:
        return None, RedirectResponse(url="/login", status_code=302)
    if not any(has_permission(user, p) for p in permissions):
        return None, RedirectResponse(url=f"{user.dashboard_url}?error=unauthorized", status_code=302)
    return user, None
