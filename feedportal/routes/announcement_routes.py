"""
Announcement routes: the owner posts, everyone signed in reads.
"""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from feedportal.activity import list_announcements, post_announcement
from feedportal.dependencies import get_current_user, has_permission, require_permission
from feedportal.errors import StoreError, ValidationError
from feedportal.roles import PERM_SEND_ANNOUNCEMENT
from feedportal.templates_config import templates

logger = logging.getLogger(__name__)

router = APIRouter()


def render_announcements(request: Request, user, error: str = None, message: str = '', status_code: int = 200):
    items = []
    try:
        items = list_announcements()
    except StoreError as e:
        logger.error(f"Announcement list failed: {e}")
        error = error or "Announcements could not be loaded."
    return templates.TemplateResponse(
        request,
        "announcements.html",
        {
            "request": request,
            "user": user,
            "announcements": items,
            "can_post": has_permission(user, PERM_SEND_ANNOUNCEMENT),
            "error": error,
            "message": message,
        },
        status_code=status_code
    )


@router.get("/announcements", response_class=HTMLResponse)
async def announcements_page(request: Request):
    user = get_current_user(request)
    if not user:
        return RedirectResponse(url="/login", status_code=302)
    return render_announcements(request, user)


@router.post("/announcements", response_class=HTMLResponse)
async def create_announcement(request: Request):
    user, redirect = require_permission(request, PERM_SEND_ANNOUNCEMENT)
    if redirect:
        return redirect

    form = await request.form()
    message = form.get('message') or ''
    try:
        post_announcement(message, user.profile_id)
    except ValidationError as e:
        return render_announcements(request, user, error=str(e), message=message, status_code=400)
    except StoreError as e:
        logger.error(f"Announcement failed: {e}")
        return render_announcements(request, user, error="Announcement could not be sent.",
                                    message=message, status_code=503)

    return RedirectResponse(url="/announcements", status_code=302)
