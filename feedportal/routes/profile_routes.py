"""
User Profile routes: view profile, update contact details.
"""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from feedportal.dependencies import get_current_user
from feedportal.errors import StoreError, ValidationError
from feedportal.profiles import EDITABLE_FIELDS, update_profile
from feedportal.templates_config import templates

logger = logging.getLogger(__name__)

router = APIRouter()


def render_profile(request: Request, user, profile: dict, error: str = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "profile.html",
        {
            "request": request,
            "user": user,
            "profile": profile,
            "editable": EDITABLE_FIELDS,
            "saved": request.query_params.get('saved'),
            "error": error,
        },
        status_code=status_code
    )


@router.get("/profile", response_class=HTMLResponse)
async def view_profile(request: Request):
    """Display user's own profile."""
    user = get_current_user(request)
    if not user:
        return RedirectResponse(url="/login", status_code=302)
    return render_profile(request, user, user.profile)


@router.post("/profile", response_class=HTMLResponse)
async def update_own_profile(request: Request):
    """Save the contact fields a user may change."""
    user = get_current_user(request)
    if not user:
        return RedirectResponse(url="/login", status_code=302)

    form = await request.form()
    updates = {k: (form.get(k) or '').strip() or None for k in EDITABLE_FIELDS if k in form}
    phone = updates.get('phone')
    try:
        if phone and not (phone.isdigit() and len(phone) == 10):
            raise ValidationError("Phone number must be 10 digits", field='phone')
        if 'full_name' in updates and not updates['full_name']:
            raise ValidationError("Full name cannot be empty", field='full_name')
        update_profile(user.profile_id, updates)
    except ValidationError as e:
        return render_profile(request, user, dict(user.profile, **updates), error=str(e), status_code=400)
    except StoreError as e:
        logger.error(f"Profile update failed for {user.profile_id}: {e}")
        return render_profile(request, user, user.profile, error="Profile could not be saved.", status_code=503)

    return RedirectResponse(url="/profile?saved=1", status_code=302)
