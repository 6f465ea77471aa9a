"""
Dashboard routes: one dashboard per role plus a JSON feed of the same data.
Owner, Marketing Manager, Production Manager, Employee / Marketing Executive.
"""
import logging

from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from feedportal import dashboards
from feedportal.dependencies import get_current_user
from feedportal.errors import StoreError, ValidationError
from feedportal.roles import dashboard_slug
from feedportal.templates_config import templates

logger = logging.getLogger(__name__)

router = APIRouter()


async def load_dashboard(request: Request, user, params: dict) -> dict:
    """Build the caller's dashboard; production data goes through the shared poller."""
    if dashboard_slug(user.role) == 'production':
        poller = getattr(request.app.state, 'production_poller', None)
        if poller is not None:
            return await poller.refresh()
    return dashboards.build_dashboard(user.role, user.profile, params)


@router.get("/dashboard")
async def dashboard_home(request: Request):
    """Send the user to the dashboard for their role."""
    user = get_current_user(request)
    if not user:
        return RedirectResponse(url="/login", status_code=302)
    return RedirectResponse(url=user.dashboard_url, status_code=302)


@router.get("/dashboard/{slug}", response_class=HTMLResponse)
async def role_dashboard(request: Request, slug: str):
    """Render a role dashboard. Users only see the dashboard of their own role."""
    user = get_current_user(request)
    if not user:
        return RedirectResponse(url="/login", status_code=302)
    if slug != dashboard_slug(user.role):
        return RedirectResponse(url=user.dashboard_url, status_code=302)

    params = {
        'month': request.query_params.get('month'),
        'filter': request.query_params.get('filter'),
    }
    error = None
    data = None
    try:
        data = await load_dashboard(request, user, params)
    except ValidationError as e:
        error = str(e)
    except StoreError as e:
        logger.error(f"{slug} dashboard failed for {user.identity.get('email')}: {e}")
        error = "Dashboard data could not be loaded. Showing the last known state."
        poller = getattr(request.app.state, 'production_poller', None)
        if slug == 'production' and poller is not None:
            data = poller.result

    return templates.TemplateResponse(
        request,
        f"dashboard_{slug}.html",
        {
            "request": request,
            "user": user,
            "data": data,
            "error": error,
            "flash_error": request.query_params.get('error'),
        }
    )


@router.get("/api/dashboard")
async def dashboard_api(request: Request):
    """The caller's dashboard as JSON."""
    user = get_current_user(request)
    if not user:
        return JSONResponse({"error": "Not authenticated"}, status_code=401)

    params = {
        'month': request.query_params.get('month'),
        'filter': request.query_params.get('filter'),
    }
    try:
        data = await load_dashboard(request, user, params)
    except ValidationError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except StoreError as e:
        logger.error(f"Dashboard API failed for {user.identity.get('email')}: {e}")
        return JSONResponse({"error": "Dashboard data unavailable"}, status_code=503)

    return JSONResponse(jsonable_encoder({
        "role": user.role.value,
        "dashboard": dashboard_slug(user.role),
        "data": data,
    }))
