"""
Target routes: assign monthly targets, team performance, progress feed.

The owner assigns targets to marketing managers (or to the whole business);
a marketing manager assigns targets to the members of their district team.
"""
import logging

from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from feedportal import profiles, targets
from feedportal.dependencies import get_current_user, has_permission, require_permission
from feedportal.errors import StoreError, ValidationError
from feedportal.roles import PERM_ASSIGN_MANAGER_TARGETS, PERM_ASSIGN_TEAM_TARGETS, PERM_VIEW_TEAM, Role
from feedportal.templates_config import templates
from feedportal.utils import now

logger = logging.getLogger(__name__)

router = APIRouter()


def assignable_people(user) -> list:
    """(scope id, label) pairs the user may assign targets to."""
    if has_permission(user, PERM_ASSIGN_MANAGER_TARGETS):
        people = [(targets.ALL_SCOPE, 'Whole business')]
        people += [
            (p['id'], f"{p['full_name']} ({p.get('district') or 'no district'})")
            for p in profiles.get_profiles_by_role(Role.MARKETING_MANAGER.value)
        ]
        return people
    if has_permission(user, PERM_ASSIGN_TEAM_TARGETS) and user.district:
        return [(p['id'], p['full_name']) for p in profiles.get_team_members(user.district)]
    return []


def render_targets(request: Request, user, month: str, error: str = None,
                   form: dict = None, status_code: int = 200):
    rows, people = [], []
    try:
        people = assignable_people(user)
        names = dict(people)
        rows = [
            dict(t, assignee=names.get(t['employee_id'], t['employee_id']))
            for t in targets.list_targets(month)
            if t['employee_id'] in names
        ]
    except StoreError as e:
        logger.error(f"Target list failed: {e}")
        error = error or "Targets could not be loaded."

    return templates.TemplateResponse(
        request,
        "targets.html",
        {
            "request": request,
            "user": user,
            "targets": rows,
            "people": people,
            "month": month,
            "error": error,
            "saved": request.query_params.get('saved'),
            "form": form or {},
        },
        status_code=status_code
    )


@router.get("/targets", response_class=HTMLResponse)
async def targets_page(request: Request):
    """Targets the user has assigned for a month, with the assignment form."""
    user, redirect = require_permission(request, PERM_ASSIGN_MANAGER_TARGETS, PERM_ASSIGN_TEAM_TARGETS)
    if redirect:
        return redirect
    try:
        month = targets.month_key(request.query_params.get('month') or now())
    except ValidationError as e:
        return render_targets(request, user, targets.month_key(now()), error=str(e), status_code=400)
    return render_targets(request, user, month)


@router.post("/targets", response_class=HTMLResponse)
async def assign_target(request: Request):
    """Create or overwrite a monthly target."""
    user, redirect = require_permission(request, PERM_ASSIGN_MANAGER_TARGETS, PERM_ASSIGN_TEAM_TARGETS)
    if redirect:
        return redirect

    form = dict(await request.form())
    month = form.get('target_month') or targets.month_key(now())
    try:
        allowed = dict(assignable_people(user))
        if form.get('employee_id') not in allowed:
            raise ValidationError("You cannot assign a target to this person", field='employee_id')
        stored = targets.upsert_target(
            employee_id=form.get('employee_id'),
            target_month=month,
            revenue_target=form.get('revenue_target'),
            order_target=form.get('order_target'),
            assigned_by=user.profile_id,
            remarks=form.get('remarks'),
            district=user.district,
        )
    except ValidationError as e:
        return render_targets(request, user, targets.month_key(now()), error=str(e), form=form, status_code=400)
    except StoreError as e:
        logger.error(f"Target assignment failed: {e}")
        return render_targets(request, user, targets.month_key(now()),
                              error="Target could not be saved. Please try again.", form=form, status_code=503)

    return RedirectResponse(url=f"/targets?month={stored['target_month'][:7]}&saved=1", status_code=302)


@router.get("/targets/team", response_class=HTMLResponse)
async def team_page(request: Request):
    """District team ranked by overall progress."""
    user, redirect = require_permission(request, PERM_VIEW_TEAM)
    if redirect:
        return redirect

    # The owner may look at any district; a manager sees their own
    district = request.query_params.get('district') if user.role == Role.OWNER else user.district
    team_filter = request.query_params.get('filter') or 'all'
    error = None
    team = None
    if district:
        try:
            team = targets.team_performance(district, request.query_params.get('month'), team_filter)
        except ValidationError as e:
            error = str(e)
        except StoreError as e:
            logger.error(f"Team performance failed for {district}: {e}")
            error = "Team performance could not be loaded."

    return templates.TemplateResponse(
        request,
        "team.html",
        {
            "request": request,
            "user": user,
            "district": district,
            "team": team,
            "team_filter": team_filter,
            "filters": targets.TEAM_FILTERS,
            "error": error,
        }
    )


@router.get("/targets/progress")
async def progress_api(request: Request):
    """The caller's progress against their target for a month."""
    user = get_current_user(request)
    if not user:
        return JSONResponse({"error": "Not authenticated"}, status_code=401)

    month = request.query_params.get('month')
    # Managers are measured on their whole district, the owner on the whole business
    district = user.district if user.role == Role.MARKETING_MANAGER else None
    scope = targets.ALL_SCOPE if user.role == Role.OWNER else user.profile_id
    try:
        progress = targets.progress_for(scope, month, district=district)
    except ValidationError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except StoreError as e:
        logger.error(f"Progress lookup failed: {e}")
        return JSONResponse({"error": "Progress unavailable"}, status_code=503)

    return JSONResponse(jsonable_encoder({
        "month": targets.month_key(month or now()),
        "progress": progress.to_dict(),
    }))
