"""
Order routes: paged order list, order entry, status updates and statistics.
"""
import logging
import math

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from feedportal import orders
from feedportal.config import BAG_OPTIONS, DEFAULT_PAGE_SIZE, FEED_CATEGORIES, ORDER_STATUSES
from feedportal.dependencies import get_current_user, has_permission, require_permission
from feedportal.errors import StoreError, ValidationError
from feedportal.roles import (
    PERM_CREATE_ORDER,
    PERM_UPDATE_ORDER_STATUS,
    PERM_VIEW_ALL_ORDERS,
    PERM_VIEW_DISTRICT_ORDERS,
)
from feedportal.templates_config import templates

logger = logging.getLogger(__name__)

router = APIRouter()


def order_scope(user) -> dict:
    """Which orders a user may see: all, their district, or their own."""
    if has_permission(user, PERM_VIEW_ALL_ORDERS):
        return {}
    if has_permission(user, PERM_VIEW_DISTRICT_ORDERS) and user.district:
        return {'district': user.district}
    return {'employee_id': user.profile_id}


def render_orders(request: Request, user, page: int = 1, status: str = 'all',
                  error: str = None, form: dict = None, status_code: int = 200):
    rows, total = [], 0
    try:
        rows, total = orders.list_orders(page=page, page_size=DEFAULT_PAGE_SIZE, status=status, **order_scope(user))
    except ValidationError as e:
        error = error or str(e)
        status_code = 400
    except StoreError as e:
        logger.error(f"Order list failed for {user.identity.get('email')}: {e}")
        error = error or "Orders could not be loaded."

    return templates.TemplateResponse(
        request,
        "orders.html",
        {
            "request": request,
            "user": user,
            "orders": rows,
            "total": total,
            "page": page,
            "pages": max(math.ceil(total / DEFAULT_PAGE_SIZE), 1),
            "status_filter": status,
            "statuses": ORDER_STATUSES,
            "categories": FEED_CATEGORIES,
            "bag_options": BAG_OPTIONS,
            "can_create": has_permission(user, PERM_CREATE_ORDER),
            "can_update": has_permission(user, PERM_UPDATE_ORDER_STATUS),
            "created": request.query_params.get('created'),
            "error": error,
            "form": form or {},
        },
        status_code=status_code
    )


@router.get("/orders", response_class=HTMLResponse)
async def list_orders_page(request: Request, page: int = Query(1, ge=1), status: str = Query('all')):
    """Paged order list, newest first."""
    user = get_current_user(request)
    if not user:
        return RedirectResponse(url="/login", status_code=302)
    return render_orders(request, user, page=page, status=status)


@router.post("/orders", response_class=HTMLResponse)
async def create_order_submit(request: Request):
    """Record a new order from the order form."""
    user, redirect = require_permission(request, PERM_CREATE_ORDER)
    if redirect:
        return redirect

    form = dict(await request.form())
    try:
        orders.create_order(user.profile, form)
    except ValidationError as e:
        return render_orders(request, user, error=str(e), form=form, status_code=400)
    except StoreError as e:
        logger.error(f"Order creation failed for {user.identity.get('email')}: {e}")
        return render_orders(request, user, error="Order could not be saved. Please try again.",
                             form=form, status_code=503)

    return RedirectResponse(url="/orders?created=1", status_code=302)


@router.post("/orders/bulk-status")
async def bulk_status_update(request: Request):
    """Set one status on several orders."""
    user = get_current_user(request)
    if not user:
        return JSONResponse({"error": "Not authenticated"}, status_code=401)
    if not has_permission(user, PERM_UPDATE_ORDER_STATUS):
        return JSONResponse({"error": "Not allowed"}, status_code=403)

    form = await request.form()
    order_ids = [oid for oid in form.getlist('order_ids') if oid]
    try:
        updated = orders.bulk_update_order_status(order_ids, form.get('status'))
    except ValidationError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except StoreError as e:
        logger.error(f"Bulk status update failed: {e}")
        return JSONResponse({"error": "Update failed"}, status_code=503)

    logger.info(f"{user.identity.get('email')} set {updated} orders to {form.get('status')}")
    return JSONResponse({"success": True, "updated": updated})


@router.post("/orders/{order_id}/status")
async def order_status_update(request: Request, order_id: str):
    """Set the status of a single order."""
    user = get_current_user(request)
    if not user:
        return JSONResponse({"error": "Not authenticated"}, status_code=401)
    if not has_permission(user, PERM_UPDATE_ORDER_STATUS):
        return JSONResponse({"error": "Not allowed"}, status_code=403)

    form = await request.form()
    try:
        found = orders.update_order_status(order_id, form.get('status'))
    except ValidationError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except StoreError as e:
        logger.error(f"Status update for order {order_id} failed: {e}")
        return JSONResponse({"error": "Update failed"}, status_code=503)

    if not found:
        return JSONResponse({"error": "Order not found"}, status_code=404)
    return JSONResponse({"success": True, "status": orders.normalize_status(form.get('status'))})


@router.get("/orders/stats")
async def order_stats(request: Request):
    """Order counts per status within the caller's scope."""
    user = get_current_user(request)
    if not user:
        return JSONResponse({"error": "Not authenticated"}, status_code=401)

    scope = order_scope(user)
    try:
        if 'employee_id' in scope:
            summary = orders.aggregate_orders(employee_id=scope['employee_id'])
        else:
            summary = orders.order_statistics(district=scope.get('district'))
    except StoreError as e:
        logger.error(f"Order statistics failed: {e}")
        return JSONResponse({"error": "Statistics unavailable"}, status_code=503)
    return JSONResponse(summary.to_dict())
