"""
Inventory routes: the stock list, and product maintenance for the plant.
"""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from feedportal import inventory
from feedportal.dependencies import has_permission, require_permission
from feedportal.errors import StoreError, ValidationError
from feedportal.roles import PERM_MANAGE_INVENTORY, PERM_VIEW_INVENTORY
from feedportal.templates_config import templates

logger = logging.getLogger(__name__)

router = APIRouter()


def render_inventory(request: Request, user, error: str = None, form: dict = None, status_code: int = 200):
    products = []
    try:
        products = inventory.list_products()
    except StoreError as e:
        logger.error(f"Inventory list failed: {e}")
        error = error or "Inventory could not be loaded."
    return templates.TemplateResponse(
        request,
        "inventory.html",
        {
            "request": request,
            "user": user,
            "products": products,
            "can_manage": has_permission(user, PERM_MANAGE_INVENTORY),
            "saved": request.query_params.get('saved'),
            "error": error,
            "form": form or {},
        },
        status_code=status_code
    )


@router.get("/inventory", response_class=HTMLResponse)
async def inventory_page(request: Request):
    user, redirect = require_permission(request, PERM_VIEW_INVENTORY)
    if redirect:
        return redirect
    return render_inventory(request, user)


@router.post("/inventory", response_class=HTMLResponse)
async def add_product_submit(request: Request):
    user, redirect = require_permission(request, PERM_MANAGE_INVENTORY)
    if redirect:
        return redirect

    form = dict(await request.form())
    try:
        inventory.add_product(form, actor_id=user.profile_id)
    except ValidationError as e:
        return render_inventory(request, user, error=str(e), form=form, status_code=400)
    except StoreError as e:
        logger.error(f"Product add failed: {e}")
        return render_inventory(request, user, error="Product could not be saved.", form=form, status_code=503)

    return RedirectResponse(url="/inventory?saved=1", status_code=302)


@router.post("/inventory/{product_id}", response_class=HTMLResponse)
async def update_product_submit(request: Request, product_id: str):
    user, redirect = require_permission(request, PERM_MANAGE_INVENTORY)
    if redirect:
        return redirect

    form = dict(await request.form())
    try:
        product = inventory.update_product(product_id, form, actor_id=user.profile_id)
    except ValidationError as e:
        return render_inventory(request, user, error=str(e), status_code=400)
    except StoreError as e:
        logger.error(f"Product {product_id} update failed: {e}")
        return render_inventory(request, user, error="Product could not be saved.", status_code=503)

    if product is None:
        return render_inventory(request, user, error="Product not found", status_code=404)
    return RedirectResponse(url="/inventory?saved=1", status_code=302)


@router.post("/inventory/{product_id}/deactivate", response_class=HTMLResponse)
async def deactivate_product_submit(request: Request, product_id: str):
    user, redirect = require_permission(request, PERM_MANAGE_INVENTORY)
    if redirect:
        return redirect

    try:
        removed = inventory.deactivate_product(product_id, actor_id=user.profile_id)
    except StoreError as e:
        logger.error(f"Product {product_id} deactivation failed: {e}")
        return render_inventory(request, user, error="Product could not be removed.", status_code=503)

    if not removed:
        return render_inventory(request, user, error="Product not found", status_code=404)
    return RedirectResponse(url="/inventory?saved=1", status_code=302)
