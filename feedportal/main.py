"""
Main FastAPI application entry point.
Feed Portal - sales, production and target tracking for a cattle-feed business.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from feedportal import dashboards
from feedportal.config import DASHBOARD_POLL_SECONDS, LOG_LEVEL
from feedportal.database import init_database
from feedportal.polling import SingleFlightPoller
from feedportal.routes import (
    announcement_routes,
    auth_routes,
    dashboard_routes,
    inventory_routes,
    order_routes,
    profile_routes,
    target_routes,
)
from feedportal.templates_config import templates

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Feed Portal",
    description="Orders, targets and dashboards for a cattle-feed business",
    version="1.0.0"
)


@app.on_event("startup")
async def startup_event():
    init_database()
    poller = SingleFlightPoller(
        dashboards.production_dashboard,
        interval=DASHBOARD_POLL_SECONDS,
        name="production-dashboard",
    )
    app.state.production_poller = poller
    poller.start()


@app.on_event("shutdown")
async def shutdown_event():
    poller = getattr(app.state, "production_poller", None)
    if poller is not None:
        await poller.stop()


# Root redirect
@app.get("/")
async def root():
    return RedirectResponse(url="/login", status_code=302)


# Include route modules
app.include_router(auth_routes.router, tags=["Authentication"])
app.include_router(dashboard_routes.router, tags=["Dashboard"])
app.include_router(order_routes.router, tags=["Orders"])
app.include_router(target_routes.router, tags=["Targets"])
app.include_router(profile_routes.router, tags=["User Profile"])
app.include_router(announcement_routes.router, tags=["Announcements"])
app.include_router(inventory_routes.router, tags=["Inventory"])


# Error handlers
@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    return templates.TemplateResponse(
        request,
        "error.html",
        {"request": request, "error_code": 404, "error_message": "Page not found"},
        status_code=404
    )


@app.exception_handler(500)
async def server_error_handler(request: Request, exc):
    logger.error(f"Unhandled error on {request.url.path}: {exc}")
    return templates.TemplateResponse(
        request,
        "error.html",
        {"request": request, "error_code": 500, "error_message": "Internal server error"},
        status_code=500
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("feedportal.main:app", host="127.0.0.1", port=8000, reload=True)
