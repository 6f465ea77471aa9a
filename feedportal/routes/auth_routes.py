"""
Authentication routes: login, signup, logout.
"""
import logging

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from feedportal.auth import authenticate, create_session, delete_session, deserialize_session, serialize_session, signup
from feedportal.config import SESSION_COOKIE_NAME, SESSION_MAX_AGE
from feedportal.dependencies import get_current_user
from feedportal.errors import AuthenticationError, StoreError, ValidationError
from feedportal.roles import ROLE_SELECTIONS, dashboard_slug
from feedportal.templates_config import templates

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    """Display login page."""
    # If already logged in, redirect to dashboard
    user = get_current_user(request)
    if user:
        return RedirectResponse(url=user.dashboard_url, status_code=302)

    message = None
    if request.query_params.get("registered"):
        message = "Account created. You can sign in once your profile is approved."
    return templates.TemplateResponse(
        request,
        "login.html",
        {"request": request, "error": None, "message": message}
    )


@router.post("/login", response_class=HTMLResponse)
async def login_submit(request: Request, email: str = Form(...), password: str = Form(...)):
    """Handle login form submission."""
    try:
        account, profile, role = authenticate(email, password)
    except AuthenticationError as e:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"request": request, "error": str(e), "message": None, "email": email},
            status_code=401
        )
    except StoreError as e:
        logger.error(f"Login failed for {email}: {e}")
        return templates.TemplateResponse(
            request,
            "login.html",
            {"request": request, "error": "Unable to sign in right now. Please try again.",
             "message": None, "email": email},
            status_code=503
        )

    session_id = create_session(account['id'])
    token = serialize_session(session_id)
    logger.info(f"{role.value} {account['email']} signed in")

    response = RedirectResponse(url=f"/dashboard/{dashboard_slug(role)}", status_code=302)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=SESSION_MAX_AGE
    )
    return response


@router.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request):
    """Display the registration form."""
    return templates.TemplateResponse(
        request,
        "signup.html",
        {"request": request, "error": None, "form": {}, "role_choices": list(ROLE_SELECTIONS.items())}
    )


@router.post("/signup", response_class=HTMLResponse)
async def signup_submit(request: Request):
    """Handle registration form submission."""
    form = dict(await request.form())
    try:
        signup(form)
    except ValidationError as e:
        error, status_code = str(e), 400
    except StoreError as e:
        logger.error(f"Signup failed for {form.get('email')}: {e}")
        error, status_code = "Registration failed. Please try again.", 503
    else:
        return RedirectResponse(url="/login?registered=1", status_code=302)

    form.pop("password", None)
    form.pop("confirm_password", None)
    return templates.TemplateResponse(
        request,
        "signup.html",
        {"request": request, "error": error, "form": form, "role_choices": list(ROLE_SELECTIONS.items())},
        status_code=status_code
    )


@router.get("/logout")
async def logout(request: Request):
    """Log out the current user."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        session_id = deserialize_session(token)
        if session_id:
            delete_session(session_id)

    response = RedirectResponse(url="/login", status_code=302)
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response
