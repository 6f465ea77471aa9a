"""
Per-request session context: who is calling and in which role.

A context is either Unauthenticated or Authenticated(identity, role,
profile). It is built from the signed session cookie on every request and
handed to route handlers; nothing about the caller is kept between requests.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union

from feedportal.auth import deserialize_session, validate_session
from feedportal.errors import ProfileLookupError, UnknownRoleError
from feedportal.profiles import resolve_profile
from feedportal.roles import Role, dashboard_slug, navigation_for, parse_role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Unauthenticated:
    reason: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return False


@dataclass(frozen=True)
class Authenticated:
    identity: dict
    role: Role
    profile: dict
    session_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def profile_id(self) -> str:
        return self.profile['id']

    @property
    def district(self) -> Optional[str]:
        return self.profile.get('district')

    @property
    def display_name(self) -> str:
        return self.profile.get('full_name') or self.identity.get('email', '')

    @property
    def dashboard_url(self) -> str:
        return f"/dashboard/{dashboard_slug(self.role)}"

    @property
    def navigation(self) -> list:
        return navigation_for(self.role)


SessionContext = Union[Unauthenticated, Authenticated]


def build_context(token: Optional[str]) -> SessionContext:
    """Resolve a session cookie value into a SessionContext."""
    if not token:
        return Unauthenticated()

    session_id = deserialize_session(token)
    if not session_id:
        return Unauthenticated('invalid_token')

    identity = validate_session(session_id)
    if not identity:
        return Unauthenticated('expired')

    try:
        resolution = resolve_profile(identity['id'], identity.get('email'))
    except ProfileLookupError as e:
        logger.error(f"Profile lookup failed for session of {identity.get('email')}: {e}")
        return Unauthenticated('lookup_failed')

    if not resolution.found:
        return Unauthenticated('pending_approval')

    try:
        role = parse_role(resolution.profile.get('role'))
    except UnknownRoleError as e:
        logger.error(f"Session rejected for {identity.get('email')}: {e}")
        return Unauthenticated('unknown_role')

    return Authenticated(identity=identity, role=role, profile=resolution.profile, session_id=session_id)
