"""
Profile resolution: find the role-tagged profile behind an authenticated user.

Lookup is by user id first, then by email. A profile found by email whose
user_id link is still empty gets linked in an explicit step; a failed link
is logged and reported on the result, never raised.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from feedportal.errors import ProfileLookupError, StoreError, ValidationError
from feedportal.roles import Role, parse_role
from feedportal.store import table
from feedportal.utils import now

logger = logging.getLogger(__name__)

PROFILES_TABLE = 'profiles'

# Fields a user may change on their own profile
EDITABLE_FIELDS = ('full_name', 'phone', 'branch', 'taluka')


@dataclass
class ProfileResolution:
    profile: Optional[dict] = None
    matched_by: Optional[str] = None  # 'user_id' or 'email'
    linked: bool = False
    link_error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.profile is not None


def _lookup(column, value):
    try:
        return table(PROFILES_TABLE).select('*').eq(column, value).maybe_single()
    except StoreError as e:
        raise ProfileLookupError(f"Profile lookup by {column} failed: {e}", table=PROFILES_TABLE) from e


def link_profile(profile: dict, user_id: str) -> Optional[str]:
    """Attach user_id to a profile. Returns an error message on failure."""
    try:
        updated = table(PROFILES_TABLE).eq('id', profile['id']).is_null('user_id').update({'user_id': user_id})
    except StoreError as e:
        logger.warning(f"Could not link profile {profile.get('id')} to user {user_id}: {e}")
        return str(e)
    if not updated:
        # Another sign-in linked this profile first
        logger.warning(f"Profile {profile.get('id')} was already linked; user {user_id} not attached")
        return "Profile is already linked to another account"
    profile['user_id'] = user_id
    return None


def resolve_profile(user_id: str, email: Optional[str] = None) -> ProfileResolution:
    """
    Resolve the profile for an authenticated identity.

    Raises ProfileLookupError when the store cannot be queried; a missing
    profile is returned as ProfileResolution(profile=None).
    """
    if not user_id:
        raise ValidationError("user_id is required", field='user_id')

    profile = _lookup('user_id', user_id)
    if profile:
        return ProfileResolution(profile=profile, matched_by='user_id')

    if not email:
        return ProfileResolution()

    profile = _lookup('email', email.strip().lower())
    if not profile:
        return ProfileResolution()

    resolution = ProfileResolution(profile=profile, matched_by='email')
    if not profile.get('user_id'):
        resolution.link_error = link_profile(profile, user_id)
        resolution.linked = resolution.link_error is None
    return resolution


def get_profile(profile_id: str) -> Optional[dict]:
    try:
        return table(PROFILES_TABLE).select('*').eq('id', profile_id).maybe_single()
    except StoreError as e:
        raise ProfileLookupError(str(e), table=PROFILES_TABLE) from e


def get_profile_by_email(email: str) -> Optional[dict]:
    return _lookup('email', (email or '').strip().lower())


def create_profile(email: str, full_name: str, role: str, user_id: Optional[str] = None,
                   district: Optional[str] = None, branch: Optional[str] = None) -> dict:
    """Insert a new profile; emails are unique."""
    email = (email or '').strip().lower()
    if not email:
        raise ValidationError("Email is required", field='email')
    rows = table(PROFILES_TABLE).insert({
        'email': email,
        'full_name': (full_name or '').strip(),
        'role': parse_role(role).value,
        'user_id': user_id,
        'district': district,
        'branch': branch,
        'status': 'Active',
        'joining_date': now().date().isoformat(),
        'created_at': now(),
    })
    return rows[0]


def update_profile(profile_id: str, updates: dict) -> Optional[dict]:
    """Apply self-service updates; fields outside EDITABLE_FIELDS are dropped."""
    if not profile_id:
        raise ValidationError("Profile ID is required", field='id')
    clean = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS}
    if clean:
        table(PROFILES_TABLE).eq('id', profile_id).update(clean)
    return get_profile(profile_id)


def get_team_members(district: str) -> list:
    """Active non-manager profiles in a district, by name."""
    return (
        table(PROFILES_TABLE).select('*')
        .eq('district', district)
        .neq('role', Role.MARKETING_MANAGER)
        .eq('status', 'Active')
        .order('full_name')
        .execute().data
    )


def get_profiles_by_role(role: str, active_only: bool = True) -> list:
    query = table(PROFILES_TABLE).select('*').eq('role', role)
    if active_only:
        query = query.eq('status', 'Active')
    return query.order('full_name').execute().data


def count_active_employees() -> int:
    result = (
        table(PROFILES_TABLE).select('id', count=True, head=True)
        .eq('status', 'Active').eq('role', Role.EMPLOYEE)
        .execute()
    )
    return result.count or 0
