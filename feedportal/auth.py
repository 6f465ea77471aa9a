"""
Authentication utilities: password hashing, session management, login and signup.
"""
import logging
import secrets
from datetime import timedelta
from typing import Optional

import bcrypt
from itsdangerous import BadData, URLSafeTimedSerializer

from feedportal.config import MIN_PASSWORD_LENGTH, SECRET_KEY, SESSION_MAX_AGE
from feedportal.errors import AuthenticationError, StoreError, UnknownRoleError, ValidationError
from feedportal.profiles import create_profile, get_profile_by_email, resolve_profile
from feedportal.roles import Role, parse_role, role_from_selection
from feedportal.store import table
from feedportal.utils import now, parse_timestamp

logger = logging.getLogger(__name__)

ACCOUNTS_TABLE = 'accounts'
SESSIONS_TABLE = 'sessions'


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password_bytes, salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def generate_session_id() -> str:
    """Generate a unique session ID."""
    return secrets.token_urlsafe(32)


# ── Sessions ─────────────────────────────────────────────────────────

def create_session(user_id: str) -> str:
    """Create a new session for an account and return the session ID."""
    session_id = generate_session_id()
    created = now()
    # One live session per account
    table(SESSIONS_TABLE).eq('user_id', user_id).delete()
    table(SESSIONS_TABLE).insert({
        'session_id': session_id,
        'user_id': user_id,
        'created_at': created,
        'expires_at': created + timedelta(seconds=SESSION_MAX_AGE),
    })
    return session_id


def validate_session(session_id: str) -> Optional[dict]:
    """
    Validate a session ID and return the account if valid.
    Returns None if the session is unknown or expired.
    """
    if not session_id:
        return None

    session = table(SESSIONS_TABLE).select('*').eq('session_id', session_id).maybe_single()
    if not session:
        return None

    expires_at = parse_timestamp(session['expires_at'])
    if expires_at is None or now() > expires_at:
        delete_session(session_id)
        return None

    return get_account(session['user_id'])


def delete_session(session_id: str) -> None:
    """Delete a session (logout)."""
    table(SESSIONS_TABLE).eq('session_id', session_id).delete()


# ── Accounts ─────────────────────────────────────────────────────────

def _public(account: Optional[dict]) -> Optional[dict]:
    if account is None:
        return None
    return {k: v for k, v in account.items() if k != 'password_hash'}


def get_account(account_id: str) -> Optional[dict]:
    return _public(table(ACCOUNTS_TABLE).select('*').eq('id', account_id).maybe_single())


def get_account_by_email(email: str) -> Optional[dict]:
    return table(ACCOUNTS_TABLE).select('*').eq('email', (email or '').strip().lower()).maybe_single()


def create_account(email: str, password: str, full_name: str = '') -> dict:
    rows = table(ACCOUNTS_TABLE).insert({
        'email': email.strip().lower(),
        'password_hash': hash_password(password),
        'full_name': (full_name or '').strip(),
        'created_at': now(),
    })
    return _public(rows[0])


def delete_account(account_id: str) -> None:
    table(SESSIONS_TABLE).eq('user_id', account_id).delete()
    table(ACCOUNTS_TABLE).eq('id', account_id).delete()


def authenticate(email: str, password: str):
    """
    Check credentials and resolve the account's profile.

    Returns (account, profile, role). Raises AuthenticationError for bad
    credentials, a missing profile or a role outside the supported set.
    """
    email = (email or '').strip().lower()
    if not email or not password:
        raise AuthenticationError("Email and password are required")

    account = get_account_by_email(email)
    if not account or not verify_password(password, account['password_hash']):
        raise AuthenticationError("Invalid email or password")

    resolution = resolve_profile(account['id'], account['email'])
    if not resolution.found:
        raise AuthenticationError("Your account is not approved by admin")
    if resolution.link_error:
        logger.warning(f"Login for {email} proceeds with unlinked profile: {resolution.link_error}")

    try:
        role = parse_role(resolution.profile.get('role'))
    except UnknownRoleError as e:
        logger.error(f"Profile {resolution.profile.get('id')} carries an unsupported role: {e}")
        raise AuthenticationError("Your account role is not recognised. Contact the administrator.") from e

    return _public(account), resolution.profile, role


def validate_signup(form: dict) -> Role:
    """Check signup fields before anything is written; returns the chosen role."""
    for field_name, label in (('full_name', 'Full name'), ('email', 'Email'),
                              ('password', 'Password'), ('confirm_password', 'Confirm password'),
                              ('role', 'Role')):
        if not (form.get(field_name) or '').strip():
            raise ValidationError(f"{label} is required", field=field_name)

    email = form['email'].strip()
    if '@' not in email or email.startswith('@') or email.endswith('@'):
        raise ValidationError("Enter a valid email address", field='email')
    if len(form['password']) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field='password'
        )
    if form['password'] != form['confirm_password']:
        raise ValidationError("Passwords do not match", field='confirm_password')

    return role_from_selection(form['role'])


def signup(form: dict) -> dict:
    """
    Register an account and its role profile.

    If the profile cannot be stored the account is removed again so that a
    retry with the same email is possible.
    """
    role = validate_signup(form)
    email = form['email'].strip().lower()
    if get_account_by_email(email):
        raise ValidationError("An account with this email already exists", field='email')

    existing = get_profile_by_email(email)
    account = create_account(email, form['password'], form['full_name'])
    if existing:
        # Profile set up ahead of signup; it is linked on first login
        logger.info(f"Account {email} registered against existing profile {existing['id']}")
        return {'account': account, 'profile': existing}

    try:
        profile = create_profile(
            email=email,
            full_name=form['full_name'],
            role=role,
            user_id=account['id'],
            district=(form.get('district') or '').strip() or None,
            branch=(form.get('branch') or '').strip() or None,
        )
    except StoreError as e:
        logger.error(f"Profile creation failed for {email}, removing account: {e}")
        delete_account(account['id'])
        raise

    logger.info(f"New {role.value} account registered: {email}")
    return {'account': account, 'profile': profile}


# ── Cookie signing ───────────────────────────────────────────────────

def get_serializer():
    """Get the URL-safe serializer for session cookies."""
    return URLSafeTimedSerializer(SECRET_KEY)


def serialize_session(session_id: str) -> str:
    """Serialize session ID for cookie storage."""
    return get_serializer().dumps(session_id)


def deserialize_session(token: str) -> Optional[str]:
    """Deserialize session ID from cookie; tampered or expired tokens give None."""
    try:
        return get_serializer().loads(token, max_age=SESSION_MAX_AGE)
    except BadData:
        return None
