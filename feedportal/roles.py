"""
Role-based access control for the feed portal.

Roles:
1. OWNER - Business owner (all districts, revenue, targets for managers)
2. MARKETING_MANAGER - District marketing lead (team targets, district sales)
3. PRODUCTION_MANAGER - Plant lead (inventory, order fulfilment)
4. EMPLOYEE - Field employee (own orders and targets)
5. MARKETING_EXECUTIVE - District field executive (own orders and targets)
"""
from enum import Enum

from feedportal.errors import UnknownRoleError


class Role(str, Enum):
    OWNER = 'Owner'
    MARKETING_MANAGER = 'Marketing Manager'
    PRODUCTION_MANAGER = 'Production Manager'
    EMPLOYEE = 'Employee'
    MARKETING_EXECUTIVE = 'Marketing Executive'


# Signup role picker values
ROLE_SELECTIONS = {
    'owner': Role.OWNER,
    'marketing': Role.MARKETING_MANAGER,
    'production': Role.PRODUCTION_MANAGER,
    'employee': Role.EMPLOYEE,
    'executive': Role.MARKETING_EXECUTIVE,
}

# Dashboard slug per role
DASHBOARDS = {
    Role.OWNER: 'owner',
    Role.MARKETING_MANAGER: 'marketing',
    Role.PRODUCTION_MANAGER: 'production',
    Role.EMPLOYEE: 'employee',
    Role.MARKETING_EXECUTIVE: 'employee',
}

# Navigation entries per role: (label, url)
NAVIGATION = {
    Role.OWNER: [
        ('Dashboard', '/dashboard/owner'),
        ('Orders', '/orders'),
        ('Targets', '/targets'),
        ('Announcements', '/announcements'),
        ('Inventory', '/inventory'),
        ('Profile', '/profile'),
    ],
    Role.MARKETING_MANAGER: [
        ('Dashboard', '/dashboard/marketing'),
        ('Orders', '/orders'),
        ('Team', '/targets/team'),
        ('Targets', '/targets'),
        ('Profile', '/profile'),
    ],
    Role.PRODUCTION_MANAGER: [
        ('Dashboard', '/dashboard/production'),
        ('Orders', '/orders'),
        ('Inventory', '/inventory'),
        ('Profile', '/profile'),
    ],
    Role.EMPLOYEE: [
        ('Dashboard', '/dashboard/employee'),
        ('Orders', '/orders'),
        ('Profile', '/profile'),
    ],
    Role.MARKETING_EXECUTIVE: [
        ('Dashboard', '/dashboard/employee'),
        ('Orders', '/orders'),
        ('Profile', '/profile'),
    ],
}

# Permissions
PERM_VIEW_ALL_ORDERS = 'view_all_orders'
PERM_VIEW_DISTRICT_ORDERS = 'view_district_orders'
PERM_CREATE_ORDER = 'create_order'
PERM_UPDATE_ORDER_STATUS = 'update_order_status'
PERM_ASSIGN_MANAGER_TARGETS = 'assign_manager_targets'
PERM_ASSIGN_TEAM_TARGETS = 'assign_team_targets'
PERM_VIEW_TEAM = 'view_team'
PERM_SEND_ANNOUNCEMENT = 'send_announcement'
PERM_VIEW_INVENTORY = 'view_inventory'
PERM_MANAGE_INVENTORY = 'manage_inventory'

ROLE_PERMISSIONS = {
    Role.OWNER: [
        PERM_VIEW_ALL_ORDERS,
        PERM_UPDATE_ORDER_STATUS,
        PERM_ASSIGN_MANAGER_TARGETS,
        PERM_VIEW_TEAM,
        PERM_SEND_ANNOUNCEMENT,
        PERM_VIEW_INVENTORY,
    ],
    Role.MARKETING_MANAGER: [
        PERM_VIEW_DISTRICT_ORDERS,
        PERM_CREATE_ORDER,
        PERM_ASSIGN_TEAM_TARGETS,
        PERM_VIEW_TEAM,
    ],
    Role.PRODUCTION_MANAGER: [
        PERM_VIEW_ALL_ORDERS,
        PERM_UPDATE_ORDER_STATUS,
        PERM_VIEW_INVENTORY,
        PERM_MANAGE_INVENTORY,
    ],
    Role.EMPLOYEE: [
        PERM_CREATE_ORDER,
    ],
    Role.MARKETING_EXECUTIVE: [
        PERM_CREATE_ORDER,
    ],
}


def parse_role(value) -> Role:
    """Map a stored role string to a Role; unknown strings are rejected."""
    if isinstance(value, Role):
        return value
    text = (value or '').strip().lower()
    for role in Role:
        if role.value.lower() == text:
            return role
    raise UnknownRoleError(f"Unknown role: {value!r}", field='role')


def role_from_selection(selection: str) -> Role:
    """Map the signup role picker value to a Role."""
    key = (selection or '').strip().lower()
    if key not in ROLE_SELECTIONS:
        raise UnknownRoleError(f"Unknown role selection: {selection!r}", field='role')
    return ROLE_SELECTIONS[key]


def dashboard_slug(role: Role) -> str:
    return DASHBOARDS[role]


def navigation_for(role: Role) -> list:
    return NAVIGATION[role]


def has_permission(role: Role, permission: str) -> bool:
    """Check if a role grants a specific permission."""
    return permission in ROLE_PERMISSIONS[role]
