"""User roles for the order portal.

Roles:
- Director: Full access to their own organization's orders and data
- Finance: Payment and financial operations for their own organization
- ColorGarbStaff: Cross-organization order management

Permission Matrix:
┌──────────────────────────┬──────────┬─────────┬────────────────┐
│ Action                   │ Director │ Finance │ ColorGarbStaff │
├──────────────────────────┼──────────┼─────────┼────────────────┤
│ View own org orders      │    ✓     │    ✓    │       ✓        │
│ View any org orders      │          │         │       ✓        │
│ Finance-only resources   │    ✓     │    ✓    │       ✓        │
│ Create orders            │          │         │       ✓        │
│ Advance stage / ship date│          │         │       ✓        │
│ Query audit trail        │          │         │       ✓        │
└──────────────────────────┴──────────┴─────────┴────────────────┘
"""

from enum import Enum
from typing import Optional, Iterable


class UserRole(str, Enum):
    """User roles.

    Values are stored as TEXT in the database and must match exactly.
    """
    DIRECTOR = "Director"
    FINANCE = "Finance"
    COLORGARB_STAFF = "ColorGarbStaff"


# Roles allowed to create orders and move them through the pipeline
MUTATION_ROLES = frozenset({UserRole.COLORGARB_STAFF})

# Roles whose every access is bounded by their home organization
ORGANIZATION_SCOPED_ROLES = frozenset({UserRole.DIRECTOR, UserRole.FINANCE})

# Director is a superset of Finance
ROLE_IMPLIES = {
    UserRole.DIRECTOR: {UserRole.DIRECTOR, UserRole.FINANCE},
    UserRole.FINANCE: {UserRole.FINANCE},
    UserRole.COLORGARB_STAFF: {UserRole.COLORGARB_STAFF},
}


def parse_role(value: Optional[str]) -> Optional[UserRole]:
    """Parse a role claim, returning None when it is missing or unrecognized."""
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return None


def has_cross_organization_access(role: Optional[UserRole]) -> bool:
    """Only ColorGarb staff may cross organization boundaries."""
    return role == UserRole.COLORGARB_STAFF


def satisfies(role: UserRole, required_roles: Iterable[UserRole]) -> bool:
    """Check whether `role` meets any of `required_roles`.

    Examples:
        >>> satisfies(UserRole.DIRECTOR, [UserRole.FINANCE])
        True
        >>> satisfies(UserRole.FINANCE, [UserRole.DIRECTOR])
        False
    """
    granted = ROLE_IMPLIES.get(role, set())
    return any(required in granted for required in required_roles)
