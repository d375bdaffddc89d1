"""
Roles and Capabilities Configuration
This config defines the capability matrix for the three user roles.
Services consult it at the data-access boundary; route guards consult it
before a handler runs.
"""

from typing import Dict, FrozenSet, List

# Roles in ascending order of privilege
ROLES: List[str] = ["user", "moderator", "admin"]

DEFAULT_ROLE = "user"

# Capabilities granted to each role, on top of everything granted to the roles below it
ROLE_GRANTS = {
    "user": {
        "capabilities": [
            "games:create",
            "games:update_own",
            "games:delete_own",
            "reviews:create",
            "reviews:delete_own",
            "sessions:create",
            "sessions:join",
            "sessions:manage_own",
            "users:read",
        ],
        "description": "Registered player: manages their own games, reviews and sessions",
    },
    "moderator": {
        "capabilities": [
            "games:delete_any",
            "reviews:delete_any",
            "reviews:recompute",
            "sessions:manage_any",
        ],
        "description": "Community moderator: removes content and manages any session",
    },
    "admin": {
        "capabilities": [
            "users:assign_role",
        ],
        "description": "Administrator: everything a moderator can do plus role assignment",
    },
}


def get_capability_matrix() -> Dict[str, FrozenSet[str]]:
    """
    Returns a mapping of role name to the full set of capabilities it holds.
    Format: {
        "user": frozenset({"games:create", ...}),
        "moderator": frozenset({"games:create", ..., "reviews:delete_any", ...}),
        ...
    }
    """
    matrix = {}
    inherited: set = set()
    for role in ROLES:
        inherited |= set(ROLE_GRANTS[role]["capabilities"])
        matrix[role] = frozenset(inherited)
    return matrix


CAPABILITY_MATRIX = get_capability_matrix()


def has_capability(role: str, capability: str) -> bool:
    """True if the role (unknown roles hold nothing) grants the capability"""
    return capability in CAPABILITY_MATRIX.get(role, frozenset())
