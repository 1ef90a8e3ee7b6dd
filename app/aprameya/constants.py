"""
Central constants for the club site.
"""
from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ASPIRANT = "aspirant"
    CORE_TEAM = "core_team"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: "Role | str | None") -> "Role | None":
        """Return the matching Role, or None for anything unrecognized."""
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


ROLE_VALUES = frozenset(r.value for r in Role)

# Roles allowed to publish club content and use the core team chat.
PUBLISHER_ROLES = frozenset({Role.ADMIN, Role.CORE_TEAM})

# Resource names used in policy action keys ("create_project", "delete_comment", ...)
CONTENT_RESOURCES = frozenset({"project", "blog", "research", "event"})
PUBLIC_READ_RESOURCES = CONTENT_RESOURCES | {"comment"}

# Profile fields a user may edit on their own record.
PROFILE_FIELDS = (
    "display_name",
    "profile_image",
    "department",
    "year",
    "role_title",
    "tags",
    "linkedin",
    "github",
    "bio",
)
