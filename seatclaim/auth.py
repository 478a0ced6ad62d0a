"""Caller identity as seen by the services.

Token issuance lives outside this service; requests arrive with the
caller's id and role already established.
"""

import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    """Caller role enum."""

    ATTENDEE = "attendee"
    ORGANIZER = "organizer"
    STAFF = "staff"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller."""

    user_id: str
    role: Role = Role.ATTENDEE

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles

    def can_act_for(self, user_id: str) -> bool:
        """True if the caller is ``user_id`` or may act on anyone's behalf."""
        return self.user_id == user_id or self.role in (Role.ORGANIZER, Role.ADMIN)
