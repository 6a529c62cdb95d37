from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a person known to the system (student, teacher or admin)."""

    user_id: str
    full_name: str
    role: Role
    student_code: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class Requester:
    """Authenticated identity attached to a request by the auth middleware."""

    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
