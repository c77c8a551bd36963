from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class Role(str, Enum):
    HEAD = "HEAD"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


@dataclass(frozen=True, slots=True)
class Principal:
    """The authenticated caller, passed explicitly into every service call."""

    id: UUID
    role: Role
    name: str = ""
    email: str = ""

    @property
    def is_head(self) -> bool:
        return self.role == Role.HEAD

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER

    @property
    def is_employee(self) -> bool:
        return self.role == Role.EMPLOYEE
