"""Actor models for the demo role switcher."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

Role = Literal["admin", "hr", "manager", "employee"]


class DemoUser(BaseModel):
    id: str
    employee_id: str
    name: str
    email: str
    title: str
    department: str
    role: Role
    avatar: str


class ActorInfo(DemoUser):
    permissions: list[str] = []
