from typing import Literal

from pydantic import BaseModel, Field

# --- Enums / Literals ---
RoleType = Literal["admin", "user"]

# --- Auth ---


class Actor(BaseModel):
    """The caller behind a request, taken from a verified access token."""

    id: str
    email: str
    roles: list[RoleType] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles
