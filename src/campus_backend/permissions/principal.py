from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator

from campus_backend.api.exceptions import NotFoundException
from campus_backend.permissions.matrix import Capability, PermissionSet, Role, get_permissions, has_permission


class Principal(BaseModel):
    """The authenticated actor of a request."""

    user_id: str
    role: Role = Role.STUDENT
    # Teacher or student record the account represents, None for admins
    related_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_validator('role', mode='before')
    @classmethod
    def default_role(cls, value):
        return Role.parse(value)

    @property
    def permissions(self) -> PermissionSet:
        return get_permissions(self.role)

    def permitted(self, capability: Capability | str) -> bool:
        return has_permission(self.role, capability)

    def get_related_id_or_throw(self) -> str:
        if self.related_id is None:
            raise NotFoundException(detail=f"{self.role.value.capitalize()} ID not found")
        return self.related_id
