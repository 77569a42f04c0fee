from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from rolegraph.core.rbac.permissions import Operation


class PermissionSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", use_enum_values=True)

    name: str = Field(alias="permission")
    operation: Operation
    display_name: Optional[str] = Field(default=None, alias="displayName")
    description: Optional[str] = None


class RoleSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)
    inherit_roles: List[str] = Field(default_factory=list, alias="inheritRoles")


class UserSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_name: str = Field(alias="userName")
    roles: List[str] = Field(default_factory=list)


class ImportDocument(BaseModel):
    """Shape of a seed file: permissions, then roles, then users."""

    permissions: List[PermissionSpec] = Field(default_factory=list)
    roles: List[RoleSpec] = Field(default_factory=list)
    users: List[UserSpec] = Field(default_factory=list)
