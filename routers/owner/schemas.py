"""Owner schemas."""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from routers.dependencies import PERMISSION_KEYS

TeamRole = Literal["admin", "editor", "viewer", "member"]


def _check_permission_keys(keys):
    unknown = sorted(set(keys) - set(PERMISSION_KEYS))
    if unknown:
        raise ValueError(f"Unknown permissions: {', '.join(unknown)}")


class UserUpdateRequest(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    role: Optional[Literal["borrower", "investor"]] = None
    email: Optional[EmailStr] = None


class SuspendRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class TeamInviteRequest(BaseModel):
    email: EmailStr
    role: TeamRole = "member"
    permissions: Optional[List[str]] = None

    @field_validator("permissions")
    @classmethod
    def _known_permissions(cls, value):
        if value is not None:
            _check_permission_keys(value)
        return value


class TeamPermissionsUpdate(BaseModel):
    permissions: Dict[str, bool]

    @field_validator("permissions")
    @classmethod
    def _known_permissions(cls, value):
        _check_permission_keys(value)
        return value


class TeamRoleUpdate(BaseModel):
    role: TeamRole
    apply_preset: bool = True
