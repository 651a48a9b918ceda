"""Pydantic request and response models for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel, Field

from household.domain.models import GroupRecord, UserRecord


class RegisterRequest(BaseModel):
    """Registration payload."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)
    phone_number: str = Field(min_length=1)


class CreateGroupRequest(BaseModel):
    """Group creation payload."""

    name: str = Field(min_length=1)


class JoinGroupRequest(BaseModel):
    """Group join payload."""

    username: str = Field(min_length=1)
    group_name: str = Field(min_length=1)


class MessageResponse(BaseModel):
    message: str


class UserResponse(BaseModel):
    """Outward view of a user. Has no credential field."""

    id: str
    username: str
    name: str
    phone_number: str
    score: int
    group: str
    group_id: str | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            name=user.name,
            phone_number=user.phone_number,
            score=user.score,
            group=user.group,
            group_id=user.group_id,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class GroupResponse(BaseModel):
    """Outward view of a group."""

    id: str
    name: str
    members: list[str]
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_record(cls, group: GroupRecord) -> "GroupResponse":
        return cls(
            id=group.id,
            name=group.name,
            members=list(group.members),
            created_at=group.created_at,
            updated_at=group.updated_at,
        )
