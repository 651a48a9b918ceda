"""Group creation, join and membership endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request, Response, status

from household.api.schemas import (
    CreateGroupRequest,
    GroupResponse,
    JoinGroupRequest,
    UserResponse,
)

if TYPE_CHECKING:
    from household.containers import AppContainer

router = APIRouter(prefix="/api/groups", tags=["groups"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=GroupResponse)
def create_group(payload: CreateGroupRequest, request: Request) -> GroupResponse:
    """Create an empty group."""
    container: AppContainer = request.app.state.container
    return GroupResponse.from_record(
        container.group_service.create_group(payload.name)
    )


@router.get("/by-name", response_model=GroupResponse)
def get_group_by_name(request: Request, name: str = Query(min_length=1)) -> GroupResponse:
    """Return a single group by name."""
    container: AppContainer = request.app.state.container
    return GroupResponse.from_record(container.group_service.get_by_name(name))


@router.post("/join")
def join_group(payload: JoinGroupRequest, request: Request) -> Response:
    """Affiliate a user with a group."""
    container: AppContainer = request.app.state.container
    container.group_join_service.join_group(payload.username, payload.group_name)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/members", response_model=list[UserResponse])
def list_group_members(
    request: Request, group_name: str = Query(min_length=1)
) -> list[UserResponse]:
    """Return the users affiliated with a group."""
    container: AppContainer = request.app.state.container
    members = container.group_service.list_members(group_name)
    return [UserResponse.from_record(user) for user in members]
