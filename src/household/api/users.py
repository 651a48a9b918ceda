"""User registration and listing endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request, status

from household.api.schemas import MessageResponse, RegisterRequest, UserResponse

if TYPE_CHECKING:
    from household.containers import AppContainer

router = APIRouter(prefix="/api", tags=["users"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=MessageResponse,
)
def register(payload: RegisterRequest, request: Request) -> MessageResponse:
    """Register a new user."""
    container: AppContainer = request.app.state.container
    container.user_service.register(
        username=payload.username,
        password=payload.password,
        name=payload.name,
        phone_number=payload.phone_number,
    )
    return MessageResponse(message="User created successfully")


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    """Return all users."""
    container: AppContainer = request.app.state.container
    return [UserResponse.from_record(u) for u in container.user_service.list_users()]


@router.get("/users/by-username", response_model=UserResponse)
def get_user_by_username(
    request: Request, username: str = Query(min_length=1)
) -> UserResponse:
    """Return a single user by username."""
    container: AppContainer = request.app.state.container
    return UserResponse.from_record(container.user_service.get_by_username(username))


@router.get("/users/by-score", response_model=list[UserResponse])
def list_users_by_score(request: Request) -> list[UserResponse]:
    """Return all users ordered by score, highest first."""
    container: AppContainer = request.app.state.container
    return [
        UserResponse.from_record(u) for u in container.user_service.list_by_score()
    ]
