"""
Users API Router
================

Account management for the dashboard's admin screen.

ALL ENDPOINTS:
-------------
GET    /api/users                      - List all users (no passwords)
POST   /api/users                      - Create a user (gets the default password)
PUT    /api/users/{id}                 - Edit a user
DELETE /api/users/{id}                 - Delete a user
POST   /api/users/{id}/reset-password  - Put the default password back

GET    /api/roles                      - List the roles
"""

from fastapi import APIRouter, Depends

from hermetia.database import get_database
from hermetia.models import (
    CreateUserRequest,
    MessageResponse,
    PasswordResetResponse,
    Role,
    UpdateUserRequest,
    UserCreatedResponse,
    UserResponse,
)
from hermetia.services import UserService

router = APIRouter(prefix="/api/users", tags=["users"])
roles_router = APIRouter(prefix="/api/roles", tags=["roles"])


def get_user_service(db=Depends(get_database)) -> UserService:
    return UserService(db)


@router.get("", response_model=list[UserResponse])
async def list_users(service: UserService = Depends(get_user_service)):
    """All users, ordered by id. Passwords are never returned."""
    return await service.list_users()


@router.post("", response_model=UserCreatedResponse)
async def create_user(request: CreateUserRequest, service: UserService = Depends(get_user_service)):
    """
    Create a user.

    Send us name, first_surname, phone (10 digits), email and role_id
    (second_surname is optional). The account starts active with the default
    password, and the user is asked to change it on first login.
    """
    user = await service.create_user(request)
    return UserCreatedResponse(message="User created successfully", user=user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    request: UpdateUserRequest,
    service: UserService = Depends(get_user_service),
):
    """Edit a user. Email and password can't be changed here."""
    return await service.update_user(user_id, request)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: int, service: UserService = Depends(get_user_service)):
    await service.delete_user(user_id)
    return MessageResponse(message="User deleted successfully")


@router.post("/{user_id}/reset-password", response_model=PasswordResetResponse)
async def reset_password(user_id: int, service: UserService = Depends(get_user_service)):
    new_password = await service.reset_password(user_id)
    return PasswordResetResponse(message="Password reset successfully", new_password=new_password)


@roles_router.get("", response_model=list[Role])
async def list_roles(service: UserService = Depends(get_user_service)):
    return await service.list_roles()
