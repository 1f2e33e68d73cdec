"""
Auth API Router
===============

POST /api/auth/login            - Check email + password
POST /api/auth/change-password  - Replace the password (required after a reset)

There are no sessions or tokens: the dashboard keeps the returned user around
and asks for a password change while requires_password_change is true.
"""

from fastapi import APIRouter, Depends

from hermetia.models import ChangePasswordRequest, LoginRequest, LoginResponse, MessageResponse
from hermetia.routers.users import get_user_service
from hermetia.services import UserService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, service: UserService = Depends(get_user_service)):
    """
    Log in.

    - 401 if the email is unknown or the password is wrong
    - 403 if the account has been deactivated
    """
    return await service.login(request.email, request.password)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(request: ChangePasswordRequest, service: UserService = Depends(get_user_service)):
    await service.change_password(request)
    return MessageResponse(message="Password updated successfully")
