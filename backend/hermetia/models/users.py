"""
User Models
===========
Pydantic models for users, roles and the login flow.

- Request models: What the dashboard sends to the backend
- Response models: What the backend returns (passwords are never included)

Request fields are mostly Optional on purpose: the service checks them itself
so a missing field comes back as a readable 400 ("Field email is required").
"""

from pydantic import BaseModel, Field
from typing import Optional


# =============================================================================
# ROLES
# =============================================================================

class Role(BaseModel):
    """A row of the static roles table (Administrator, User)."""
    id: int = Field(..., description="Role id")
    role_name: str = Field(..., description="Role name")

    @classmethod
    def from_document(cls, doc: dict) -> "Role":
        return cls(id=doc["_id"], role_name=doc["role_name"])


# =============================================================================
# REQUEST MODELS - What the dashboard sends to the backend
# =============================================================================

class CreateUserRequest(BaseModel):
    """
    Request body for creating a user.

    The password is NOT part of the request: new users always start with the
    default password and are asked to change it on first login.

    Example Request:
        POST /api/users
        {
            "name": "Ana",
            "first_surname": "Lopez",
            "second_surname": "Diaz",
            "phone": "5512345678",
            "email": "ana@example.com",
            "role_id": 2
        }
    """
    name: Optional[str] = Field(None, description="First name (letters and spaces)")
    first_surname: Optional[str] = Field(None, description="First surname")
    second_surname: Optional[str] = Field(None, description="Second surname (optional)")
    phone: Optional[str] = Field(None, description="10-digit phone number", examples=["5512345678"])
    email: Optional[str] = Field(None, description="Unique e-mail address")
    role_id: Optional[int] = Field(None, description="Role id (Administrator or User)")


class UpdateUserRequest(BaseModel):
    """
    Request body for editing a user.

    Only these fields can change. The e-mail and the password are not editable
    here (use the password endpoints for the latter). Sending an empty
    second_surname removes it.
    """
    name: Optional[str] = Field(None, description="New first name")
    first_surname: Optional[str] = Field(None, description="New first surname")
    second_surname: Optional[str] = Field(None, description="New second surname, empty to remove")
    phone: Optional[str] = Field(None, description="New phone number")
    active: Optional[bool] = Field(None, description="Enable or disable the account")
    role_id: Optional[int] = Field(None, description="New role id")


class LoginRequest(BaseModel):
    email: Optional[str] = Field(None, description="Account e-mail")
    password: Optional[str] = Field(None, description="Plaintext password")


class ChangePasswordRequest(BaseModel):
    user_id: Optional[int] = Field(None, description="Id of the user changing the password")
    current_password: Optional[str] = Field(None, description="Password in use right now")
    new_password: Optional[str] = Field(None, description="Replacement password (min 8 chars)")


# =============================================================================
# RESPONSE MODELS - What backend returns to the dashboard
# =============================================================================

class UserResponse(BaseModel):
    """A user as the dashboard sees it. There is no password field at all."""
    id: int = Field(..., description="Numeric user id")
    name: str
    first_surname: str
    second_surname: Optional[str] = None
    phone: str
    email: str
    active: bool = True
    role_id: int

    @classmethod
    def from_document(cls, doc: dict) -> "UserResponse":
        return cls(
            id=doc["_id"],
            name=doc["name"],
            first_surname=doc["first_surname"],
            second_surname=doc.get("second_surname"),
            phone=doc["phone"],
            email=doc["email"],
            active=doc.get("active", True),
            role_id=doc["role_id"],
        )


class UserCreatedResponse(BaseModel):
    message: str
    user: UserResponse


class LoginResponse(BaseModel):
    message: str
    user: UserResponse
    requires_password_change: bool = Field(
        ..., description="True while the account still uses the default password"
    )


class PasswordResetResponse(BaseModel):
    message: str
    new_password: str


class MessageResponse(BaseModel):
    message: str
