"""
User Service
============

Everything about accounts: listing, creating, editing, deleting, logging in
and changing passwords.

PASSWORDS:
---------
Passwords are stored and compared in plaintext. Every new account (and every
reset) gets DEFAULT_PASSWORD, and login tells the dashboard to force a change
while an account still uses it.
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from hermetia.database import ROLES, USERS, next_id
from hermetia.errors import InactiveUser, InvalidCredentials, NotFound, ValidationFailed
from hermetia.models import (
    ChangePasswordRequest,
    CreateUserRequest,
    LoginResponse,
    Role,
    UpdateUserRequest,
    UserResponse,
)
from hermetia.utils.validation import validate_email, validate_person_name, validate_phone

logger = logging.getLogger(__name__)


class UserService:
    """CRUD and credential checks on the users collection."""

    DEFAULT_PASSWORD = "123456789"
    MIN_PASSWORD_LENGTH = 8

    # Only these roles can be handed out from the dashboard
    ASSIGNABLE_ROLES = ("Administrator", "User")

    REQUIRED_FIELDS = ("name", "first_surname", "phone", "email", "role_id")
    EDITABLE_FIELDS = ("name", "first_surname", "second_surname", "phone", "active", "role_id")

    def __init__(self, db: AsyncIOMotorDatabase):
        self.users = db[USERS]
        self.roles = db[ROLES]

    # =========================================================================
    # READING
    # =========================================================================

    async def list_users(self) -> list[UserResponse]:
        docs = await self.users.find({}, {"password": 0}, sort=[("_id", ASCENDING)]).to_list(length=None)
        return [UserResponse.from_document(doc) for doc in docs]

    async def list_roles(self) -> list[Role]:
        docs = await self.roles.find({}, sort=[("_id", ASCENDING)]).to_list(length=None)
        return [Role.from_document(doc) for doc in docs]

    # =========================================================================
    # VALIDATION HELPERS
    # =========================================================================

    async def _check_role(self, role_id: int):
        valid_roles = await self.roles.find(
            {"role_name": {"$in": list(self.ASSIGNABLE_ROLES)}}
        ).to_list(length=None)
        if role_id not in {role["_id"] for role in valid_roles}:
            raise ValidationFailed("The selected role is not valid")

    @staticmethod
    def _check_formats(data: dict):
        for field in ("name", "first_surname", "second_surname"):
            value = data.get(field)
            if value and not validate_person_name(value):
                raise ValidationFailed(f"Field {field} must contain only letters and spaces")
        if data.get("phone") is not None and not validate_phone(data["phone"]):
            raise ValidationFailed("Phone number must contain exactly 10 digits")
        if data.get("email") is not None and not validate_email(data["email"]):
            raise ValidationFailed("Email address is not valid")

    # =========================================================================
    # CREATE / UPDATE / DELETE
    # =========================================================================

    async def create_user(self, request: CreateUserRequest) -> UserResponse:
        """
        Register a new user with the default password, active by default.

        Checks run in this order: required fields, formats, role, unique email,
        unique phone.
        """
        data = request.model_dump()
        for field in self.REQUIRED_FIELDS:
            if data.get(field) in (None, ""):
                raise ValidationFailed(f"Field {field} is required")

        self._check_formats(data)
        await self._check_role(data["role_id"])

        if await self.users.find_one({"email": data["email"]}):
            raise ValidationFailed("Email is already registered")
        if await self.users.find_one({"phone": data["phone"]}):
            raise ValidationFailed("Phone number is already registered")

        user_id = await next_id(self.users)
        document = {
            "_id": user_id,
            "name": data["name"],
            "first_surname": data["first_surname"],
            "phone": data["phone"],
            "email": data["email"],
            "password": self.DEFAULT_PASSWORD,
            "active": True,
            "role_id": data["role_id"],
        }
        if data.get("second_surname"):
            document["second_surname"] = data["second_surname"]

        try:
            await self.users.insert_one(document)
        except DuplicateKeyError:
            raise ValidationFailed("Email is already registered")

        logger.info(f"Created user {user_id} ({data['email']})")
        return UserResponse.from_document(document)

    async def update_user(self, user_id: int, request: UpdateUserRequest) -> UserResponse:
        """
        Apply a partial update. Only EDITABLE_FIELDS are touched; an empty
        second_surname removes it from the document.
        """
        changes = request.model_dump(exclude_unset=True)
        to_set: dict = {}
        to_unset: dict = {}

        for field in self.EDITABLE_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if field == "second_surname":
                if value:
                    to_set[field] = value
                else:
                    to_unset[field] = ""
            elif value == "" and field in self.REQUIRED_FIELDS:
                raise ValidationFailed(f"Field {field} is required")
            elif value is not None:
                to_set[field] = value

        self._check_formats(to_set)

        if "role_id" in to_set:
            await self._check_role(to_set["role_id"])

        if to_set.get("phone"):
            duplicate = await self.users.find_one({"phone": to_set["phone"], "_id": {"$ne": user_id}})
            if duplicate:
                raise ValidationFailed("Phone number is already registered to another user")

        update = {}
        if to_set:
            update["$set"] = to_set
        if to_unset:
            update["$unset"] = to_unset

        if update:
            doc = await self.users.find_one_and_update(
                {"_id": user_id},
                update,
                projection={"password": 0},
                return_document=ReturnDocument.AFTER,
            )
        else:
            doc = await self.users.find_one({"_id": user_id}, {"password": 0})

        if not doc:
            raise NotFound("User not found")

        logger.info(f"Updated user {user_id}: {sorted(update.get('$set', {}))}")
        return UserResponse.from_document(doc)

    async def delete_user(self, user_id: int):
        result = await self.users.delete_one({"_id": user_id})
        if result.deleted_count == 0:
            raise NotFound("User not found")
        logger.info(f"Deleted user {user_id}")

    async def reset_password(self, user_id: int) -> str:
        """Put the default password back. Returns it so the admin can pass it on."""
        result = await self.users.update_one(
            {"_id": user_id}, {"$set": {"password": self.DEFAULT_PASSWORD}}
        )
        if result.matched_count == 0:
            raise NotFound("User not found")
        logger.info(f"Password reset for user {user_id}")
        return self.DEFAULT_PASSWORD

    # =========================================================================
    # CREDENTIALS
    # =========================================================================

    async def login(self, email: Optional[str], password: Optional[str]) -> LoginResponse:
        user = await self.users.find_one({"email": email}) if email else None

        if not user or user.get("password") != password:
            raise InvalidCredentials("Invalid credentials")

        if not user.get("active", True):
            raise InactiveUser("User is inactive. Contact the administrator.")

        return LoginResponse(
            message="Login successful",
            user=UserResponse.from_document(user),
            requires_password_change=user["password"] == self.DEFAULT_PASSWORD,
        )

    async def change_password(self, request: ChangePasswordRequest):
        """
        Replace a user's password after checking the current one.

        Rules, in order: all fields present, user exists, current password
        matches, new differs from current, new isn't the default, new has at
        least MIN_PASSWORD_LENGTH characters.
        """
        if not request.user_id or not request.current_password or not request.new_password:
            raise ValidationFailed("All fields are required")

        user = await self.users.find_one({"_id": request.user_id})
        if not user:
            raise NotFound("User not found")

        if user.get("password") != request.current_password:
            raise InvalidCredentials("Current password is incorrect")

        if request.current_password == request.new_password:
            raise ValidationFailed("The new password must be different from the current one")

        if request.new_password == self.DEFAULT_PASSWORD:
            raise ValidationFailed("You cannot use the default password")

        if len(request.new_password) < self.MIN_PASSWORD_LENGTH:
            raise ValidationFailed(
                f"The new password must be at least {self.MIN_PASSWORD_LENGTH} characters long"
            )

        await self.users.update_one({"_id": request.user_id}, {"$set": {"password": request.new_password}})
        logger.info(f"User {request.user_id} changed their password")
