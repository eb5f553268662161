"""User record and account field validation."""

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any
from uuid import uuid4

from playground.session.models import FieldError, Invalid, Valid, from_iso, to_iso, utcnow

USER_NAME_MAX_LENGTH: int = 50
PASSWORD_MIN_LENGTH: int = 6
EMAIL_PATTERN: re.Pattern[str] = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


@dataclass
class User:
    """Identity record. The credential hash never leaves the server."""

    id: str
    email: str
    name: str
    password_hash: str
    avatar: str | None = None
    is_email_verified: bool = False
    last_login: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __hash__(self) -> int:
        """Hash based on id for use in sets/dicts."""
        return hash(self.id)

    def copy(self) -> "User":
        return replace(self)

    def to_public_dict(self) -> dict[str, Any]:
        """Profile shape returned to the account owner."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "isEmailVerified": self.is_email_verified,
            "lastLogin": to_iso(self.last_login) if self.last_login else None,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }

    def to_owner_summary(self) -> dict[str, Any]:
        """Minimal projection shown next to public sessions."""
        return {"id": self.id, "name": self.name, "avatar": self.avatar}

    def to_json(self) -> str:
        data = self.to_public_dict()
        data["passwordHash"] = self.password_hash
        return json.dumps(data, ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> "User":
        data = json.loads(raw)
        return cls(
            id=data["id"],
            email=data["email"],
            name=data["name"],
            password_hash=data["passwordHash"],
            avatar=data.get("avatar"),
            is_email_verified=data.get("isEmailVerified", False),
            last_login=from_iso(data["lastLogin"]) if data.get("lastLogin") else None,
            created_at=from_iso(data["createdAt"]),
            updated_at=from_iso(data["updatedAt"]),
        )


def normalize_email(email: str) -> str:
    return email.strip().lower()


def new_user(name: str, email: str, password_hash: str) -> User:
    now = utcnow()
    return User(
        id=uuid4().hex,
        email=normalize_email(email),
        name=name,
        password_hash=password_hash,
        created_at=now,
        updated_at=now,
    )


def _check_user_name(value: Any) -> FieldError | None:
    if not isinstance(value, str) or not 1 <= len(value.strip()) <= USER_NAME_MAX_LENGTH:
        return FieldError("name", f"Name must be between 1 and {USER_NAME_MAX_LENGTH} characters")
    return None


def _check_email(value: Any) -> FieldError | None:
    if not isinstance(value, str) or not EMAIL_PATTERN.match(value.strip()):
        return FieldError("email", "Please provide a valid email")
    return None


def _check_password(value: Any, field_name: str = "password") -> FieldError | None:
    if not isinstance(value, str) or len(value) < PASSWORD_MIN_LENGTH:
        return FieldError(field_name, f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    return None


def validate_registration(payload: Mapping[str, Any]) -> Valid[dict[str, str]] | Invalid:
    errors = [
        e
        for e in (
            _check_user_name(payload.get("name")),
            _check_email(payload.get("email")),
            _check_password(payload.get("password")),
        )
        if e
    ]
    if errors:
        return Invalid(errors)
    return Valid(
        {
            "name": payload["name"].strip(),
            "email": normalize_email(payload["email"]),
            "password": payload["password"],
        }
    )


def validate_login(payload: Mapping[str, Any]) -> Valid[dict[str, str]] | Invalid:
    errors: list[FieldError] = []
    if err := _check_email(payload.get("email")):
        errors.append(err)
    password = payload.get("password")
    if not isinstance(password, str) or not password:
        errors.append(FieldError("password", "Password is required"))
    if errors:
        return Invalid(errors)
    return Valid({"email": normalize_email(payload["email"]), "password": password})


def validate_profile_update(payload: Mapping[str, Any]) -> Valid[dict[str, Any]] | Invalid:
    errors: list[FieldError] = []
    cleaned: dict[str, Any] = {}
    if "name" in payload:
        if err := _check_user_name(payload["name"]):
            errors.append(err)
        else:
            cleaned["name"] = payload["name"].strip()
    if "avatar" in payload:
        avatar = payload["avatar"]
        if avatar is not None and not isinstance(avatar, str):
            errors.append(FieldError("avatar", "Avatar must be a URL string"))
        else:
            cleaned["avatar"] = avatar or None
    if errors:
        return Invalid(errors)
    return Valid(cleaned)


def validate_password_change(payload: Mapping[str, Any]) -> Valid[dict[str, str]] | Invalid:
    errors: list[FieldError] = []
    current = payload.get("currentPassword")
    if not isinstance(current, str) or not current:
        errors.append(FieldError("currentPassword", "Current password is required"))
    if err := _check_password(payload.get("newPassword"), "newPassword"):
        errors.append(err)
    if errors:
        return Invalid(errors)
    return Valid({"current_password": current, "new_password": payload["newPassword"]})
