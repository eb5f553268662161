"""Playground session data model and field validation.

Validation is explicit: every check is a plain function and the composite
validators return a tagged result, either ``Valid`` carrying the cleaned
values or ``Invalid`` carrying a list of field errors. Nothing here relies on
implicit coercion by a framework.
"""

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Any, Generic, TypeVar
from uuid import uuid4

# =============================================================================
# Constants
# =============================================================================

LANGUAGES: tuple[str, ...] = ("javascript", "typescript", "jsx", "tsx", "html", "css")
DEFAULT_LANGUAGE: str = "tsx"
ROLES: tuple[str, ...] = ("user", "assistant")

NAME_MAX_LENGTH: int = 100
DESCRIPTION_MAX_LENGTH: int = 500
TAG_MAX_LENGTH: int = 30

# Request keys accepted for create/update, mapped to attribute names
EDITABLE_FIELDS: dict[str, str] = {
    "name": "name",
    "description": "description",
    "code": "code",
    "language": "language",
    "tags": "tags",
    "isPublic": "is_public",
}

T = TypeVar("T")


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_iso(value: datetime) -> str:
    return value.isoformat(timespec="microseconds").replace("+00:00", "Z")


def from_iso(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# =============================================================================
# Tagged validation result
# =============================================================================


@dataclass(frozen=True)
class FieldError:
    """A single violated constraint."""

    field: str
    message: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"field": self.field, "message": self.message}
        if self.value is not None:
            result["value"] = self.value
        return result


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T


@dataclass(frozen=True)
class Invalid:
    errors: list[FieldError]

    def to_dicts(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self.errors]


# =============================================================================
# Entities
# =============================================================================


@dataclass
class Message:
    """One chat transcript entry."""

    role: str
    content: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": to_iso(self.timestamp)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Message":
        return cls(
            role=data["role"],
            content=data["content"],
            timestamp=from_iso(data["timestamp"]),
        )


@dataclass
class Session:
    """A named, owned unit of code + chat transcript + metadata."""

    id: str
    owner_id: str
    name: str
    description: str = ""
    code: str = ""
    language: str = DEFAULT_LANGUAGE
    messages: list[Message] = field(default_factory=list)
    is_public: bool = False
    tags: list[str] = field(default_factory=list)
    last_modified: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def copy(self) -> "Session":
        """Independent copy; transcript and tags are not shared."""
        return replace(
            self,
            messages=[replace(m) for m in self.messages],
            tags=list(self.tags),
        )

    def matches_search(self, search: str, include_tags: bool = True) -> bool:
        """Case-insensitive literal substring match on name/description (and tags)."""
        needle = search.casefold()
        if needle in self.name.casefold() or needle in self.description.casefold():
            return True
        return include_tags and any(needle in tag.casefold() for tag in self.tags)

    def to_dict(self, include_messages: bool = True) -> dict[str, Any]:
        """Serialize to the camelCase wire shape."""
        result: dict[str, Any] = {
            "id": self.id,
            "ownerId": self.owner_id,
            "name": self.name,
            "description": self.description,
            "code": self.code,
            "language": self.language,
            "isPublic": self.is_public,
            "tags": list(self.tags),
            "lastModified": to_iso(self.last_modified),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }
        if include_messages:
            result["messages"] = [m.to_dict() for m in self.messages]
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Session":
        return cls(
            id=data["id"],
            owner_id=data["ownerId"],
            name=data["name"],
            description=data.get("description", ""),
            code=data.get("code", ""),
            language=data.get("language", DEFAULT_LANGUAGE),
            messages=[Message.from_dict(m) for m in data.get("messages", [])],
            is_public=data.get("isPublic", False),
            tags=list(data.get("tags", [])),
            last_modified=from_iso(data["lastModified"]),
            created_at=from_iso(data["createdAt"]),
            updated_at=from_iso(data["updatedAt"]),
        )

    @classmethod
    def from_json(cls, raw: str) -> "Session":
        return cls.from_dict(json.loads(raw))


# =============================================================================
# Field checks: each returns (is_valid, error_message, cleaned_value)
# =============================================================================


def check_name(value: Any) -> tuple[bool, str | None, str | None]:
    if not isinstance(value, str):
        return False, "Session name must be a string", None
    cleaned = value.strip()
    if not 1 <= len(cleaned) <= NAME_MAX_LENGTH:
        return False, f"Session name must be between 1 and {NAME_MAX_LENGTH} characters", None
    return True, None, cleaned


def check_description(value: Any) -> tuple[bool, str | None, str | None]:
    if not isinstance(value, str):
        return False, "Description must be a string", None
    if len(value) > DESCRIPTION_MAX_LENGTH:
        return False, f"Description cannot be more than {DESCRIPTION_MAX_LENGTH} characters", None
    return True, None, value


def check_code(value: Any) -> tuple[bool, str | None, str | None]:
    if not isinstance(value, str):
        return False, "Code must be a string", None
    return True, None, value


def check_language(value: Any) -> tuple[bool, str | None, str | None]:
    if not isinstance(value, str) or value not in LANGUAGES:
        return False, "Invalid language", None
    return True, None, value


def check_tags(value: Any) -> tuple[bool, str | None, list[str] | None]:
    """Tags are trimmed; blanks are dropped and duplicates collapse to the first occurrence."""
    if not isinstance(value, list):
        return False, "Tags must be a list of strings", None
    cleaned: list[str] = []
    for tag in value:
        if not isinstance(tag, str):
            return False, "Tags must be a list of strings", None
        tag = tag.strip()
        if len(tag) > TAG_MAX_LENGTH:
            return False, f"Tag cannot be more than {TAG_MAX_LENGTH} characters", None
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return True, None, cleaned


def check_is_public(value: Any) -> tuple[bool, str | None, bool | None]:
    if not isinstance(value, bool):
        return False, "isPublic must be a boolean", None
    return True, None, value


_FIELD_CHECKS = {
    "name": check_name,
    "description": check_description,
    "code": check_code,
    "language": check_language,
    "tags": check_tags,
    "isPublic": check_is_public,
}


def _error_value(value: Any) -> Any:
    # Echo short scalars only; long blobs stay out of the error payload
    if isinstance(value, str):
        return value if len(value) <= 120 else None
    if isinstance(value, bool | int | float):
        return value
    return None


def validate_fields(payload: Mapping[str, Any], require_name: bool) -> Valid[dict[str, Any]] | Invalid:
    """Validate the editable subset of ``payload``.

    Keys absent from ``payload`` are left out of the result so callers can
    apply a partial update. Keys that are not editable are ignored.

    Returns:
        ``Valid`` with cleaned values keyed by attribute name, or ``Invalid``
    """
    errors: list[FieldError] = []
    cleaned: dict[str, Any] = {}

    if require_name and "name" not in payload:
        errors.append(FieldError("name", "Session name is required"))

    for key, check in _FIELD_CHECKS.items():
        if key not in payload:
            continue
        ok, message, value = check(payload[key])
        if ok:
            cleaned[EDITABLE_FIELDS[key]] = value
        else:
            errors.append(FieldError(key, message or "Invalid value", _error_value(payload[key])))

    if errors:
        return Invalid(errors)
    return Valid(cleaned)


def validate_message(payload: Mapping[str, Any]) -> Valid[tuple[str, str]] | Invalid:
    """Validate an append-message body; returns ``(role, content)`` when valid."""
    role = payload.get("role")
    content = payload.get("content")

    if not role or not content:
        return Invalid([FieldError("role" if not role else "content", "Role and content are required")])
    errors: list[FieldError] = []
    if role not in ROLES:
        errors.append(FieldError("role", 'Role must be either "user" or "assistant"', _error_value(role)))
    if not isinstance(content, str) or not content.strip():
        errors.append(FieldError("content", "Content must be non-empty text"))
    if errors:
        return Invalid(errors)
    return Valid((role, content))


# =============================================================================
# Constructors and transitions
# =============================================================================


def _advance(previous: datetime, now: datetime) -> datetime:
    """Strictly later than ``previous`` even if the clock did not move."""
    return now if now > previous else previous + timedelta(microseconds=1)


def new_session(owner_id: str, fields: Mapping[str, Any], now: datetime | None = None) -> Session:
    """Build a session from already-validated fields, applying defaults."""
    now = now or utcnow()
    return Session(
        id=uuid4().hex,
        owner_id=owner_id,
        name=fields["name"],
        description=fields.get("description", ""),
        code=fields.get("code", ""),
        language=fields.get("language", DEFAULT_LANGUAGE),
        messages=[],
        is_public=fields.get("is_public", False),
        tags=list(fields.get("tags", [])),
        last_modified=now,
        created_at=now,
        updated_at=now,
    )


def apply_update(session: Session, fields: Mapping[str, Any], now: datetime | None = None) -> Session:
    """Return a copy with ``fields`` applied; unspecified fields keep their value."""
    now = _advance(session.last_modified, now or utcnow())
    updated = session.copy()
    for attr, value in fields.items():
        setattr(updated, attr, list(value) if attr == "tags" else value)
    updated.last_modified = now
    updated.updated_at = now
    return updated


def append_message(session: Session, role: str, content: str, now: datetime | None = None) -> Session:
    """Return a copy with one message appended at the end of the transcript."""
    now = _advance(session.last_modified, now or utcnow())
    updated = session.copy()
    updated.messages.append(Message(role=role, content=content, timestamp=now))
    updated.last_modified = now
    updated.updated_at = now
    return updated


# =============================================================================
# Queries
# =============================================================================


def parse_tag_filter(raw: str | None) -> list[str]:
    """Split a comma-separated tag filter, dropping blanks."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


@dataclass(frozen=True)
class SessionQuery:
    """Pagination and filter parameters for list queries."""

    page: int = 1
    limit: int = 10
    search: str | None = None
    tags: tuple[str, ...] = ()

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class SessionPage:
    """One page of a list query plus the unpaginated match count."""

    sessions: list[Session]
    total_count: int

    def pagination(self, query: SessionQuery) -> dict[str, int]:
        return {
            "current": query.page,
            "total": math.ceil(self.total_count / query.limit),
            "count": len(self.sessions),
            "totalCount": self.total_count,
        }
