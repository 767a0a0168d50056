"""Pydantic models for Planka entities, response envelopes and operation inputs.

Attributes are snake_case in Python and camelCase on the wire. Unknown
upstream fields are kept (``extra="allow"``) so reads survive Planka adding
fields; only the fields listed here are checked.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Generic, Literal, TypeVar, get_args

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from planka_mcp.exceptions import PlankaSchemaError

LabelColor = Literal[
    "berry-red",
    "pumpkin-orange",
    "lagoon-blue",
    "pink-tulip",
    "light-mud",
    "orange-peel",
    "bright-moss",
    "antique-blue",
    "dark-granite",
    "lagune-blue",
    "sunny-grass",
    "morning-sky",
    "light-orange",
    "midnight-blue",
    "tank-green",
    "gun-metal",
    "wet-moss",
    "red-burgundy",
    "light-concrete",
    "apricot-red",
    "desert-sand",
    "navy-blue",
    "egg-yellow",
    "coral-green",
    "light-cocoa",
]

LABEL_COLORS: tuple[str, ...] = get_args(LabelColor)

MembershipRole = Literal["editor", "viewer"]

DEFAULT_POSITION = 65535

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class PlankaModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_json(self) -> dict[str, Any]:
        """Plain JSON-ready dict with Planka's camelCase keys"""
        return self.model_dump(mode="json", by_alias=True)


# ===== Entities =====


class Project(PlankaModel):
    id: str
    name: str


class Board(PlankaModel):
    id: str
    project_id: str
    name: str
    position: float | None = None


class BoardList(PlankaModel):
    id: str
    board_id: str
    name: str | None = None
    position: float | None = None


class Stopwatch(PlankaModel):
    started_at: datetime | None = None
    total: int = 0

    @property
    def is_running(self) -> bool:
        return self.started_at is not None


class Card(PlankaModel):
    id: str
    list_id: str
    board_id: str | None = None
    name: str
    description: str | None = None
    position: float | None = None
    due_date: str | None = None
    stopwatch: Stopwatch | None = None
    is_completed: bool | None = None
    label_ids: list[str] | None = None


class Task(PlankaModel):
    id: str
    card_id: str
    name: str
    position: float | None = None
    is_completed: bool = False


class Label(PlankaModel):
    id: str
    board_id: str
    name: str | None = None
    color: str
    position: float | None = None


class CardLabel(PlankaModel):
    id: str
    card_id: str
    label_id: str


class CardMembership(PlankaModel):
    id: str
    card_id: str
    user_id: str


class CommentData(PlankaModel):
    text: str


class Comment(PlankaModel):
    """A card comment, which Planka models as a ``commentCard`` action"""

    id: str
    type: Literal["commentCard"] = "commentCard"
    data: CommentData
    card_id: str
    user_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def text(self) -> str:
        return self.data.text


class BoardMembership(PlankaModel):
    id: str
    board_id: str
    user_id: str
    role: str
    can_comment: bool | None = None


class User(PlankaModel):
    id: str
    email: str | None = None
    username: str | None = None
    name: str | None = None
    is_admin: bool = False


# ===== Response envelopes =====

T = TypeVar("T")


class ItemEnvelope(BaseModel, Generic[T]):
    """Single-item response: ``{item: ..., included?: {...}}``"""

    item: T
    included: dict[str, Any] | None = None


class ItemsEnvelope(BaseModel, Generic[T]):
    """Collection response: ``{items: [...], included?: {...}}``"""

    items: list[T]
    included: dict[str, Any] | None = None


# ===== Operation inputs =====


def _clean_name(value: str, entity: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{entity} name cannot be empty")
    return value


class ProjectCreate(PlankaModel):
    name: str

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v, "Project")


class ProjectUpdate(PlankaModel):
    name: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return None if v is None else _clean_name(v, "Project")


class BoardCreate(PlankaModel):
    project_id: str
    name: str
    position: float = DEFAULT_POSITION

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v, "Board")


class BoardUpdate(PlankaModel):
    name: str | None = None
    position: float | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return None if v is None else _clean_name(v, "Board")


class ListCreate(PlankaModel):
    board_id: str
    name: str
    position: float = DEFAULT_POSITION

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v, "List")


class ListUpdate(PlankaModel):
    name: str | None = None
    position: float | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return None if v is None else _clean_name(v, "List")


def _normalize_due_date(value: Any) -> Any:
    """Normalize a due date: date-only values stay dates, naive datetimes are UTC"""
    if isinstance(value, str):
        text = value.strip()
        if _DATE_ONLY_RE.match(text):
            return date.fromisoformat(text)
        try:
            value = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            # left for pydantic to report
            return value
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CardCreate(PlankaModel):
    list_id: str
    name: str
    description: str | None = None
    position: float = DEFAULT_POSITION
    due_date: AwareDatetime | date | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v, "Card")

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, v: Any) -> Any:
        return _normalize_due_date(v)


class CardUpdate(PlankaModel):
    name: str | None = None
    description: str | None = None
    position: float | None = None
    due_date: AwareDatetime | date | None = None
    is_completed: bool | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return None if v is None else _clean_name(v, "Card")

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date(cls, v: Any) -> Any:
        return _normalize_due_date(v)


class CardMove(PlankaModel):
    list_id: str
    position: float = DEFAULT_POSITION
    board_id: str | None = None
    project_id: str | None = None


class TaskCreate(PlankaModel):
    card_id: str
    name: str = Field(min_length=1)
    position: float = DEFAULT_POSITION


class TaskUpdate(PlankaModel):
    name: str | None = Field(default=None, min_length=1)
    position: float | None = None
    is_completed: bool | None = None


class LabelCreate(PlankaModel):
    board_id: str
    name: str | None = None
    color: LabelColor
    position: float = DEFAULT_POSITION


class LabelUpdate(PlankaModel):
    name: str | None = None
    color: LabelColor | None = None
    position: float | None = None


class CommentCreate(PlankaModel):
    card_id: str
    text: str = Field(min_length=1)


class CommentUpdate(PlankaModel):
    text: str = Field(min_length=1)


class MembershipCreate(PlankaModel):
    board_id: str
    user_id: str
    role: MembershipRole
    can_comment: bool | None = None


class MembershipUpdate(PlankaModel):
    role: MembershipRole | None = None
    can_comment: bool | None = None


class UserCreate(PlankaModel):
    email: str
    username: str = Field(min_length=1)
    password: str = Field(min_length=6)
    name: str | None = None
    is_admin: bool = False

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        v = v.strip()
        if not _EMAIL_RE.match(v):
            raise ValueError(f"Invalid email address: {v}")
        return v


# ===== Validation helpers =====

M = TypeVar("M", bound=BaseModel)


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(parts)


def parse_input(model: type[M], **values: Any) -> M:
    """Validate operation arguments, raising PlankaSchemaError on mismatch"""
    try:
        return model.model_validate(values)
    except ValidationError as e:
        raise PlankaSchemaError(
            f"Invalid input: {_describe(e)}", errors=e.errors(include_url=False)
        ) from e


def parse_response(model: type[M], data: Any) -> M:
    """Validate a decoded Planka response, raising PlankaSchemaError on mismatch"""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise PlankaSchemaError(
            f"Unexpected response shape: {_describe(e)}", errors=e.errors(include_url=False)
        ) from e


def to_body(model: PlankaModel, *fields: str) -> dict[str, Any]:
    """Wire body for the given fields, dropping those left as None"""
    return model.model_dump(
        mode="json", by_alias=True, exclude_none=True, include=set(fields) if fields else None
    )


def to_jsonable(value: Any) -> Any:
    """Convert models (possibly nested in dicts/lists) into plain JSON data"""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value
