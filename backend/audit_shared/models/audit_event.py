"""
Audit event models.

Inbound events use camelCase keys on the wire; the models expose snake_case
attributes and validate by alias. Each model declares its own constraints so
pydantic reports every violation in one pass.

Null handling:
- Optional text fields may be absent or a string; an explicit null is rejected.
- `audit` / `security` may be absent, null or an object (see BlockState).
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Mapping, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _reject_null(value: Any) -> Any:
    if value is None:
        raise ValueError("Input may not be null")
    return value


# Absent -> attribute default (None); explicit null -> validation error.
NonNullStr = Annotated[str, BeforeValidator(_reject_null)]

_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


def _oversized_integer_path(value: Any, path: str) -> Optional[str]:
    # BSON stores at most 8-byte integers; wider values can never be persisted.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return path if not _INT64_MIN <= value <= _INT64_MAX else None
    if isinstance(value, Mapping):
        items = ((f"{path}.{key}", item) for key, item in value.items())
    elif isinstance(value, list):
        items = ((f"{path}[{index}]", item) for index, item in enumerate(value))
    else:
        return None
    for item_path, item in items:
        found = _oversized_integer_path(item, item_path)
        if found is not None:
            return found
    return None


class BlockState(str, Enum):
    """Presence of an optional top-level block in the raw event"""

    ABSENT = "absent"
    NULL = "null"
    PRESENT = "present"

    @classmethod
    def of(cls, event: Mapping[str, Any], key: str) -> "BlockState":
        if key not in event:
            return cls.ABSENT
        if event[key] is None:
            return cls.NULL
        return cls.PRESENT


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class SecurityDetails(_CamelModel):
    transaction_code: NonNullStr = Field(default=None, max_length=120)
    message: NonNullStr = Field(default=None, max_length=120)
    additional_info: NonNullStr = Field(default=None, max_length=120)


class SecurityBlock(_CamelModel):
    pmcode: str = Field(..., min_length=1, max_length=4)
    priority: int
    details: SecurityDetails = Field(default_factory=SecurityDetails)

    @field_validator("pmcode", mode="before")
    @classmethod
    def strip_dashes(cls, v):
        if isinstance(v, str):
            return v.replace("-", "")
        return v

    @field_validator("priority", mode="before")
    @classmethod
    def reject_bool_priority(cls, v):
        if isinstance(v, bool):
            raise ValueError("Input should be a valid integer")
        return v


class AuditBlock(_CamelModel):
    event_type: NonNullStr = Field(default=None, max_length=120)
    action: NonNullStr = Field(default=None, max_length=120)
    entity: NonNullStr = Field(default=None, max_length=120)
    entity_id: NonNullStr = Field(default=None, max_length=120)
    status: NonNullStr = Field(default=None, max_length=120)
    details: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("details")
    @classmethod
    def require_storable_integers(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        path = _oversized_integer_path(v, "details")
        if path is not None:
            raise ValueError(f"{path} exceeds the 64-bit integer range")
        return v


class AuditEvent(_CamelModel):
    """
    Validated audit/security event.

    Unknown top-level keys are kept in `model_extra` without inspection.
    `audit` and `security` are None when the input omitted them or sent null.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    user: NonNullStr = Field(default=None, max_length=50)
    session_id: str = Field(..., min_length=1, max_length=50)
    correlation_id: str = Field(..., min_length=1, max_length=50)
    timestamp: datetime = Field(..., alias="datetime")
    environment: str = Field(..., min_length=1, max_length=20)
    version: str = Field(..., min_length=1, max_length=10)
    application: str = Field(..., min_length=1, max_length=10)
    component: str = Field(..., min_length=1, max_length=30)
    ip: str = Field(..., min_length=1, max_length=20)
    security: Optional[SecurityBlock] = None
    audit: Optional[AuditBlock] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def require_iso_string(cls, v):
        if not isinstance(v, str) or not _ISO_DATE_PREFIX.match(v):
            raise ValueError("Input should be an ISO-8601 date string")
        return v

    @field_validator("timestamp")
    @classmethod
    def normalize_to_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator("environment")
    @classmethod
    def lowercase_environment(cls, v: str) -> str:
        return v.lower()
