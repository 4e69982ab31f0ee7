# difm/models.py
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import UnknownEnumValue


class _ClosedEnum(str, Enum):
    @classmethod
    def parse(cls, value: Any):
        try:
            return cls(value)
        except ValueError:
            raise UnknownEnumValue(cls.__name__, value) from None


class Role(_ClosedEnum):
    CUSTOMER = "CUSTOMER"
    PROVIDER = "PROVIDER"
    ADMIN = "ADMIN"


class JobStatus(_ClosedEnum):
    CREATED = "CREATED"
    DISPATCHED = "DISPATCHED"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CLOSED = "CLOSED"
    PAID = "PAID"
    CANCELLED_FREE = "CANCELLED_FREE"
    CANCELLED_CHARGED = "CANCELLED_CHARGED"
    RESCHEDULE_REQUIRED = "RESCHEDULE_REQUIRED"
    DISPUTED = "DISPUTED"


FINISHED_STATUSES = (JobStatus.COMPLETED, JobStatus.CLOSED, JobStatus.PAID)


class UserProfile(BaseModel):
    """Public view of a user. Only these five fields ever leave the API."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    email: str
    name: str
    role: Role
    is_online: bool = Field(alias="isOnline")

    @classmethod
    def from_row(cls, row: dict) -> "UserProfile":
        return cls(
            id=str(row["id"]),
            email=row["email"],
            name=row["name"],
            role=Role.parse(row["role"]),
            is_online=bool(row["isOnline"]),
        )


class Credentials(BaseModel):
    """Profile plus the stored hash; used by login only."""

    profile: UserProfile
    password_hash: Optional[str] = None


class RegisterIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class OnlineStatusIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # validated by hand so "true" or 1 are rejected instead of coerced
    is_online: Any = Field(default=None, alias="isOnline")


class OnlineStatusOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    is_online: bool = Field(alias="isOnline")
    message: str


class LocationIn(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class JobSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: JobStatus
    fixed_price: Optional[float] = Field(default=None, alias="fixedPrice")
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "JobSummary":
        return cls(
            id=str(row["id"]),
            status=JobStatus.parse(row["status"]),
            fixed_price=row.get("fixedPrice"),
            description=row.get("description"),
        )
