"""
Response envelope and auth schemas.

Every backend response is wrapped as ``{success, data?, message?}``;
auth responses additionally carry ``token`` and ``user`` at the top level.
"""

from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

T = TypeVar("T")


class Envelope(BaseModel):
    """Generic response wrapper."""
    model_config = ConfigDict(extra="allow")

    success: bool
    data: Any = None
    message: Optional[str] = None


class UserProfile(BaseModel):
    """Authenticated user profile as persisted under the ``user`` key."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(validation_alias=AliasChoices("_id", "id"), serialization_alias="_id")
    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str = "citizen"
    avatar: Optional[str] = None


class AuthPayload(BaseModel):
    """Successful login/registration response."""
    model_config = ConfigDict(extra="allow")

    success: bool = True
    token: str = Field(min_length=1)
    user: UserProfile
    message: Optional[str] = None


class HealthStatus(BaseModel):
    """Liveness probe response."""
    model_config = ConfigDict(extra="allow")

    success: bool
    message: Optional[str] = None
    version: Optional[str] = None
    timestamp: Optional[str] = None
    environment: Optional[str] = None
    features: List[str] = Field(default_factory=list)


@dataclass
class OperationResult(Generic[T]):
    """
    Discriminated result of a store operation.

    ``stale`` marks a fetch whose response arrived after a newer fetch
    for the same view and was therefore discarded.
    """

    success: bool
    data: Optional[T] = None
    message: str = ""
    stale: bool = False

    @classmethod
    def ok(cls, data: Optional[T] = None, message: str = "") -> "OperationResult[T]":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, message: str) -> "OperationResult[T]":
        return cls(success=False, message=message)
