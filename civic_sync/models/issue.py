"""
Issue schemas.

Wire shapes for issues exchanged with the REST backend. Field aliases
follow the backend's camelCase keys (``_id``, ``userVote``, ...); unknown
server fields are kept on the model so a record round-trips unchanged.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import IssueCategory, IssuePriority, IssueStatus, Visibility, VoteType


def _normalize_vote(value: Any) -> Any:
    """Accept the short vote spellings some endpoints still send."""
    if value == "up":
        return VoteType.UPVOTE.value
    if value == "down":
        return VoteType.DOWNVOTE.value
    return value


# =============================================================================
# Nested Types
# =============================================================================

class GeoPoint(BaseModel):
    """GeoJSON point; coordinates are [longitude, latitude]."""
    type: str = "Point"
    coordinates: List[float] = Field(min_length=2, max_length=2)

    @classmethod
    def from_lat_lng(cls, latitude: float, longitude: float) -> "GeoPoint":
        return cls(coordinates=[longitude, latitude])

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


class Person(BaseModel):
    """Reporter or assignee summary embedded in an issue."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(alias="_id")
    name: str = ""
    email: Optional[str] = None
    avatar: Optional[str] = None


class ImageRef(BaseModel):
    """Uploaded image reference."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    url: str
    public_id: Optional[str] = Field(default=None, alias="publicId")


# =============================================================================
# Issue
# =============================================================================

class Issue(BaseModel):
    """A single reported civic problem."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(alias="_id", min_length=1)
    title: str = ""
    description: str = ""
    category: Optional[IssueCategory] = None
    priority: IssuePriority = IssuePriority.MEDIUM
    status: IssueStatus = IssueStatus.REPORTED
    location: Optional[GeoPoint] = None
    address: str = ""
    images: List[Union[ImageRef, str]] = Field(default_factory=list)
    reported_by: Optional[Person] = Field(default=None, alias="reportedBy")
    assigned_to: Optional[Person] = Field(default=None, alias="assignedTo")
    upvotes: int = 0
    downvotes: int = 0
    user_vote: Optional[VoteType] = Field(default=None, alias="userVote")
    is_anonymous: bool = Field(default=False, alias="isAnonymous")
    visibility: Visibility = Visibility.PUBLIC
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_validator("user_vote", mode="before")
    @classmethod
    def normalize_user_vote(cls, v: Any) -> Any:
        return _normalize_vote(v)

    @classmethod
    def wire_keys(cls, values: Dict[str, Any]) -> Dict[str, Any]:
        """Rename python field names in ``values`` to their wire aliases."""
        renamed = {}
        for key, value in values.items():
            field = cls.model_fields.get(key)
            renamed[field.alias if field and field.alias else key] = value
        return renamed

    def to_wire(self) -> Dict[str, Any]:
        """Dump using wire keys, keeping unknown server fields."""
        return self.model_dump(by_alias=True)


class VoteTally(BaseModel):
    """Server-authoritative vote state returned by the vote endpoints."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    upvotes: int = Field(ge=0)
    downvotes: int = Field(ge=0)
    user_vote: Optional[VoteType] = Field(default=None, alias="userVote")
    net_votes: Optional[int] = Field(default=None, alias="netVotes")

    @field_validator("user_vote", mode="before")
    @classmethod
    def normalize_user_vote(cls, v: Any) -> Any:
        return _normalize_vote(v)

    def as_patch(self) -> Dict[str, Any]:
        """The three ``Issue`` fields (by attribute name) the store overwrites."""
        return {
            "upvotes": self.upvotes,
            "downvotes": self.downvotes,
            "user_vote": self.user_vote,
        }


# =============================================================================
# Requests
# =============================================================================

class IssueDraft(BaseModel):
    """Citizen submission for a new issue."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    category: IssueCategory
    priority: IssuePriority = IssuePriority.MEDIUM
    location: GeoPoint
    address: str = ""
    images: List[str] = Field(default_factory=list, description="Local image file paths")
    is_anonymous: bool = Field(default=False, alias="isAnonymous")
    visibility: Visibility = Visibility.PUBLIC

    @property
    def has_images(self) -> bool:
        return bool(self.images)

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for a submission without image parts."""
        return self.model_dump(by_alias=True, mode="json", exclude={"images"})

    def to_form_fields(self) -> Dict[str, str]:
        """Text parts for a multipart submission."""
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "priority": self.priority.value,
            "location": json.dumps(self.location.model_dump()),
            "address": self.address,
            "isAnonymous": str(self.is_anonymous).lower(),
            "visibility": self.visibility.value,
        }


class IssueFilters(BaseModel):
    """Query filters for the global issue list."""
    model_config = ConfigDict(populate_by_name=True)

    category: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    page: Optional[int] = Field(default=None, ge=1)
    limit: Optional[int] = Field(default=None, ge=1, le=100)
    sort_by: Optional[str] = Field(default=None, alias="sortBy")
    sort_order: Optional[str] = Field(default=None, alias="sortOrder", pattern="^(asc|desc)$")

    def to_params(self) -> Dict[str, str]:
        """Query parameters, omitting unset filters."""
        return {
            key: str(value)
            for key, value in self.model_dump(by_alias=True, exclude_none=True).items()
        }
