"""
Shared Enumerations.

Defines enums used across the client for type safety and consistency.
"""

from enum import Enum


class Environment(str, Enum):
    """Deployment environment selecting the API profile."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class IssueStatus(str, Enum):
    """Issue lifecycle status (server-assigned)."""
    REPORTED = "reported"
    IN_REVIEW = "in_review"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"
    REJECTED = "rejected"


class IssuePriority(str, Enum):
    """Issue priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class IssueCategory(str, Enum):
    """Municipal issue category."""
    ROAD_MAINTENANCE = "road_maintenance"
    STREET_LIGHTING = "street_lighting"
    WATER_SUPPLY = "water_supply"
    GARBAGE_COLLECTION = "garbage_collection"
    DRAINAGE = "drainage"
    PUBLIC_TRANSPORT = "public_transport"
    TRAFFIC_MANAGEMENT = "traffic_management"
    PARKS_RECREATION = "parks_recreation"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    SAFETY_SECURITY = "safety_security"
    NOISE_POLLUTION = "noise_pollution"
    AIR_POLLUTION = "air_pollution"
    ELECTRICITY = "electricity"
    SEWERAGE = "sewerage"
    CONSTRUCTION = "construction"
    OTHER = "other"


class VoteType(str, Enum):
    """The current user's own vote on an issue."""
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class Visibility(str, Enum):
    """Issue visibility."""
    PUBLIC = "public"
    PRIVATE = "private"


class IssueView(str, Enum):
    """Named issue collections held by the store."""
    ISSUES = "issues"
    MY_ISSUES = "myIssues"
    NEARBY = "nearbyIssues"


class ErrorKind(str, Enum):
    """Classification of API client failures."""
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER = "server"
    CLIENT = "client"
    MALFORMED = "malformed"
