"""
Domain Models

Pydantic records for users, events, teams and search results as they are
held by the directories and the team store.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from teamfinder.core.utils import normalize_skills

MAX_SKILLS = 50
MAX_ACHIEVEMENTS = 50


class UserRole(str, Enum):
    """Account roles."""

    STUDENT = "student"
    ADMIN = "admin"


class EventStatus(str, Enum):
    """Event phase derived from its deadlines."""

    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    PAST = "past"


class MemberRole(str, Enum):
    """Role recorded in the membership index."""

    LEADER = "leader"
    MEMBER = "member"


# =============================================================================
# User Directory
# =============================================================================


class UserStats(BaseModel):
    events_participated: int = Field(default=0, ge=0)
    events_won: int = Field(default=0, ge=0)


class User(BaseModel):
    id: str
    name: str = ""
    email: Optional[str] = None
    role: UserRole = UserRole.STUDENT
    course: Optional[str] = None
    branch: Optional[str] = None
    year: Optional[str] = None
    phone: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    stats: UserStats = Field(default_factory=UserStats)

    @field_validator("skills", mode="before")
    @classmethod
    def _normalize_skills(cls, value):
        skills = normalize_skills(value)
        if len(skills) > MAX_SKILLS:
            raise ValueError(f"Cannot have more than {MAX_SKILLS} skills")
        return skills

    @field_validator("achievements")
    @classmethod
    def _limit_achievements(cls, value: list[str]) -> list[str]:
        if len(value) > MAX_ACHIEVEMENTS:
            raise ValueError(f"Cannot have more than {MAX_ACHIEVEMENTS} achievements")
        return value


class UserSummary(BaseModel):
    """Public view of a user embedded in team responses."""

    id: str
    name: str = ""
    skills: list[str] = Field(default_factory=list)
    stats: UserStats = Field(default_factory=UserStats)

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, name=user.name, skills=list(user.skills), stats=user.stats)


# =============================================================================
# Event Binding
# =============================================================================


class TeamSizeBounds(BaseModel):
    min: int = Field(default=1, ge=1)
    max: int = Field(default=6, ge=1)

    @model_validator(mode="after")
    def _max_not_below_min(self) -> "TeamSizeBounds":
        if self.max < self.min:
            raise ValueError("team_size.max must be greater than or equal to team_size.min")
        return self


class EventDeadlines(BaseModel):
    registration_close: Optional[datetime] = None
    event_start: Optional[datetime] = None
    event_end: Optional[datetime] = None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Event(BaseModel):
    id: str
    title: str = ""
    team_size: TeamSizeBounds = Field(default_factory=TeamSizeBounds)
    deadlines: EventDeadlines = Field(default_factory=EventDeadlines)

    def status_at(self, now: datetime | None = None) -> EventStatus:
        """Derive the event phase; events without a start date count as upcoming."""
        now = _as_utc(now or datetime.now(timezone.utc))
        start = self.deadlines.event_start
        end = self.deadlines.event_end
        if end is not None and now > _as_utc(end):
            return EventStatus.PAST
        if start is not None and now >= _as_utc(start):
            return EventStatus.ONGOING
        return EventStatus.UPCOMING

    @property
    def status(self) -> EventStatus:
        return self.status_at()


# =============================================================================
# Teams
# =============================================================================


class Team(BaseModel):
    id: str
    event_id: str
    name: str
    leader_id: str
    members: list[str] = Field(default_factory=list)
    pending_invites: list[str] = Field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    @property
    def member_count(self) -> int:
        return len(self.members)

    def is_member(self, user_id: str) -> bool:
        return user_id in self.members

    def is_invited(self, user_id: str) -> bool:
        return user_id in self.pending_invites


class TeamDetail(BaseModel):
    """Team with member identities resolved from the user directory."""

    id: str
    event_id: str
    name: str
    leader: UserSummary
    members: list[UserSummary]
    pending_invites: list[UserSummary]
    member_count: int
    created_at: str
    updated_at: str


class LeaveOutcome(str, Enum):
    LEFT = "left"
    TEAM_DELETED = "team_deleted"


class LeaveResult(BaseModel):
    status: LeaveOutcome
    team_id: str
    user_id: str


# =============================================================================
# Search
# =============================================================================


class SearchResult(BaseModel):
    user: User
    match_score: int = 0
