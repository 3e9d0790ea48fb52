"""
Team Feature Models

Request and response payloads for the team and teammate-search endpoints.
"""

from typing import Optional

from pydantic import BaseModel, Field

from teamfinder.schemas.models import LeaveOutcome, SearchResult, TeamDetail


# =============================================================================
# Request Models
# =============================================================================


class TeamCreate(BaseModel):
    """Request model for creating a team for an event."""

    event_id: str = Field(..., min_length=1, description="Event the team competes in")
    name: str = Field(..., min_length=1, max_length=100, description="Team name")


class InviteRequest(BaseModel):
    """Request model for inviting a user to a team."""

    invitee_id: str = Field(..., min_length=1, description="User ID to invite")


# =============================================================================
# Response Models
# =============================================================================


class TeamResponse(TeamDetail):
    """Response model for team information."""


class LeaveTeamResponse(BaseModel):
    status: LeaveOutcome
    team_id: str
    message: str


class DeleteTeamResponse(BaseModel):
    status: str = "deleted"
    team_id: str


class TeammateSearchResponse(BaseModel):
    """Response model for ranked teammate search."""

    query: list[str]
    results: list[SearchResult]
    total: int
    limit: Optional[int] = None
