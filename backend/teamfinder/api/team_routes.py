"""
Team API Routes

Endpoints for team creation, invitations and membership changes. Domain
errors raised by the membership service are translated to HTTP responses by
the exception handler registered in ``teamfinder.main``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from teamfinder.api.dependencies import get_membership_service
from teamfinder.auth.firebase_auth import FirebaseUser, get_current_user
from teamfinder.schemas.models import LeaveOutcome
from teamfinder.schemas.team_models import (
    DeleteTeamResponse,
    InviteRequest,
    LeaveTeamResponse,
    TeamCreate,
    TeamResponse,
)
from teamfinder.services.membership_service import TeamMembershipService

router = APIRouter(prefix="/teams", tags=["teams"])


def _response(service: TeamMembershipService, team_id: str) -> TeamResponse:
    return TeamResponse(**service.get_by_id(team_id).model_dump())


# =============================================================================
# Team Management
# =============================================================================


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
def create_team(
    payload: TeamCreate,
    user: FirebaseUser = Depends(get_current_user),
    service: TeamMembershipService = Depends(get_membership_service),
) -> TeamResponse:
    """Create a team for an event. The creator becomes the leader."""
    team = service.create_team(payload.event_id, user.uid, payload.name)
    return _response(service, team.id)


@router.get("", response_model=list[TeamResponse])
def list_event_teams(
    event_id: Optional[str] = Query(None, description="Event to list teams for"),
    service: TeamMembershipService = Depends(get_membership_service),
) -> list[TeamResponse]:
    """List all teams formed for an event."""
    if not event_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="event_id query parameter is required",
        )
    return [TeamResponse(**t.model_dump()) for t in service.list_for_event(event_id)]


@router.get("/me", response_model=list[TeamResponse])
def list_my_teams(
    user: FirebaseUser = Depends(get_current_user),
    service: TeamMembershipService = Depends(get_membership_service),
) -> list[TeamResponse]:
    """List the teams the current user is a member of."""
    return [TeamResponse(**t.model_dump()) for t in service.list_for_user(user.uid)]


@router.get("/me/invites", response_model=list[TeamResponse])
def list_my_invites(
    user: FirebaseUser = Depends(get_current_user),
    service: TeamMembershipService = Depends(get_membership_service),
) -> list[TeamResponse]:
    """List the teams that have invited the current user."""
    return [TeamResponse(**t.model_dump()) for t in service.list_invites_for_user(user.uid)]


@router.get("/{team_id}", response_model=TeamResponse)
def get_team(
    team_id: str,
    service: TeamMembershipService = Depends(get_membership_service),
) -> TeamResponse:
    return _response(service, team_id)


@router.delete("/{team_id}", response_model=DeleteTeamResponse)
def delete_team(
    team_id: str,
    user: FirebaseUser = Depends(get_current_user),
    service: TeamMembershipService = Depends(get_membership_service),
) -> DeleteTeamResponse:
    """Delete a team. Leader only."""
    service.delete_team(team_id, user.uid)
    return DeleteTeamResponse(team_id=team_id)


# =============================================================================
# Invitations and Membership
# =============================================================================


@router.post("/{team_id}/invites", response_model=TeamResponse)
def invite_member(
    team_id: str,
    payload: InviteRequest,
    user: FirebaseUser = Depends(get_current_user),
    service: TeamMembershipService = Depends(get_membership_service),
) -> TeamResponse:
    """Invite a user to the team. Any member may invite."""
    service.invite(team_id, user.uid, payload.invitee_id)
    return _response(service, team_id)


@router.post("/{team_id}/join", response_model=TeamResponse)
def join_team(
    team_id: str,
    user: FirebaseUser = Depends(get_current_user),
    service: TeamMembershipService = Depends(get_membership_service),
) -> TeamResponse:
    """Accept a pending invite."""
    service.join(team_id, user.uid)
    return _response(service, team_id)


@router.post("/{team_id}/decline", response_model=TeamResponse)
def decline_invite(
    team_id: str,
    user: FirebaseUser = Depends(get_current_user),
    service: TeamMembershipService = Depends(get_membership_service),
) -> TeamResponse:
    """Decline a pending invite."""
    service.decline(team_id, user.uid)
    return _response(service, team_id)


@router.post("/{team_id}/leave", response_model=LeaveTeamResponse)
def leave_team(
    team_id: str,
    user: FirebaseUser = Depends(get_current_user),
    service: TeamMembershipService = Depends(get_membership_service),
) -> LeaveTeamResponse:
    """Leave a team. A leader who is the last member deletes the team."""
    result = service.leave(team_id, user.uid)
    if result.status == LeaveOutcome.TEAM_DELETED:
        message = "You were the last member. Team has been deleted."
    else:
        message = "You have left the team."
    return LeaveTeamResponse(status=result.status, team_id=team_id, message=message)
