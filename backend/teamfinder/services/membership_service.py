"""
Team Membership Service

Owns team creation, the invite/join/decline/leave transitions and team
deletion. Every mutation runs as one unit of work of the team store, so a
transition is either applied completely or not at all.

Per (team, user) pair:

    NoRelation --invite--> Invited --join--> Member --leave--> NoRelation
                           Invited --decline--> NoRelation

The leader leaves only through ``delete_team`` or by leaving as the sole
member, which deletes the team.
"""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from teamfinder.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from teamfinder.core.logging import LogContext, get_logger
from teamfinder.core.utils import utc_now_iso
from teamfinder.core.validation import validate_id, validate_team_name
from teamfinder.repositories.base import EventDirectory, TeamStore, TeamUnitOfWork, UserDirectory
from teamfinder.schemas.models import (
    LeaveOutcome,
    LeaveResult,
    MemberRole,
    Team,
    TeamDetail,
    UserSummary,
)

logger = get_logger("teamfinder.services.membership")


class TeamMembershipService:
    def __init__(
        self,
        teams: TeamStore,
        users: UserDirectory,
        events: EventDirectory,
        cap_outstanding_invites: bool = False,
    ) -> None:
        self.teams = teams
        self.users = users
        self.events = events
        self.cap_outstanding_invites = cap_outstanding_invites

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _require_team(unit: TeamUnitOfWork) -> Team:
        team = unit.get_team()
        if team is None:
            raise NotFoundError(f"Team {unit.team_id} not found", {"team_id": unit.team_id})
        return team

    @staticmethod
    def _touch(team: Team) -> Team:
        team.updated_at = utc_now_iso()
        return team

    def _summaries(self, user_ids: list[str]) -> list[UserSummary]:
        found = {user.id: user for user in self.users.get_users_by_ids(user_ids)}
        return [
            UserSummary.from_user(found[uid]) if uid in found else UserSummary(id=uid)
            for uid in user_ids
        ]

    def _detail(self, team: Team) -> TeamDetail:
        members = self._summaries(team.members)
        invites = self._summaries(team.pending_invites)
        leader = next((m for m in members if m.id == team.leader_id), UserSummary(id=team.leader_id))
        return TeamDetail(
            id=team.id,
            event_id=team.event_id,
            name=team.name,
            leader=leader,
            members=members,
            pending_invites=invites,
            member_count=team.member_count,
            created_at=team.created_at,
            updated_at=team.updated_at,
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_team(self, event_id: str, leader_id: str, name: str) -> Team:
        """
        Create a team for an event with the requester as leader.

        Args:
            event_id: Event the team belongs to
            leader_id: Requesting user, becomes leader and first member
            name: Team display name

        Returns:
            The created team

        Raises:
            InvalidArgumentError: empty name or malformed ids
            NotFoundError: event or user does not exist
            ConflictError: requester is already on a team for the event
        """
        event_id = validate_id(event_id, "event_id")
        leader_id = validate_id(leader_id, "leader_id")
        name = validate_team_name(name)
        team_id = str(uuid4())

        with LogContext(logger, "create_team", event_id=event_id, leader_id=leader_id):
            if not self.events.event_exists(event_id):
                raise NotFoundError(f"Event {event_id} not found", {"event_id": event_id})
            self.users.get_user(leader_id)

            def work(unit: TeamUnitOfWork) -> Team:
                now = utc_now_iso()
                team = Team(
                    id=team_id,
                    event_id=event_id,
                    name=name,
                    leader_id=leader_id,
                    members=[leader_id],
                    pending_invites=[],
                    created_at=now,
                    updated_at=now,
                )
                unit.claim_membership(event_id, leader_id, MemberRole.LEADER)
                unit.save(team)
                return team

            return self.teams.run(team_id, work)

    def invite(self, team_id: str, inviter_id: str, invitee_id: str) -> Team:
        """Add ``invitee_id`` to the team's pending invites.

        Any current member may invite. Capacity is checked at join time unless
        ``cap_outstanding_invites`` is set, in which case members plus pending
        invites may not exceed the event's maximum team size.
        """
        team_id = validate_id(team_id, "team_id")
        inviter_id = validate_id(inviter_id, "inviter_id")
        invitee_id = validate_id(invitee_id, "invitee_id")

        with LogContext(logger, "invite", team_id=team_id, inviter_id=inviter_id, invitee_id=invitee_id):
            self.users.get_user(invitee_id)

            def work(unit: TeamUnitOfWork) -> Team:
                team = self._require_team(unit)
                if not team.is_member(inviter_id):
                    raise PermissionDeniedError(
                        "Only team members can invite", {"team_id": team_id, "user_id": inviter_id}
                    )
                if team.is_member(invitee_id):
                    raise ConflictError("User is already a member of this team", {"user_id": invitee_id})
                if team.is_invited(invitee_id):
                    raise ConflictError("User already has a pending invite", {"user_id": invitee_id})

                bounds = self.events.get_team_size_bounds(team.event_id)
                if team.member_count >= bounds.max:
                    raise ConflictError("Team is full", {"team_id": team_id, "max": bounds.max})
                if (
                    self.cap_outstanding_invites
                    and team.member_count + len(team.pending_invites) >= bounds.max
                ):
                    raise ConflictError(
                        "Outstanding invites already fill the team",
                        {"team_id": team_id, "max": bounds.max},
                    )

                owner = unit.membership_of(team.event_id, invitee_id)
                if owner is not None:
                    raise ConflictError(
                        "User is already on another team for this event",
                        {"user_id": invitee_id, "event_id": team.event_id},
                    )

                team.pending_invites.append(invitee_id)
                unit.save(self._touch(team))
                return team

            return self.teams.run(team_id, work)

    def join(self, team_id: str, user_id: str) -> Team:
        """Accept a pending invite.

        A full team, or a user who joined another team for the event since the
        invite was sent, leaves the invite unusable: it is withdrawn and the
        call fails with ``ConflictError``.
        """
        team_id = validate_id(team_id, "team_id")
        user_id = validate_id(user_id, "user_id")

        with LogContext(logger, "join", team_id=team_id, user_id=user_id):

            def work(unit: TeamUnitOfWork) -> tuple[Team, Optional[ConflictError]]:
                team = self._require_team(unit)
                if not team.is_invited(user_id):
                    raise NotFoundError(
                        "No pending invite for this user", {"team_id": team_id, "user_id": user_id}
                    )

                team.pending_invites.remove(user_id)
                bounds = self.events.get_team_size_bounds(team.event_id)
                if team.member_count >= bounds.max:
                    unit.save(self._touch(team))
                    return team, ConflictError("Team is full", {"team_id": team_id, "max": bounds.max})

                owner = unit.membership_of(team.event_id, user_id)
                if owner is not None and owner != team.id:
                    unit.save(self._touch(team))
                    return team, ConflictError(
                        "User is already on another team for this event",
                        {"user_id": user_id, "event_id": team.event_id},
                    )

                unit.claim_membership(team.event_id, user_id, MemberRole.MEMBER)
                team.members.append(user_id)
                unit.save(self._touch(team))
                return team, None

            team, error = self.teams.run(team_id, work)
            if error is not None:
                raise error
            return team

    def decline(self, team_id: str, user_id: str) -> Team:
        team_id = validate_id(team_id, "team_id")
        user_id = validate_id(user_id, "user_id")

        with LogContext(logger, "decline", team_id=team_id, user_id=user_id):

            def work(unit: TeamUnitOfWork) -> Team:
                team = self._require_team(unit)
                if not team.is_invited(user_id):
                    raise NotFoundError(
                        "No pending invite for this user", {"team_id": team_id, "user_id": user_id}
                    )
                team.pending_invites.remove(user_id)
                unit.save(self._touch(team))
                return team

            return self.teams.run(team_id, work)

    def leave(self, team_id: str, user_id: str) -> LeaveResult:
        """Remove a member from a team.

        The leader may not leave while other members remain; a leader who is
        the last member deletes the team by leaving.
        """
        team_id = validate_id(team_id, "team_id")
        user_id = validate_id(user_id, "user_id")

        with LogContext(logger, "leave", team_id=team_id, user_id=user_id):

            def work(unit: TeamUnitOfWork) -> LeaveResult:
                team = self._require_team(unit)
                if not team.is_member(user_id):
                    raise NotFoundError(
                        "User is not a member of this team", {"team_id": team_id, "user_id": user_id}
                    )

                if user_id == team.leader_id:
                    if team.member_count > 1:
                        raise ConflictError(
                            "The team leader cannot leave while other members remain. "
                            "Delete the team instead.",
                            {"team_id": team_id},
                        )
                    unit.release_membership(team.event_id, user_id)
                    unit.delete(team)
                    return LeaveResult(status=LeaveOutcome.TEAM_DELETED, team_id=team_id, user_id=user_id)

                team.members.remove(user_id)
                unit.release_membership(team.event_id, user_id)
                unit.save(self._touch(team))
                return LeaveResult(status=LeaveOutcome.LEFT, team_id=team_id, user_id=user_id)

            return self.teams.run(team_id, work)

    def delete_team(self, team_id: str, requester_id: str) -> None:
        team_id = validate_id(team_id, "team_id")
        requester_id = validate_id(requester_id, "requester_id")

        with LogContext(logger, "delete_team", team_id=team_id, requester_id=requester_id):

            def work(unit: TeamUnitOfWork) -> None:
                team = self._require_team(unit)
                if requester_id != team.leader_id:
                    raise PermissionDeniedError(
                        "Only the team leader can delete the team",
                        {"team_id": team_id, "user_id": requester_id},
                    )
                for member_id in team.members:
                    unit.release_membership(team.event_id, member_id)
                unit.delete(team)

            self.teams.run(team_id, work)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_by_id(self, team_id: str) -> TeamDetail:
        team_id = validate_id(team_id, "team_id")
        team = self.teams.get_team(team_id)
        if team is None:
            raise NotFoundError(f"Team {team_id} not found", {"team_id": team_id})
        return self._detail(team)

    def list_for_event(self, event_id: str) -> list[TeamDetail]:
        event_id = validate_id(event_id, "event_id")
        if not self.events.event_exists(event_id):
            raise NotFoundError(f"Event {event_id} not found", {"event_id": event_id})
        teams = sorted(self.teams.list_event_teams(event_id), key=lambda t: (t.created_at, t.id))
        return [self._detail(team) for team in teams]

    def list_for_user(self, user_id: str) -> list[TeamDetail]:
        user_id = validate_id(user_id, "user_id")
        teams = sorted(self.teams.list_user_teams(user_id), key=lambda t: (t.created_at, t.id))
        return [self._detail(team) for team in teams]

    def list_invites_for_user(self, user_id: str) -> list[TeamDetail]:
        """Teams currently holding a pending invite for ``user_id``."""
        user_id = validate_id(user_id, "user_id")
        teams = sorted(self.teams.list_invited_teams(user_id), key=lambda t: (t.created_at, t.id))
        return [self._detail(team) for team in teams]
