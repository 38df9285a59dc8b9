"""
Team service

A team is a leader plus member cleaners. Teammates are who an unanswered
booking gets escalated to. Cleaners ask to join and the leader approves or
rejects each request. A cleaner may lead a team once flagged as team
leader by an admin, or once they reach the platform's hours and rating
thresholds.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Cleaner, Notification, Team, TeamJoinRequest, User
from ..admin.repository import AdminRepository

logger = logging.getLogger(__name__)


def _member_payload(member: Cleaner) -> dict:
    return {
        "id": member.id,
        "name": member.user.name,
        "photo": member.user.image,
        "slug": member.slug,
        "rating": member.rating,
        "reviewCount": member.review_count,
        "serviceAreas": member.service_areas or [],
    }


class TeamService:
    def __init__(self, db: Session):
        self.db = db

    def _cleaner(self, user: User) -> Cleaner:
        cleaner = self.db.query(Cleaner).filter(Cleaner.user_id == user.id).first()
        if not cleaner:
            raise HTTPException(status_code=404, detail="Cleaner not found")
        return cleaner

    def leader_progress(self, cleaner: Cleaner) -> dict:
        """Completed hours and rating against the team leader thresholds"""
        settings = AdminRepository.get_or_create_settings(self.db)
        hours_worked = (
            self.db.query(func.coalesce(func.sum(Booking.hours), 0))
            .filter(Booking.cleaner_id == cleaner.id, Booking.status == "COMPLETED")
            .scalar()
        )
        hours_worked = float(hours_worked or 0)
        rating = cleaner.rating or 0
        required_hours = settings.team_leader_hours_required
        required_rating = settings.team_leader_rating_required
        return {
            "totalHoursWorked": hours_worked,
            "requiredHours": required_hours,
            "hoursRemaining": max(0, required_hours - hours_worked),
            "currentRating": rating,
            "requiredRating": required_rating,
            "hasMinHours": hours_worked >= required_hours,
            "hasMinRating": rating >= required_rating,
        }

    def get_my_team(self, user: User) -> dict:
        cleaner = self._cleaner(user)

        if cleaner.led_team:
            team = cleaner.led_team
            return {
                "role": "leader",
                "team": {
                    "id": team.id,
                    "name": team.name,
                    "createdAt": team.created_at,
                    "members": [_member_payload(m) for m in team.members],
                },
            }

        if cleaner.team:
            team = cleaner.team
            return {
                "role": "member",
                "team": {
                    "id": team.id,
                    "name": team.name,
                    "leader": {
                        "id": team.leader.id,
                        "name": team.leader.user.name,
                        "photo": team.leader.user.image,
                        "phone": team.leader.user.phone,
                        "slug": team.leader.slug,
                    },
                    "members": [_member_payload(m) for m in team.members],
                },
            }

        progress = self.leader_progress(cleaner)
        return {
            "role": "independent",
            "canCreateTeam": cleaner.team_leader or (progress["hasMinHours"] and progress["hasMinRating"]),
            "teamLeaderProgress": progress,
            "team": None,
        }

    def create_team(self, user: User, name: str) -> Team:
        cleaner = self._cleaner(user)
        if cleaner.led_team:
            raise HTTPException(status_code=400, detail="You already have a team")
        if cleaner.team:
            raise HTTPException(status_code=400, detail="Leave your current team before creating one")

        if not cleaner.team_leader:
            progress = self.leader_progress(cleaner)
            if not (progress["hasMinHours"] and progress["hasMinRating"]):
                raise HTTPException(status_code=403, detail="Team leader status required to create a team")
            cleaner.team_leader = True

        team = Team(name=name.strip(), leader_id=cleaner.id)
        self.db.add(team)
        self.db.commit()
        self.db.refresh(team)
        logger.info(f"👥 Team {team.id} created by cleaner {cleaner.id}")
        return team

    def _led_team(self, user: User) -> Team:
        cleaner = self._cleaner(user)
        if not cleaner.led_team:
            raise HTTPException(status_code=403, detail="You do not lead a team")
        return cleaner.led_team

    def request_to_join(self, user: User, team_id: str, message: Optional[str] = None) -> TeamJoinRequest:
        """Ask a team's leader to be let in; a rejected request may be sent again"""
        cleaner = self._cleaner(user)
        if cleaner.status != "ACTIVE":
            raise HTTPException(status_code=403, detail="Only active cleaners can join a team")
        if cleaner.team or cleaner.led_team:
            raise HTTPException(status_code=400, detail="You are already in a team. Leave your current team first.")

        team = self.db.query(Team).filter(Team.id == team_id).first()
        if not team:
            raise HTTPException(status_code=404, detail="Team not found")

        join_request = (
            self.db.query(TeamJoinRequest)
            .filter(TeamJoinRequest.team_id == team.id, TeamJoinRequest.cleaner_id == cleaner.id)
            .first()
        )
        if join_request and join_request.status == "PENDING":
            raise HTTPException(status_code=400, detail="You already have a pending request for this team")

        if join_request:
            join_request.status = "PENDING"
            join_request.message = message
            join_request.responded_at = None
            join_request.created_at = datetime.utcnow()
        else:
            join_request = TeamJoinRequest(team_id=team.id, cleaner_id=cleaner.id, message=message)
            self.db.add(join_request)

        self.db.add(
            Notification(
                user_id=team.leader.user_id,
                type="TEAM_JOIN_REQUEST",
                title="New Team Request",
                message=f"{user.name or 'A cleaner'} asked to join {team.name}.",
                data={"teamId": team.id, "cleanerId": cleaner.id},
                action_url="/dashboard?tab=team",
            )
        )
        self.db.commit()
        self.db.refresh(join_request)
        logger.info(f"🙋 Cleaner {cleaner.id} requested to join team {team.id}")
        return join_request

    def cancel_request(self, user: User, team_id: str) -> None:
        cleaner = self._cleaner(user)
        join_request = (
            self.db.query(TeamJoinRequest)
            .filter(
                TeamJoinRequest.team_id == team_id,
                TeamJoinRequest.cleaner_id == cleaner.id,
                TeamJoinRequest.status == "PENDING",
            )
            .first()
        )
        if not join_request:
            raise HTTPException(status_code=404, detail="No pending request found for this team")

        self.db.delete(join_request)
        self.db.commit()
        logger.info(f"↩️ Cleaner {cleaner.id} cancelled their request to join team {team_id}")

    def list_join_requests(self, user: User) -> list[dict]:
        team = self._led_team(user)
        requests = (
            self.db.query(TeamJoinRequest)
            .options(joinedload(TeamJoinRequest.cleaner).joinedload(Cleaner.user))
            .filter(TeamJoinRequest.team_id == team.id, TeamJoinRequest.status == "PENDING")
            .order_by(TeamJoinRequest.created_at.desc())
            .all()
        )
        return [
            {
                **_member_payload(r.cleaner),
                "id": r.id,
                "cleanerId": r.cleaner_id,
                "message": r.message,
                "createdAt": r.created_at,
            }
            for r in requests
        ]

    def respond_to_request(self, user: User, request_id: str, action: str) -> TeamJoinRequest:
        """Approve or reject a pending request to join the caller's team"""
        team = self._led_team(user)
        join_request = self.db.query(TeamJoinRequest).filter(TeamJoinRequest.id == request_id).first()
        if not join_request:
            raise HTTPException(status_code=404, detail="Join request not found")
        if join_request.team_id != team.id:
            raise HTTPException(status_code=403, detail="This request is not for your team")
        if join_request.status != "PENDING":
            raise HTTPException(status_code=400, detail="This request has already been processed")

        applicant = join_request.cleaner
        if action == "approve":
            if applicant.team_id or applicant.led_team:
                raise HTTPException(status_code=400, detail="This cleaner is already in a team")
            applicant.team_id = team.id
            join_request.status = "APPROVED"
            title, message = "Team Request Approved", f"You are now a member of {team.name}."
        else:
            join_request.status = "REJECTED"
            title, message = "Team Request Declined", f"Your request to join {team.name} was declined."

        join_request.responded_at = datetime.utcnow()
        self.db.add(
            Notification(
                user_id=applicant.user_id,
                type=f"TEAM_REQUEST_{join_request.status}",
                title=title,
                message=message,
                data={"teamId": team.id},
                action_url="/dashboard?tab=team",
            )
        )
        self.db.commit()
        logger.info(f"🤝 Join request {join_request.id} {join_request.status.lower()} by team {team.id}")
        return join_request

    def leave_team(self, user: User) -> None:
        cleaner = self._cleaner(user)
        if cleaner.led_team:
            raise HTTPException(status_code=400, detail="Team leaders cannot leave their team")
        if not cleaner.team_id:
            raise HTTPException(status_code=400, detail="You are not a member of any team")

        team_id = cleaner.team_id
        cleaner.team_id = None
        self.db.commit()
        logger.info(f"👋 Cleaner {cleaner.id} left team {team_id}")
