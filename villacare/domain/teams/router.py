"""Team router - cleaner teams used for booking escalation"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_cleaner
from ...database import get_db
from ...models import User
from .schemas import TeamCreate, TeamJoinRequestAction, TeamJoinRequestCreate
from .service import TeamService

router = APIRouter(tags=["Teams"])


def get_team_service(db: Session = Depends(get_db)) -> TeamService:
    return TeamService(db)


@router.get("/api/dashboard/cleaner/team")
async def get_my_team(
    current_user: User = Depends(require_cleaner),
    service: TeamService = Depends(get_team_service),
):
    return service.get_my_team(current_user)


@router.post("/api/dashboard/cleaner/team")
async def create_team(
    data: TeamCreate,
    current_user: User = Depends(require_cleaner),
    service: TeamService = Depends(get_team_service),
):
    team = service.create_team(current_user, data.name)
    return {"success": True, "team": {"id": team.id, "name": team.name}}


@router.post("/api/teams/{team_id}/join")
async def request_to_join_team(
    team_id: str,
    data: Optional[TeamJoinRequestCreate] = None,
    current_user: User = Depends(require_cleaner),
    service: TeamService = Depends(get_team_service),
):
    join_request = service.request_to_join(current_user, team_id, data.message if data else None)
    return {
        "success": True,
        "requestId": join_request.id,
        "message": "Join request submitted. The team leader will review your request.",
    }


@router.delete("/api/teams/{team_id}/join")
async def cancel_join_request(
    team_id: str,
    current_user: User = Depends(require_cleaner),
    service: TeamService = Depends(get_team_service),
):
    service.cancel_request(current_user, team_id)
    return {"success": True, "message": "Join request cancelled"}


@router.get("/api/dashboard/cleaner/team/requests")
async def list_join_requests(
    current_user: User = Depends(require_cleaner),
    service: TeamService = Depends(get_team_service),
):
    return {"requests": service.list_join_requests(current_user)}


@router.patch("/api/dashboard/cleaner/team/requests/{request_id}")
async def respond_to_join_request(
    request_id: str,
    data: TeamJoinRequestAction,
    current_user: User = Depends(require_cleaner),
    service: TeamService = Depends(get_team_service),
):
    join_request = service.respond_to_request(current_user, request_id, data.action)
    return {"success": True, "status": join_request.status}


@router.post("/api/dashboard/cleaner/team/leave")
async def leave_team(
    current_user: User = Depends(require_cleaner),
    service: TeamService = Depends(get_team_service),
):
    service.leave_team(current_user)
    return {"success": True, "message": "You have left the team"}
