from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.core.dependencies import require_permission
from app.models.auth import ActorInfo
from app.models.employee import PersonRef
from app.models.team import ScoredTeam, TeamDetail, TeamMembersRequest, TeamMembersResponse
from app.services.audit_service import get_ip_address
from app.services.team_service import TeamMemberError, TeamNotFoundError, team_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams", tags=["teams"])


@router.get("", response_model=list[ScoredTeam])
async def list_teams(search: str = ""):
    try:
        return await team_service.list_teams(search)
    except Exception as err:
        logger.exception("Failed to list teams")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve teams",
        ) from err


@router.get("/hierarchy")
async def get_team_hierarchy():
    try:
        return {"data": await team_service.get_hierarchy()}
    except Exception as err:
        logger.exception("Failed to build team hierarchy")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve team hierarchy",
        ) from err


@router.get("/leads", response_model=list[PersonRef])
async def list_team_leads():
    try:
        return await team_service.get_team_leads()
    except Exception as err:
        logger.exception("Failed to list team leads")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve team leads",
        ) from err


@router.get("/{team_id}", response_model=TeamDetail)
async def get_team(team_id: str):
    try:
        team = await team_service.get_team(team_id)
    except Exception as err:
        logger.exception("Failed to get team %s", team_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve team",
        ) from err

    if not team:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Team with id '{team_id}' not found",
        )

    return team


@router.post("/{team_id}/members", response_model=TeamMembersResponse)
async def add_team_members(
    team_id: str,
    body: TeamMembersRequest,
    request: Request,
    actor: ActorInfo = Depends(require_permission("team.edit")),  # noqa: B008
):
    try:
        added = await team_service.add_members(team_id, body.employee_ids, actor, get_ip_address(request.headers))
    except TeamMemberError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except TeamNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    except Exception as err:
        logger.exception("Failed to add members to team %s", team_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add team members",
        ) from err

    return TeamMembersResponse(success=True, added_count=added)


@router.delete("/{team_id}/members", response_model=TeamMembersResponse)
async def remove_team_members(
    team_id: str,
    body: TeamMembersRequest,
    request: Request,
    actor: ActorInfo = Depends(require_permission("team.edit")),  # noqa: B008
):
    try:
        removed = await team_service.remove_members(
            team_id, body.employee_ids, actor, get_ip_address(request.headers)
        )
    except TeamMemberError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except TeamNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    except Exception as err:
        logger.exception("Failed to remove members from team %s", team_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to remove team members",
        ) from err

    return TeamMembersResponse(success=True, removed_count=removed)
