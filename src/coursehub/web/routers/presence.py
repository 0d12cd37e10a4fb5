from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Query
from pydantic import BaseModel, Field

from coursehub.core.modules.presence.models import ActiveUser
from coursehub.web.deps import AppDep, SessionIdDep
from coursehub.web.openapi import ErrorResponse

router = APIRouter(tags=["presence"])


class HeartbeatRequest(BaseModel):
    """Activity signal from the client."""

    location: str | None = Field(None, description="Page the user is on; omitted keeps the previous one")


class PresenceEntryView(BaseModel):
    user_id: UUID = Field(..., description="User ID")
    last_active: datetime = Field(..., description="Time of the latest heartbeat")
    current_location: str | None = Field(None, description="Last reported page")


class HeartbeatResponse(BaseModel):
    entry: PresenceEntryView


@router.post(
    "/presence/heartbeat",
    summary="Report activity",
    description="Refresh the current user's last-active time and, optionally, location.",
    operation_id="heartbeat",
    responses={
        200: {"description": "Updated presence entry"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def heartbeat(
    app: AppDep, session_id: SessionIdDep, data: Annotated[HeartbeatRequest | None, Body()] = None
) -> HeartbeatResponse:
    location = data.location if data is not None else None
    entry = await app.heartbeat(session_id, location)
    return HeartbeatResponse(
        entry=PresenceEntryView(
            user_id=entry.user_id, last_active=entry.last_active, current_location=entry.current_location
        )
    )


@router.get(
    "/presence/active",
    summary="List online users",
    description="Users whose latest heartbeat is within the threshold. Only accessible by admin users.",
    operation_id="listActiveUsers",
    responses={
        200: {"description": "Active users, unordered"},
        400: {"model": ErrorResponse, "description": "Invalid threshold"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def list_active(
    app: AppDep,
    session_id: SessionIdDep,
    threshold_ms: Annotated[int | None, Query(alias="thresholdMs", ge=0, description="Window in milliseconds")] = None,
) -> list[ActiveUser]:
    return await app.get_active_users(session_id, threshold_ms)
