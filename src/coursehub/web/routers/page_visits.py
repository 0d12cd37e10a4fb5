from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from coursehub.core.modules.presence.models import PageVisit, PageVisitStats
from coursehub.web.deps import AppDep, SessionIdDep
from coursehub.web.openapi import ErrorResponse

router = APIRouter(tags=["page-visits"])


class PageVisitRequest(BaseModel):
    page: str = Field(..., description="Visited page path")


@router.post(
    "/page-visits",
    summary="Record page visit",
    description="Record a page view for the current user and refresh their presence.",
    operation_id="recordPageVisit",
    status_code=201,
    responses={
        201: {"description": "Visit recorded"},
        400: {"model": ErrorResponse, "description": "Invalid page"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def record_page_visit(data: PageVisitRequest, app: AppDep, session_id: SessionIdDep) -> PageVisit:
    return await app.record_page_visit(session_id, data.page)


@router.get(
    "/page-visits/me",
    summary="Own page visits",
    description="Page visits recorded for the current user.",
    operation_id="listMyPageVisits",
    responses={
        200: {"description": "Page visits"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_my_page_visits(app: AppDep, session_id: SessionIdDep) -> list[PageVisit]:
    return await app.get_my_page_visits(session_id)


@router.get(
    "/page-visits/stats",
    summary="Most visited pages",
    description="Pages ranked by visit count. Only accessible by admin users.",
    operation_id="getPageVisitStats",
    responses={
        200: {"description": "Ranked pages"},
        400: {"model": ErrorResponse, "description": "Invalid limit"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin privileges required"},
    },
)
async def get_page_visit_stats(
    app: AppDep, session_id: SessionIdDep, limit: Annotated[int, Query(ge=1, le=100)] = 5
) -> list[PageVisitStats]:
    return await app.get_most_visited_pages(session_id, limit)
