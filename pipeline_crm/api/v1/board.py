"""Kanban board and dashboard endpoints for API v1."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from pipeline_crm.api.v1._errors import raise_http_error
from pipeline_crm.core.config import get_config
from pipeline_crm.core.dependencies import get_prospect_service
from pipeline_crm.core.exceptions import PipelineCRMError
from pipeline_crm.schemas.prospects import (
    BoardColumnResponse,
    BoardResponse,
    DashboardResponse,
    ProspectResponse,
    StageShareResponse,
    UpcomingActionResponse,
)
from pipeline_crm.services.board_service import build_board
from pipeline_crm.services.prospect_service import ProspectService

router = APIRouter(tags=["board"])


@router.get("/board", response_model=BoardResponse)
def get_board(service: ProspectService = Depends(get_prospect_service)) -> BoardResponse:
    try:
        columns = build_board(service.list_all())
    except PipelineCRMError as exc:
        raise_http_error(exc)
    return BoardResponse(
        columns=[
            BoardColumnResponse(
                stage=column.stage,
                label=column.label,
                color=column.color,
                count=column.count,
                prospects=[ProspectResponse.model_validate(p) for p in column.prospects],
            )
            for column in columns
        ]
    )


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    today: date | None = Query(default=None),
    service: ProspectService = Depends(get_prospect_service),
) -> DashboardResponse:
    try:
        summary = service.dashboard_summary(today=today)
    except PipelineCRMError as exc:
        raise_http_error(exc)
    return DashboardResponse(
        active_count=summary.active_count,
        pipeline_value=summary.pipeline_value,
        currency=get_config().CURRENCY,
        hot_count=summary.hot_count,
        actions_this_week=summary.actions_this_week,
        upcoming_actions=[
            UpcomingActionResponse(
                prospect_id=p.id,
                name=p.name,
                next_action=p.next_action,
                next_action_date=p.next_action_date,
            )
            for p in summary.upcoming_actions
        ],
        stage_distribution=[
            StageShareResponse(stage=s.stage, label=s.label, count=s.count, percentage=s.percentage)
            for s in summary.stage_distribution
        ],
    )
