"""Prospect endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from pipeline_crm.api.v1._errors import raise_http_error
from pipeline_crm.core.dependencies import get_prospect_service
from pipeline_crm.core.enums import FILTER_ALL
from pipeline_crm.core.exceptions import PartialWriteError, PipelineCRMError
from pipeline_crm.models import Prospect
from pipeline_crm.schemas.prospects import (
    FieldChangeResponse,
    HistoryEntryResponse,
    MarkLostRequest,
    ProspectListResponse,
    ProspectMutationResponse,
    ProspectPayload,
    ProspectResponse,
    StageMoveRequest,
)
from pipeline_crm.services.change_reconciler import FieldChange
from pipeline_crm.services.list_view import ProspectFilters, ProspectSort
from pipeline_crm.services.prospect_service import ProspectService

router = APIRouter(prefix="/prospects", tags=["prospects"])


def _mutation_response(
    prospect: Prospect,
    changes: list[FieldChange],
    warning: str | None = None,
) -> ProspectMutationResponse:
    return ProspectMutationResponse(
        prospect=ProspectResponse.model_validate(prospect),
        changes=[
            FieldChangeResponse(field=c.field, previous_value=c.previous_text, new_value=c.new_text)
            for c in changes
        ],
        warning=warning,
    )


def _run_mutation(action) -> ProspectMutationResponse:
    try:
        result = action()
    except PartialWriteError as exc:
        return _mutation_response(exc.prospect, exc.changes, warning=str(exc))
    except PipelineCRMError as exc:
        raise_http_error(exc)
    return _mutation_response(result.prospect, result.changes)


@router.get("", response_model=ProspectListResponse)
def list_prospects(
    stage: str = Query(default=FILTER_ALL),
    temperature: str = Query(default=FILTER_ALL),
    search: str = Query(default="", max_length=255),
    sort: str = Query(default="created_at"),
    descending: bool = Query(default=True),
    service: ProspectService = Depends(get_prospect_service),
) -> ProspectListResponse:
    try:
        result = service.list_prospects(
            ProspectFilters(stage=stage, temperature=temperature, search=search),
            ProspectSort(field=sort, descending=descending),
        )
    except PipelineCRMError as exc:
        raise_http_error(exc)
    return ProspectListResponse(
        items=[ProspectResponse.model_validate(p) for p in result.items],
        total=len(result.items),
        store_is_empty=result.store_is_empty,
        offer_create_prospect=result.offer_create_prospect,
    )


@router.post("", response_model=ProspectResponse, status_code=status.HTTP_201_CREATED)
def create_prospect(
    payload: ProspectPayload,
    service: ProspectService = Depends(get_prospect_service),
) -> ProspectResponse:
    try:
        prospect = service.create_prospect(payload)
    except PipelineCRMError as exc:
        raise_http_error(exc)
    return ProspectResponse.model_validate(prospect)


@router.get("/{prospect_id}", response_model=ProspectResponse)
def get_prospect(
    prospect_id: str,
    service: ProspectService = Depends(get_prospect_service),
) -> ProspectResponse:
    try:
        prospect = service.get_prospect(prospect_id)
    except PipelineCRMError as exc:
        raise_http_error(exc)
    return ProspectResponse.model_validate(prospect)


@router.put("/{prospect_id}", response_model=ProspectMutationResponse)
def update_prospect(
    prospect_id: str,
    payload: ProspectPayload,
    service: ProspectService = Depends(get_prospect_service),
) -> ProspectMutationResponse:
    return _run_mutation(lambda: service.update_prospect(prospect_id, payload))


@router.patch("/{prospect_id}/stage", response_model=ProspectMutationResponse)
def move_stage(
    prospect_id: str,
    payload: StageMoveRequest,
    service: ProspectService = Depends(get_prospect_service),
) -> ProspectMutationResponse:
    return _run_mutation(lambda: service.move_stage(prospect_id, payload.stage))


@router.post("/{prospect_id}/mark-paid", response_model=ProspectMutationResponse)
def mark_paid(
    prospect_id: str,
    service: ProspectService = Depends(get_prospect_service),
) -> ProspectMutationResponse:
    return _run_mutation(lambda: service.mark_paid(prospect_id))


@router.post("/{prospect_id}/mark-lost", response_model=ProspectMutationResponse)
def mark_lost(
    prospect_id: str,
    payload: MarkLostRequest,
    service: ProspectService = Depends(get_prospect_service),
) -> ProspectMutationResponse:
    return _run_mutation(lambda: service.mark_lost(prospect_id, payload.reason))


@router.get("/{prospect_id}/history", response_model=list[HistoryEntryResponse])
def get_history(
    prospect_id: str,
    service: ProspectService = Depends(get_prospect_service),
) -> list[HistoryEntryResponse]:
    try:
        entries = service.get_history(prospect_id)
    except PipelineCRMError as exc:
        raise_http_error(exc)
    return [HistoryEntryResponse.model_validate(entry) for entry in entries]
