"""Pydantic schema package for API contracts."""

from pipeline_crm.schemas.prospects import (
    BoardColumnResponse,
    BoardResponse,
    DashboardResponse,
    FieldChangeResponse,
    HistoryEntryResponse,
    MarkLostRequest,
    ProspectListResponse,
    ProspectMutationResponse,
    ProspectPayload,
    ProspectResponse,
    StageMoveRequest,
)

__all__ = [
    "BoardColumnResponse",
    "BoardResponse",
    "DashboardResponse",
    "FieldChangeResponse",
    "HistoryEntryResponse",
    "MarkLostRequest",
    "ProspectListResponse",
    "ProspectMutationResponse",
    "ProspectPayload",
    "ProspectResponse",
    "StageMoveRequest",
]
