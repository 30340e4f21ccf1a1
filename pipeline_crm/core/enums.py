"""Enums for the pipeline CRM.

Stages form a fixed, totally ordered funnel. ``PAID`` and ``LOST`` are terminal
states that can be reached from any stage.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class ProspectStage(str, enum.Enum):
    """Funnel stage a prospect currently occupies."""

    NEW = "new"
    CONTACTED = "contacted"
    MEETING_SCHEDULED = "meeting_scheduled"
    MEETING_DONE = "meeting_done"
    PROPOSAL_SENT = "proposal_sent"
    NEGOTIATING = "negotiating"
    PAID = "paid"
    LOST = "lost"


class Temperature(str, enum.Enum):
    """Qualitative priority signal."""

    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


class Commitment(str, enum.Enum):
    """How soon the prospect is willing to buy."""

    IMMEDIATE = "immediate"
    THIRTY_DAYS = "30_days"
    EXPLORING = "exploring"
    NOT_INTERESTED = "not_interested"


@dataclass(frozen=True)
class StageInfo:
    """Display metadata for one funnel stage."""

    stage: str
    label: str
    color: str


STAGES: tuple[StageInfo, ...] = (
    StageInfo(ProspectStage.NEW.value, "New", "#64748b"),
    StageInfo(ProspectStage.CONTACTED.value, "Contacted", "#3b82f6"),
    StageInfo(ProspectStage.MEETING_SCHEDULED.value, "Meeting Scheduled", "#8b5cf6"),
    StageInfo(ProspectStage.MEETING_DONE.value, "Meeting Done", "#a855f7"),
    StageInfo(ProspectStage.PROPOSAL_SENT.value, "Proposal Sent", "#f59e0b"),
    StageInfo(ProspectStage.NEGOTIATING.value, "Negotiating", "#f97316"),
    StageInfo(ProspectStage.PAID.value, "Paid", "#22c55e"),
    StageInfo(ProspectStage.LOST.value, "Lost", "#ef4444"),
)

UNKNOWN_STAGE_COLOR = "#9ca3af"

STAGE_VALUES: tuple[str, ...] = tuple(info.stage for info in STAGES)
ACTIVE_STAGE_VALUES: tuple[str, ...] = tuple(
    value for value in STAGE_VALUES if value != ProspectStage.LOST.value
)
TEMPERATURE_VALUES: tuple[str, ...] = tuple(item.value for item in Temperature)

# Sentinel accepted by list filters to disable a filter.
FILTER_ALL = "all"


def stage_label(stage: str) -> str:
    for info in STAGES:
        if info.stage == stage:
            return info.label
    return stage


class CardSyncState(str, enum.Enum):
    """Sync state of a card after an optimistic drag on the board."""

    PENDING_LOCAL = "pending_local"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"
