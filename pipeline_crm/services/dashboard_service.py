"""Dashboard aggregates over the active (non-lost) pipeline."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from pipeline_crm.core.enums import ACTIVE_STAGE_VALUES, ProspectStage, Temperature, stage_label
from pipeline_crm.models import Prospect


@dataclass
class StageShare:
    stage: str
    label: str
    count: int
    percentage: float


@dataclass
class DashboardSummary:
    active_count: int = 0
    pipeline_value: Decimal = Decimal("0.00")
    hot_count: int = 0
    actions_this_week: int = 0
    upcoming_actions: list[Prospect] = field(default_factory=list)
    stage_distribution: list[StageShare] = field(default_factory=list)


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday..Saturday week containing ``today``."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def summarize(prospects: Iterable[Prospect], today: date, upcoming_limit: int = 5) -> DashboardSummary:
    active = [p for p in prospects if p.stage != ProspectStage.LOST.value]
    week_start, week_end = week_bounds(today)

    pipeline_value = sum((p.estimated_amount or Decimal("0") for p in active), Decimal("0"))
    scheduled = [p for p in active if p.next_action_date is not None]
    upcoming = sorted(scheduled, key=lambda p: p.next_action_date)[:upcoming_limit]

    total = len(active)
    distribution = []
    for stage in ACTIVE_STAGE_VALUES:
        count = sum(1 for p in active if p.stage == stage)
        percentage = round(count / total * 100, 2) if total else 0.0
        distribution.append(StageShare(stage=stage, label=stage_label(stage), count=count, percentage=percentage))

    return DashboardSummary(
        active_count=total,
        pipeline_value=Decimal(pipeline_value).quantize(Decimal("0.01")),
        hot_count=sum(1 for p in active if p.temperature == Temperature.HOT.value),
        actions_this_week=sum(1 for p in scheduled if week_start <= p.next_action_date <= week_end),
        upcoming_actions=upcoming,
        stage_distribution=distribution,
    )
