"""Prospect service: create, update, list, history and stage moves."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import date
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from pipeline_crm.core.config import get_config
from pipeline_crm.core.enums import ProspectStage
from pipeline_crm.core.exceptions import NotFoundError, StoreWriteError, ValidationError
from pipeline_crm.models import Prospect, ProspectHistory
from pipeline_crm.schemas.prospects import ProspectPayload
from pipeline_crm.services.base_service import BaseService
from pipeline_crm.services.change_reconciler import (
    TRACKED_FIELDS,
    ChangeReconciler,
    ReconcileResult,
    coerce_value,
    snapshot,
)
from pipeline_crm.services.dashboard_service import DashboardSummary, summarize
from pipeline_crm.services.list_view import ProspectFilters, ProspectListResult, ProspectSort, list_prospects

logger = logging.getLogger(__name__)

DEFAULT_LOSS_REASON = "Not specified"


def _validate_payload(payload: ProspectPayload | Mapping[str, Any]) -> ProspectPayload:
    if isinstance(payload, ProspectPayload):
        return payload
    try:
        return ProspectPayload.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise ValidationError(str(exc)) from exc


def _parse_stage(stage: str | ProspectStage) -> str:
    try:
        return ProspectStage(stage).value
    except ValueError as exc:
        raise ValidationError(f"Unknown stage: {stage}") from exc


class ProspectService(BaseService):
    """Service for prospect CRUD, audited updates and board moves."""

    @contextmanager
    def _reading(self, what: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "prospect.read.failed",
                extra={"event": "prospect.read.failed", "error": str(exc)},
            )
            raise StoreWriteError(f"Store could not load {what}.") from exc

    def create_prospect(self, payload: ProspectPayload | Mapping[str, Any]) -> Prospect:
        values = _validate_payload(payload).to_store_values()
        prospect = Prospect(**{name: coerce_value(name, values.get(name)) for name in TRACKED_FIELDS})
        for name in ("objections", "key_quotes"):
            if getattr(prospect, name) is not None:
                setattr(prospect, name, list(getattr(prospect, name)))
        self.db.add(prospect)
        try:
            self.commit()
        except SQLAlchemyError as exc:
            logger.error(
                "prospect.create.failed",
                extra={"event": "prospect.create.failed", "error": str(exc)},
            )
            raise StoreWriteError("Store rejected the new prospect.") from exc
        self.db.refresh(prospect)
        logger.info("prospect.created", extra={"event": "prospect.created", "prospect_id": prospect.id})
        return prospect

    def get_prospect(self, prospect_id: str) -> Prospect:
        with self._reading(f"prospect {prospect_id}"):
            prospect = self.db.get(Prospect, prospect_id)
        if prospect is None:
            raise NotFoundError(f"Prospect not found: {prospect_id}")
        return prospect

    def list_all(self) -> list[Prospect]:
        with self._reading("prospects"):
            return list(self.db.scalars(select(Prospect).order_by(Prospect.created_at.desc())))

    def update_prospect(self, prospect_id: str, payload: ProspectPayload | Mapping[str, Any]) -> ReconcileResult:
        """Apply the submitted fields to a prospect and log the changed ones.

        Fields missing from ``payload`` keep their stored values.

        Raises ``PartialWriteError`` when the update persisted but the
        history did not.
        """
        values = _validate_payload(payload).to_store_values(exclude_unset=True)
        prospect = self.get_prospect(prospect_id)
        return ChangeReconciler(self.db).apply(prospect, values)

    def list_prospects(
        self,
        filters: ProspectFilters | None = None,
        sort: ProspectSort | None = None,
    ) -> ProspectListResult:
        with self._reading("prospects"):
            return list_prospects(self.db, filters=filters, sort=sort)

    def get_history(self, prospect_id: str) -> list[ProspectHistory]:
        self.get_prospect(prospect_id)
        query = (
            select(ProspectHistory)
            .where(ProspectHistory.prospect_id == prospect_id)
            .order_by(ProspectHistory.created_at.desc(), ProspectHistory.id.desc())
        )
        with self._reading(f"history of prospect {prospect_id}"):
            return list(self.db.scalars(query))

    def move_stage(self, prospect_id: str, target_stage: str | ProspectStage) -> ReconcileResult:
        target = _parse_stage(target_stage)
        prospect = self.get_prospect(prospect_id)
        if prospect.stage == target:
            return ReconcileResult(prospect=prospect)

        previous = prospect.stage
        result = ChangeReconciler(self.db).apply(prospect, {**snapshot(prospect), "stage": target})
        logger.info(
            "prospect.stage_moved",
            extra={
                "event": "prospect.stage_moved",
                "prospect_id": prospect_id,
                "previous_stage": previous,
                "stage": target,
            },
        )
        return result

    def mark_paid(self, prospect_id: str) -> ReconcileResult:
        return self.move_stage(prospect_id, ProspectStage.PAID)

    def mark_lost(self, prospect_id: str, reason: str = DEFAULT_LOSS_REASON) -> ReconcileResult:
        prospect = self.get_prospect(prospect_id)
        reason = (reason or "").strip() or DEFAULT_LOSS_REASON
        notes = f"{prospect.notes or ''}\n\nLoss reason: {reason}".strip()
        values = {**snapshot(prospect), "stage": ProspectStage.LOST.value, "notes": notes}
        return ChangeReconciler(self.db).apply(prospect, values)

    def dashboard_summary(self, today: date | None = None) -> DashboardSummary:
        query = select(Prospect).where(Prospect.stage != ProspectStage.LOST.value)
        with self._reading("dashboard prospects"):
            active = list(self.db.scalars(query))
        return summarize(
            active,
            today=today or date.today(),
            upcoming_limit=get_config().UPCOMING_ACTIONS_LIMIT,
        )
