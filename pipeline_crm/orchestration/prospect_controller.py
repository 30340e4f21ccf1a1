"""Controller that runs prospect commands and announces their outcome on the bus."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pipeline_crm.core.enums import ProspectStage
from pipeline_crm.core.exceptions import PartialWriteError
from pipeline_crm.models import Prospect
from pipeline_crm.orchestration.command_bus import CommandBus, OpenProspectForm, ProspectSaved, StageMoved
from pipeline_crm.schemas.prospects import ProspectPayload
from pipeline_crm.services.change_reconciler import FieldChange, ReconcileResult
from pipeline_crm.services.prospect_service import ProspectService


def _stage_change(changes: list[FieldChange]) -> FieldChange | None:
    for change in changes:
        if change.field == "stage":
            return change
    return None


class ProspectController:
    """Views subscribe to the bus instead of signalling each other directly."""

    def __init__(self, service: ProspectService, bus: CommandBus | None = None) -> None:
        self.service = service
        self.bus = bus or CommandBus()

    def request_new_prospect(self) -> None:
        self.bus.dispatch(OpenProspectForm())

    def request_edit(self, prospect_id: str) -> None:
        self.bus.dispatch(OpenProspectForm(prospect_id=prospect_id))

    def create_prospect(self, payload: ProspectPayload | Mapping[str, Any]) -> Prospect:
        prospect = self.service.create_prospect(payload)
        self.bus.dispatch(ProspectSaved(prospect_id=prospect.id))
        return prospect

    def update_prospect(self, prospect_id: str, payload: ProspectPayload | Mapping[str, Any]) -> ReconcileResult:
        return self._announce(prospect_id, lambda: self.service.update_prospect(prospect_id, payload))

    def move_stage(self, prospect_id: str, target_stage: str | ProspectStage) -> ReconcileResult:
        return self._announce(prospect_id, lambda: self.service.move_stage(prospect_id, target_stage))

    def mark_paid(self, prospect_id: str) -> ReconcileResult:
        return self._announce(prospect_id, lambda: self.service.mark_paid(prospect_id))

    def mark_lost(self, prospect_id: str, reason: str) -> ReconcileResult:
        return self._announce(prospect_id, lambda: self.service.mark_lost(prospect_id, reason))

    def _announce(self, prospect_id: str, action) -> ReconcileResult:
        try:
            result = action()
        except PartialWriteError as exc:
            self._publish(prospect_id, exc.changes, warning=str(exc))
            raise
        if result.changed:
            self._publish(prospect_id, result.changes)
        return result

    def _publish(self, prospect_id: str, changes: list[FieldChange], warning: str | None = None) -> None:
        self.bus.dispatch(
            ProspectSaved(
                prospect_id=prospect_id,
                changed_fields=tuple(change.field for change in changes),
                warning=warning,
            )
        )
        stage_change = _stage_change(changes)
        if stage_change is not None:
            self.bus.dispatch(
                StageMoved(
                    prospect_id=prospect_id,
                    previous_stage=stage_change.old,
                    new_stage=stage_change.new,
                    warning=warning,
                )
            )
