"""Kanban board projection and drag-and-drop synchronization."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from pipeline_crm.core.enums import STAGES, UNKNOWN_STAGE_COLOR, CardSyncState, ProspectStage, StageInfo
from pipeline_crm.core.exceptions import (
    NotFoundError,
    PartialWriteError,
    PipelineCRMError,
    StoreWriteError,
    ValidationError,
)
from pipeline_crm.models import Prospect
from pipeline_crm.orchestration.state_machine import StateMachine
from pipeline_crm.services.change_reconciler import ReconcileResult

logger = logging.getLogger(__name__)

CARD_SYNC_MACHINE = StateMachine(
    {
        CardSyncState.PENDING_LOCAL.value: {CardSyncState.CONFIRMED.value, CardSyncState.REVERTED.value},
        CardSyncState.CONFIRMED.value: set(),
        CardSyncState.REVERTED.value: set(),
    }
)


@dataclass
class BoardColumn:
    stage: str
    label: str
    color: str
    prospects: list[Prospect] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.prospects)


def _created_at(prospect: Prospect) -> Any:
    return prospect.created_at


def build_board(
    prospects: Iterable[Prospect],
    stages: Sequence[StageInfo] = STAGES,
    sort_key: Callable[[Prospect], Any] | None = None,
    descending: bool = True,
    stage_of: Callable[[Prospect], str] | None = None,
) -> list[BoardColumn]:
    """Partition prospects into one column per stage, in funnel order.

    Every prospect lands in exactly one column. Rows whose stage is not in
    ``stages`` get a trailing column of their own, keyed by the raw value.
    """
    key = sort_key or _created_at
    resolve_stage = stage_of or (lambda prospect: prospect.stage)

    columns: dict[str, BoardColumn] = {
        info.stage: BoardColumn(stage=info.stage, label=info.label, color=info.color) for info in stages
    }
    for prospect in prospects:
        stage = resolve_stage(prospect)
        column = columns.get(stage)
        if column is None:
            logger.warning(
                "board.unknown_stage",
                extra={"event": "board.unknown_stage", "prospect_id": prospect.id, "stage": stage},
            )
            column = columns[stage] = BoardColumn(stage=stage, label=str(stage), color=UNKNOWN_STAGE_COLOR)
        column.prospects.append(prospect)

    for column in columns.values():
        column.prospects.sort(key=key, reverse=descending)
    return list(columns.values())


@dataclass
class CardMove:
    """One drag of a card to another column and its sync outcome."""

    prospect_id: str
    from_stage: str
    to_stage: str
    state: CardSyncState = CardSyncState.PENDING_LOCAL
    result: ReconcileResult | None = None
    error: PipelineCRMError | None = None
    warning: str | None = None

    @property
    def settled(self) -> bool:
        return CARD_SYNC_MACHINE.is_final(self.state.value)

    def transition(self, target: CardSyncState) -> None:
        CARD_SYNC_MACHINE.assert_transition(self.state.value, target.value)
        self.state = target


class BoardState:
    """Client-side column membership, which may run ahead of the store."""

    def __init__(self, prospects: Iterable[Prospect], stages: Sequence[StageInfo] = STAGES) -> None:
        self._stages = stages
        self._cards: dict[str, Prospect] = {}
        self._placement: dict[str, str] = {}
        for prospect in prospects:
            self.replace(prospect)

    def stage_of(self, prospect_id: str) -> str:
        try:
            return self._placement[prospect_id]
        except KeyError as exc:
            raise NotFoundError(f"Prospect not on board: {prospect_id}") from exc

    def place(self, prospect_id: str, stage: str) -> None:
        self.stage_of(prospect_id)
        self._placement[prospect_id] = stage

    def replace(self, prospect: Prospect) -> None:
        """Adopt the server-confirmed state of a card."""
        self._cards[prospect.id] = prospect
        self._placement[prospect.id] = prospect.stage

    def columns(self, sort_key: Callable[[Prospect], Any] | None = None, descending: bool = True) -> list[BoardColumn]:
        return build_board(
            self._cards.values(),
            stages=self._stages,
            sort_key=sort_key,
            descending=descending,
            stage_of=lambda prospect: self._placement[prospect.id],
        )


class BoardSynchronizer:
    """Translate card drops into stage writes, optimistic first, then reconciled."""

    def __init__(self, service: Any, board: BoardState) -> None:
        self.service = service
        self.board = board

    def drop(self, prospect_id: str, target_stage: str | ProspectStage) -> CardMove | None:
        """Handle a card dropped on ``target_stage``.

        Dropping on the column the card already occupies (including a reorder
        within it) is a no-op and returns ``None``.
        """
        try:
            target = ProspectStage(target_stage).value
        except ValueError as exc:
            raise ValidationError(f"Unknown stage: {target_stage}") from exc

        current = self.board.stage_of(prospect_id)
        if target == current:
            return None

        move = CardMove(prospect_id=prospect_id, from_stage=current, to_stage=target)
        self.board.place(prospect_id, target)
        try:
            result = self.service.move_stage(prospect_id, target)
        except PartialWriteError as exc:
            if exc.prospect is not None:
                self.board.replace(exc.prospect)
            move.warning = str(exc)
            move.transition(CardSyncState.CONFIRMED)
            return move
        except (PipelineCRMError, SQLAlchemyError) as exc:
            self.board.place(prospect_id, current)
            move.error = exc if isinstance(exc, PipelineCRMError) else StoreWriteError(str(exc))
            move.transition(CardSyncState.REVERTED)
            logger.warning(
                "board.move.reverted",
                extra={
                    "event": "board.move.reverted",
                    "prospect_id": prospect_id,
                    "stage": target,
                    "previous_stage": current,
                    "error": str(exc),
                },
            )
            return move

        self.board.replace(result.prospect)
        move.result = result
        move.transition(CardSyncState.CONFIRMED)
        return move
