"""Field-level change reconciliation for prospect updates.

The diff itself is a pure function over two immutable snapshots
(:func:`diff_snapshots`). :class:`ChangeReconciler` persists the result as two
separate writes: the prospect update first, then one history row per changed
field. There is no transaction spanning the two writes; a failed history
insert is reported as :class:`PartialWriteError` and the prospect update stays.

Diffs are computed against whatever snapshot the caller loaded, so a stale
snapshot under concurrent edits can yield a wrong or missing history entry
(last write wins at the store).
"""

from __future__ import annotations

import enum
import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, NamedTuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from pipeline_crm.core.exceptions import NotFoundError, PartialWriteError, StoreWriteError, ValidationError
from pipeline_crm.models import Prospect, ProspectHistory
from pipeline_crm.models.base import utcnow

logger = logging.getLogger(__name__)

TRACKED_FIELDS: tuple[str, ...] = (
    "name",
    "company",
    "email",
    "phone",
    "source",
    "stage",
    "temperature",
    "commitment",
    "product_interest",
    "estimated_amount",
    "next_action",
    "next_action_date",
    "last_meeting_date",
    "notes",
    "sensitivity",
    "executive_summary",
    "objections",
    "key_quotes",
)

_DATE_FIELDS = frozenset({"next_action_date", "last_meeting_date"})
_LIST_FIELDS = frozenset({"objections", "key_quotes"})
_INT_FIELDS = frozenset({"sensitivity"})
_AMOUNT_FIELDS = frozenset({"estimated_amount"})
_CENTS = Decimal("0.01")


class FieldChange(NamedTuple):
    # History rows record the model column name (e.g. "notes"), not a UI label.
    field: str
    old: Any
    new: Any

    @property
    def previous_text(self) -> str:
        return to_history_text(self.old)

    @property
    def new_text(self) -> str:
        return to_history_text(self.new)


def coerce_value(field_name: str, value: Any) -> Any:
    """Normalize a raw or stored value to the form it has once stored.

    Both sides of a diff go through this so that form strings, decimals
    and dates compare equal to what the store hands back.
    """
    if isinstance(value, enum.Enum):
        value = value.value
    if value is None:
        return None

    if field_name in _LIST_FIELDS:
        if isinstance(value, str):
            value = [value]
        items = tuple(str(item).strip() for item in value if item is not None and str(item).strip())
        return items or None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    if field_name == "email":
        return str(value).lower()
    if field_name in _AMOUNT_FIELDS:
        try:
            return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)
        except InvalidOperation as exc:
            raise ValidationError(f"{field_name} is not a valid amount: {value!r}") from exc
    if field_name in _DATE_FIELDS:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value))
        except ValueError as exc:
            raise ValidationError(f"{field_name} is not an ISO date: {value!r}") from exc
    if field_name in _INT_FIELDS:
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"{field_name} is not an integer: {value!r}") from exc
    return value


def to_history_text(value: Any) -> str:
    """Stringify a coerced value for the history log (null becomes "")."""
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), ensure_ascii=False)
    return str(value)


def snapshot(source: Prospect | Mapping[str, Any], fields: Iterable[str] = TRACKED_FIELDS) -> Mapping[str, Any]:
    """Read-only mapping of the coerced tracked values of a record or payload."""
    if isinstance(source, Mapping):
        values = {name: coerce_value(name, source.get(name)) for name in fields}
    else:
        values = {name: coerce_value(name, getattr(source, name, None)) for name in fields}
    return MappingProxyType(values)


def diff_snapshots(
    old: Mapping[str, Any],
    new: Mapping[str, Any],
    fields: Iterable[str] = TRACKED_FIELDS,
) -> list[FieldChange]:
    """Return one ``(field, old, new)`` tuple per field whose coerced values differ."""
    changes: list[FieldChange] = []
    for name in fields:
        before = coerce_value(name, old.get(name))
        after = coerce_value(name, new.get(name))
        if before != after:
            changes.append(FieldChange(name, before, after))
    return changes


def _column_value(field_name: str, value: Any) -> Any:
    if field_name in _LIST_FIELDS and value is not None:
        return list(value)
    return value


@dataclass
class ReconcileResult:
    prospect: Prospect
    changes: list[FieldChange] = field(default_factory=list)
    history: list[ProspectHistory] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


class ChangeReconciler:
    """Apply a replacement payload to a prospect and log one history row per changed field."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def apply(self, prospect: Prospect, payload: Mapping[str, Any]) -> ReconcileResult:
        before = snapshot(prospect)
        # Fields missing from the payload keep their stored value.
        after = snapshot({**before, **payload})
        changes = diff_snapshots(before, after)
        if not changes:
            logger.debug(
                "prospect.update.noop",
                extra={"event": "prospect.update.noop", "prospect_id": prospect.id},
            )
            return ReconcileResult(prospect=prospect)

        self._write_prospect(prospect, changes)
        history = self._write_history(prospect, changes)
        logger.info(
            "prospect.updated",
            extra={"event": "prospect.updated", "prospect_id": prospect.id, "field_count": len(changes)},
        )
        return ReconcileResult(prospect=prospect, changes=changes, history=history)

    def _write_prospect(self, prospect: Prospect, changes: list[FieldChange]) -> None:
        prospect_id = prospect.id
        for change in changes:
            setattr(prospect, change.field, _column_value(change.field, change.new))
        prospect.updated_at = utcnow()
        try:
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            raise NotFoundError(f"Prospect not found: {prospect_id}") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "prospect.update.failed",
                extra={"event": "prospect.update.failed", "prospect_id": prospect_id, "error": str(exc)},
            )
            raise StoreWriteError(f"Store rejected update of prospect {prospect_id}.") from exc

    def _write_history(self, prospect: Prospect, changes: list[FieldChange]) -> list[ProspectHistory]:
        prospect_id = prospect.id
        stamp = utcnow()
        entries = [
            ProspectHistory(
                prospect_id=prospect_id,
                field_changed=change.field,
                previous_value=change.previous_text,
                new_value=change.new_text,
                created_at=stamp,
            )
            for change in changes
        ]
        try:
            self._insert_history(entries)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning(
                "prospect.history.partial_write",
                extra={
                    "event": "prospect.history.partial_write",
                    "prospect_id": prospect_id,
                    "field_count": len(changes),
                    "error": str(exc),
                },
            )
            raise PartialWriteError(
                f"Prospect {prospect_id} was updated but its change history could not be saved.",
                prospect=prospect,
                changes=changes,
            ) from exc
        return entries

    def _insert_history(self, entries: list[ProspectHistory]) -> None:
        self.db.add_all(entries)
        self.db.commit()
