"""Filtered, searched projection of the prospect collection for the list view."""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session

from pipeline_crm.core.enums import FILTER_ALL, STAGE_VALUES, TEMPERATURE_VALUES
from pipeline_crm.core.exceptions import ValidationError
from pipeline_crm.models import Prospect

SORTABLE_FIELDS = (
    "created_at",
    "updated_at",
    "name",
    "company",
    "estimated_amount",
    "next_action_date",
    "stage",
    "temperature",
)

_LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class ProspectFilters:
    """Conjunctive filters; ``"all"`` disables the stage/temperature filter."""

    stage: str = FILTER_ALL
    temperature: str = FILTER_ALL
    search: str = ""

    def validate(self) -> None:
        if self.stage != FILTER_ALL and self.stage not in STAGE_VALUES:
            raise ValidationError(f"Unknown stage filter: {self.stage}")
        if self.temperature != FILTER_ALL and self.temperature not in TEMPERATURE_VALUES:
            raise ValidationError(f"Unknown temperature filter: {self.temperature}")


@dataclass(frozen=True)
class ProspectSort:
    field: str = "created_at"
    descending: bool = True

    def validate(self) -> None:
        if self.field not in SORTABLE_FIELDS:
            raise ValidationError(f"Cannot sort prospects by {self.field!r}.")


@dataclass
class ProspectListResult:
    items: list[Prospect] = field(default_factory=list)
    store_is_empty: bool = False

    @property
    def offer_create_prospect(self) -> bool:
        """The "create a prospect" affordance is shown whenever nothing is listed."""
        return not self.items


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the search term matches literally."""
    return (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def build_prospect_query(filters: ProspectFilters, sort: ProspectSort) -> Select:
    filters.validate()
    sort.validate()

    query = select(Prospect)
    term = filters.search.strip()
    if term:
        pattern = f"%{escape_like(term)}%"
        query = query.where(
            or_(
                Prospect.name.ilike(pattern, escape=_LIKE_ESCAPE),
                Prospect.company.ilike(pattern, escape=_LIKE_ESCAPE),
                Prospect.email.ilike(pattern, escape=_LIKE_ESCAPE),
            )
        )
    if filters.stage != FILTER_ALL:
        query = query.where(Prospect.stage == filters.stage)
    if filters.temperature != FILTER_ALL:
        query = query.where(Prospect.temperature == filters.temperature)

    column = getattr(Prospect, sort.field)
    if sort.descending:
        return query.order_by(column.desc(), Prospect.id.desc())
    return query.order_by(column.asc(), Prospect.id.asc())


def list_prospects(
    db: Session,
    filters: ProspectFilters | None = None,
    sort: ProspectSort | None = None,
) -> ProspectListResult:
    filters = filters or ProspectFilters()
    sort = sort or ProspectSort()
    items = list(db.scalars(build_prospect_query(filters, sort)))
    if items:
        return ProspectListResult(items=items, store_is_empty=False)
    total = db.scalar(select(func.count()).select_from(Prospect)) or 0
    return ProspectListResult(items=[], store_is_empty=total == 0)
