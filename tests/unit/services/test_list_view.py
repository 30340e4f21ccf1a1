from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pipeline_crm.core.exceptions import ValidationError
from pipeline_crm.models import Base, Prospect
from pipeline_crm.services.list_view import (
    ProspectFilters,
    ProspectSort,
    escape_like,
    list_prospects,
)


def _build_session():
    engine = create_engine("sqlite:///:memory:")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    return TestingSessionLocal()


def _seed(session):
    base = datetime(2026, 10, 1, tzinfo=timezone.utc)
    rows = [
        Prospect(name="Ana Ruiz", company="ACME Labs", email="ana@mail.com", stage="new", temperature="hot"),
        Prospect(name="Beto Acmesson", company=None, email="beto@mail.com", stage="contacted", temperature="warm"),
        Prospect(name="Carla", company="Globex", email="carla@acme.io", stage="new", temperature="cold"),
        Prospect(name="Dario", company="Initech", email="dario@initech.com", stage="paid", temperature="hot"),
        Prospect(name="Eva 100%", company="Umbrella_Co", email=None, stage="lost", temperature="warm"),
    ]
    for offset, row in enumerate(rows):
        row.created_at = base + timedelta(days=offset)
        session.add(row)
    session.commit()
    return rows


def test_search_matches_name_company_or_email_case_insensitively():
    session = _build_session()
    rows = _seed(session)

    result = list_prospects(session, ProspectFilters(search="acme"))

    expected = {
        row.name
        for row in rows
        if any("acme" in (value or "").lower() for value in (row.name, row.company, row.email))
    }
    assert {row.name for row in result.items} == expected == {"Ana Ruiz", "Beto Acmesson", "Carla"}
    session.close()


def test_search_treats_wildcards_literally():
    session = _build_session()
    _seed(session)

    assert [row.name for row in list_prospects(session, ProspectFilters(search="100%")).items] == ["Eva 100%"]
    assert [row.name for row in list_prospects(session, ProspectFilters(search="a_r")).items] == []
    assert [row.name for row in list_prospects(session, ProspectFilters(search="a_c")).items] == ["Eva 100%"]
    session.close()


def test_filters_are_conjunctive():
    session = _build_session()
    _seed(session)

    result = list_prospects(session, ProspectFilters(stage="new", temperature="hot"))

    assert [row.name for row in result.items] == ["Ana Ruiz"]
    session.close()


def test_default_order_is_newest_first():
    session = _build_session()
    _seed(session)

    result = list_prospects(session)

    assert [row.name for row in result.items] == ["Eva 100%", "Dario", "Carla", "Beto Acmesson", "Ana Ruiz"]
    session.close()


def test_sort_by_name_ascending():
    session = _build_session()
    _seed(session)

    result = list_prospects(session, sort=ProspectSort(field="name", descending=False))

    assert result.items[0].name == "Ana Ruiz"
    assert result.items[-1].name == "Eva 100%"
    session.close()


def test_empty_result_distinguishes_empty_store():
    session = _build_session()

    empty_store = list_prospects(session)
    assert empty_store.store_is_empty is True
    assert empty_store.offer_create_prospect is True

    _seed(session)
    no_match = list_prospects(session, ProspectFilters(search="zzz"))
    assert no_match.items == []
    assert no_match.store_is_empty is False
    assert no_match.offer_create_prospect is True
    session.close()


@pytest.mark.parametrize(
    "filters, sort",
    [
        (ProspectFilters(stage="archived"), ProspectSort()),
        (ProspectFilters(temperature="boiling"), ProspectSort()),
        (ProspectFilters(), ProspectSort(field="id; drop table")),
    ],
)
def test_invalid_filters_raise_validation_error(filters, sort):
    session = _build_session()

    with pytest.raises(ValidationError):
        list_prospects(session, filters, sort)
    session.close()


def test_escape_like():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"
