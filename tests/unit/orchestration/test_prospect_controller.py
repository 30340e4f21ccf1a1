from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from pipeline_crm.core.exceptions import PartialWriteError
from pipeline_crm.models import Base
from pipeline_crm.orchestration.command_bus import OpenProspectForm, ProspectSaved, StageMoved
from pipeline_crm.orchestration.prospect_controller import ProspectController
from pipeline_crm.services.change_reconciler import ChangeReconciler
from pipeline_crm.services.prospect_service import ProspectService


def _build_controller():
    engine = create_engine("sqlite:///:memory:")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    controller = ProspectController(ProspectService(db=session))
    received = []
    for command_type in (OpenProspectForm, ProspectSaved, StageMoved):
        controller.bus.subscribe(command_type, received.append)
    return controller, received, session


def test_open_form_requests_are_published():
    controller, received, session = _build_controller()

    controller.request_new_prospect()
    controller.request_edit("p-1")

    assert received == [OpenProspectForm(), OpenProspectForm(prospect_id="p-1")]
    session.close()


def test_stage_move_publishes_saved_and_moved():
    controller, received, session = _build_controller()
    prospect = controller.create_prospect({"name": "Ana"})
    received.clear()

    controller.move_stage(prospect.id, "contacted")

    assert received == [
        ProspectSaved(prospect_id=prospect.id, changed_fields=("stage",)),
        StageMoved(prospect_id=prospect.id, previous_stage="new", new_stage="contacted"),
    ]
    session.close()


def test_unchanged_update_publishes_nothing():
    controller, received, session = _build_controller()
    prospect = controller.create_prospect({"name": "Ana", "company": "Acme"})
    received.clear()

    result = controller.update_prospect(prospect.id, {"name": "Ana", "company": "Acme"})

    assert result.changed is False
    assert received == []
    session.close()


def test_partial_write_is_published_with_warning(monkeypatch):
    controller, received, session = _build_controller()
    prospect = controller.create_prospect({"name": "Ana"})
    received.clear()

    def _fail(self, entries):
        raise OperationalError("INSERT INTO prospect_history", {}, Exception("timeout"))

    monkeypatch.setattr(ChangeReconciler, "_insert_history", _fail)

    with pytest.raises(PartialWriteError):
        controller.mark_paid(prospect.id)

    saved, moved = received
    assert saved.changed_fields == ("stage",)
    assert saved.warning
    assert moved.new_stage == "paid"
    session.close()
