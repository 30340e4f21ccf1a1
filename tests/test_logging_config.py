from __future__ import annotations

import json
import logging
from decimal import Decimal

from pipeline_crm.core.logging_config import JsonFormatter


def _record(**extra):
    record = logging.LogRecord("pipeline_crm.test", logging.WARNING, __file__, 1, "prospect.updated", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_extra_fields():
    line = JsonFormatter().format(_record(event="prospect.updated", prospect_id="p-1", field_count=2))
    payload = json.loads(line)

    assert payload["message"] == "prospect.updated"
    assert payload["level"] == "WARNING"
    assert payload["event"] == "prospect.updated"
    assert payload["prospect_id"] == "p-1"
    assert payload["field_count"] == 2
    assert "lineno" not in payload


def test_formatter_stringifies_unserializable_values():
    payload = json.loads(JsonFormatter().format(_record(amount=Decimal("10.50"))))

    assert payload["amount"] == "10.50"
