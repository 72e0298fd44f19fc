import json
import logging

import pytest

from spendlog.core.logging import (
    JsonFormatter,
    RequestContextFilter,
    init_logging,
    request_id_ctx,
    scope_id_ctx,
)


def _format(**extra):
    record = logging.LogRecord(
        "spendlog.test", logging.INFO, __file__, 1, "expense %s saved", ("e1",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    RequestContextFilter().filter(record)
    return json.loads(JsonFormatter().format(record))


def test_line_carries_request_and_scope():
    rid = request_id_ctx.set("req-1")
    scope = scope_id_ctx.set("user-a")
    try:
        line = _format(expense_id="e1", unrelated="dropped")
    finally:
        scope_id_ctx.reset(scope)
        request_id_ctx.reset(rid)
    assert line["message"] == "expense e1 saved"
    assert line["request_id"] == "req-1"
    assert line["scope_id"] == "user-a"
    assert line["expense_id"] == "e1"
    assert "unrelated" not in line
    assert line["time"].endswith("+00:00")


def test_defaults_outside_a_request():
    line = _format()
    assert line["request_id"] == "-"
    assert line["scope_id"] == "-"


def test_init_logging_levels():
    init_logging("warning")
    assert logging.getLogger().level == logging.WARNING
    init_logging("warning", debug=True)
    assert logging.getLogger().level == logging.DEBUG
    with pytest.raises(ValueError):
        init_logging("loud")
    init_logging()
