from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path

import pytest

from rowbind.binding import BindingResolver
from rowbind.logging import (
    NdjsonFormatter,
    NullLogger,
    RunLogger,
    TextFormatter,
    create_run_logger_context,
    qualify_event_name,
)

from sample_models import Person


def _logger_with_stream(formatter: logging.Formatter) -> tuple[RunLogger, list[str]]:
    lines: list[str] = []

    class _Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            lines.append(self.format(record))

    base = logging.getLogger(f"rowbind.test.{uuid.uuid4().hex}")
    base.setLevel(logging.DEBUG)
    base.propagate = False
    handler = _Collect()
    handler.setFormatter(formatter)
    base.addHandler(handler)
    return RunLogger(base, run_id="run-1"), lines


def test_qualify_event_name() -> None:
    assert qualify_event_name("read.completed", "rowbind") == "rowbind.read.completed"
    assert qualify_event_name("rowbind.read.completed", "rowbind") == "rowbind.read.completed"
    assert qualify_event_name("", "rowbind") == "rowbind.invalid_event"


def test_events_are_rendered_as_ndjson() -> None:
    logger, lines = _logger_with_stream(NdjsonFormatter())

    logger.event("read.completed", target="Person", records=2)

    payload = json.loads(lines[0])
    assert payload["event"] == "rowbind.read.completed"
    assert payload["run_id"] == "run-1"
    assert payload["level"] == "info"
    assert payload["data"] == {"target": "Person", "records": 2}


def test_plain_log_lines_get_default_event() -> None:
    logger, lines = _logger_with_stream(TextFormatter())

    logger.warning("careful")

    assert "WARNING rowbind.log: careful" in lines[0]


def test_unknown_rowbind_events_are_rejected() -> None:
    logger, _ = _logger_with_stream(NdjsonFormatter())

    with pytest.raises(ValueError, match="Unknown event 'rowbind.nope'"):
        logger.event("nope")


def test_invalid_payloads_are_rejected() -> None:
    logger, _ = _logger_with_stream(NdjsonFormatter())

    with pytest.raises(ValueError, match="Invalid payload"):
        logger.event("read.completed", target="Person", records="two")


def test_resolver_emits_bindings_resolved() -> None:
    logger, lines = _logger_with_stream(NdjsonFormatter())

    BindingResolver(Person, logger=logger).resolve()

    events = [json.loads(line) for line in lines]
    resolved = [event for event in events if event["event"] == "rowbind.bindings.resolved"]
    assert resolved[0]["data"] == {"target": "Person", "bindings": 2, "index_bound": 0, "name_bound": 2}


def test_null_logger_discards_everything() -> None:
    logger = NullLogger()

    assert not logger
    logger.event("nope")
    logger.error("ignored")


def test_run_logger_context_writes_log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.ndjson"

    with create_run_logger_context(log_format="json", enable_console_logging=False, log_file=log_file) as ctx:
        ctx.logger.event("write.completed", target="Person", records=1, skipped=0)

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[0])["data"] == {"target": "Person", "records": 1, "skipped": 0}


def test_run_logger_context_rejects_unknown_format() -> None:
    with pytest.raises(ValueError, match="log_format"):
        create_run_logger_context(log_format="xml")
