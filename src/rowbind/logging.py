"""
rowbind/logging.py

Structured logging for binding runs (stdlib logging + Pydantic v2).

Event model
-----------
Each log entry is a structured event:

    {
        "event_id": "<uuid4 hex>",
        "run_id": "<uuid4 hex>",
        "timestamp": "<RFC3339 UTC>",
        "level": "info" | "debug" | "warning" | "error" | "critical",
        "event": "<namespaced.event.name>",
        "message": "<human-readable message>",
        "data": { ... optional structured payload ... },
        "error": {
            "type": "<ExceptionType>",
            "message": "<exception message>",
            "stack_trace": "<formatted traceback>"
        }
    }

Schema policy
-------------
- rowbind.* events are strict (must be registered; payload validated if a schema exists)
- other namespaces are open, with optional validation if registered
"""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
import sys
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, ValidationError

ROWBIND_NAMESPACE = "rowbind"

DEFAULT_EVENT = "log"

EventData: TypeAlias = Mapping[str, Any]
PayloadModel: TypeAlias = type[BaseModel] | None


# ---------------------------------------------------------------------------
# Event payload schemas
# ---------------------------------------------------------------------------

class StrictPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")


class BindingsResolvedPayload(StrictPayload):
    target: str
    bindings: int
    index_bound: int
    name_bound: int


class LayoutReconciledPayload(StrictPayload):
    target: str
    width: int
    bound_positions: int
    unresolved: list[str]
    reading: bool


class RecordWriteFailedPayload(StrictPayload):
    target: str
    error: str
    column_index: int | None = None
    column_name: str | None = None


class ReadCompletedPayload(StrictPayload):
    target: str
    records: int


class WriteCompletedPayload(StrictPayload):
    target: str
    records: int
    skipped: int


# Registry:
# - Missing key: unregistered (strict rowbind.* will error; others are open)
# - Value None: known-but-freeform payload (no validation)
# - Value BaseModel: validate + normalize payload through model
EVENT_SCHEMAS: dict[str, PayloadModel] = {
    f"{ROWBIND_NAMESPACE}.{DEFAULT_EVENT}": None,
    f"{ROWBIND_NAMESPACE}.settings.effective": None,
    f"{ROWBIND_NAMESPACE}.bindings.resolved": BindingsResolvedPayload,
    f"{ROWBIND_NAMESPACE}.layout.reconciled": LayoutReconciledPayload,
    f"{ROWBIND_NAMESPACE}.record.write_failed": RecordWriteFailedPayload,
    f"{ROWBIND_NAMESPACE}.read.completed": ReadCompletedPayload,
    f"{ROWBIND_NAMESPACE}.write.completed": WriteCompletedPayload,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _rfc3339_utc(created: float) -> str:
    return (
        datetime.fromtimestamp(created, tz=timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def _truncate(value: Any, *, max_len: int = 120) -> str:
    text = str(value)
    return text if len(text) <= max_len else (text[: max_len - 1] + "…")


def normalize_dotpath(value: str | None) -> str:
    return "" if not value else value.strip().strip(".")


def qualify_event_name(event_name: str, namespace: str) -> str:
    """
    Fully qualify `event_name` under `namespace`.

    - If already under namespace, keep it
    - Else prefix with namespace
    """
    name = normalize_dotpath(event_name)
    ns = normalize_dotpath(namespace)

    if not ns:
        return name or "invalid_event"
    if not name:
        return f"{ns}.invalid_event"
    if name == ns or name.startswith(f"{ns}."):
        return name

    return f"{ns}.{name}"


def _is_rowbind_event(full_event: str) -> bool:
    return full_event == ROWBIND_NAMESPACE or full_event.startswith(f"{ROWBIND_NAMESPACE}.")


def _validate_payload(full_event: str, payload: dict[str, Any]) -> dict[str, Any]:
    if _is_rowbind_event(full_event):
        if full_event not in EVENT_SCHEMAS:
            raise ValueError(f"Unknown event '{full_event}' (add to EVENT_SCHEMAS)")
        schema = EVENT_SCHEMAS[full_event]
    else:
        schema = EVENT_SCHEMAS.get(full_event)

    if schema is None:
        return payload

    try:
        model = schema.model_validate(payload, strict=True)
    except ValidationError as e:
        raise ValueError(f"Invalid payload for event '{full_event}': {e}") from e

    return model.model_dump(mode="python", exclude_none=True)


# ---------------------------------------------------------------------------
# Structured formatters (NDJSON + text)
# ---------------------------------------------------------------------------

class _StructuredFormatter(logging.Formatter):
    def _to_event_record(self, record: logging.LogRecord) -> dict[str, Any]:
        # These are injected by RunLogger.process; fallbacks keep formatters safe.
        event_id = getattr(record, "event_id", None) or uuid.uuid4().hex
        run_id = getattr(record, "run_id", None) or ""
        event = getattr(record, "event", None) or DEFAULT_EVENT
        data = getattr(record, "data", None)

        out: dict[str, Any] = {
            "event_id": str(event_id),
            "run_id": str(run_id),
            "timestamp": _rfc3339_utc(record.created),
            "level": record.levelname.lower(),
            "event": str(event),
            "message": record.getMessage(),
        }

        if isinstance(data, Mapping) and data:
            out["data"] = dict(data)

        if record.exc_info:
            exc_type, exc, _tb = record.exc_info
            out["error"] = {
                "type": getattr(exc_type, "__name__", str(exc_type)),
                "message": "" if exc is None else str(exc),
                "stack_trace": self.formatException(record.exc_info),
            }

        return out


class NdjsonFormatter(_StructuredFormatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        payload = self._to_event_record(record)
        return json.dumps(payload, ensure_ascii=False, default=str, separators=(",", ":"))


class TextFormatter(_StructuredFormatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        payload = self._to_event_record(record)
        ts = payload["timestamp"]
        lvl = payload["level"].upper()
        event = payload.get("event") or ""
        msg = payload["message"]

        head = f"[{ts}] {lvl} {event}"
        if msg and msg != event:
            head += f": {msg}"

        data = payload.get("data")
        if isinstance(data, Mapping) and data:
            items: list[str] = []
            for key in sorted(data, key=str)[:8]:
                items.append(f"{key}={_truncate(data[key])}")
            if len(data) > 8:
                items.append("…")
            head += " (" + ", ".join(items) + ")"

        err = payload.get("error")
        if isinstance(err, Mapping):
            stack = err.get("stack_trace")
            if stack:
                head += "\n" + str(stack).rstrip("\n")

        return head


# ---------------------------------------------------------------------------
# RunLogger
# ---------------------------------------------------------------------------

class RunLogger(logging.LoggerAdapter):
    """
    LoggerAdapter that:
    - stamps each record with run_id + event_id
    - adds a default event for plain log lines
    - provides .event() for domain events (Pydantic validation for rowbind.* events)
    """

    def __init__(
        self,
        logger: logging.Logger,
        *,
        namespace: str = ROWBIND_NAMESPACE,
        run_id: str | None = None,
    ) -> None:
        self._namespace = normalize_dotpath(namespace)
        self._run_id = run_id or uuid.uuid4().hex
        super().__init__(logger, {"namespace": self._namespace, "run_id": self._run_id})

    @property
    def namespace(self) -> str:
        return str((self.extra or {}).get("namespace", ""))

    @property
    def run_id(self) -> str:
        return self._run_id

    def process(self, msg: Any, kwargs: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
        caller_extra = kwargs.pop("extra", None)
        extra = dict(self.extra or {})

        if caller_extra is not None:
            if not isinstance(caller_extra, Mapping):
                raise TypeError("logging 'extra' must be a mapping")
            extra.update(caller_extra)

        extra["run_id"] = self._run_id

        ns = normalize_dotpath(str(extra.get("namespace") or ""))
        if ns:
            extra["namespace"] = ns
        else:
            extra.pop("namespace", None)

        extra["event_id"] = str(extra.get("event_id") or uuid.uuid4().hex)
        extra.setdefault("event", qualify_event_name(DEFAULT_EVENT, ns) if ns else DEFAULT_EVENT)

        data = extra.get("data")
        if data is not None and not isinstance(data, Mapping):
            extra["data"] = {"value": data}

        kwargs["extra"] = extra
        return msg, kwargs

    def event(
        self,
        name: str,
        *,
        message: str | None = None,
        level: int = logging.INFO,
        data: EventData | None = None,
        exc: BaseException | None = None,
        **fields: Any,
    ) -> None:
        if not self.isEnabledFor(level):
            return

        ns = self.namespace
        full_name = qualify_event_name(name, ns) if ns else normalize_dotpath(name) or "invalid_event"

        payload: dict[str, Any] = {}
        if data:
            payload.update(dict(data))
        if fields:
            payload.update(fields)

        payload = _validate_payload(full_name, payload)

        extra: dict[str, Any] = {"event": full_name}
        if payload:
            extra["data"] = payload

        exc_info = (type(exc), exc, exc.__traceback__) if exc is not None else None
        self.log(level, message or full_name, extra=extra, exc_info=exc_info)


class NullLogger(RunLogger):
    """A RunLogger implementation that discards all log/event output."""

    def __init__(self, *, namespace: str = ROWBIND_NAMESPACE, run_id: str = "null") -> None:
        base_logger = logging.Logger("rowbind.null")
        base_logger.addHandler(logging.NullHandler())
        base_logger.propagate = False
        base_logger.disabled = True
        super().__init__(base_logger, namespace=namespace, run_id=run_id)

    def __bool__(self) -> bool:
        return False


# ---------------------------------------------------------------------------
# RunLogContext
# ---------------------------------------------------------------------------

@dataclass
class RunLogContext:
    logger: RunLogger
    _base_logger: logging.Logger
    _handlers: list[logging.Handler]

    def close(self) -> None:
        for h in list(self._handlers):
            self._base_logger.removeHandler(h)
            h.close()

    def __enter__(self) -> "RunLogContext":
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:
        self.close()


def create_run_logger_context(
    *,
    namespace: str = ROWBIND_NAMESPACE,
    log_format: str = "text",
    log_level: int = logging.INFO,
    enable_console_logging: bool = True,
    log_file: Path | None = None,
) -> RunLogContext:
    fmt = (log_format or "text").strip().lower()
    if fmt == "json":
        fmt = "ndjson"
    if fmt not in {"text", "ndjson"}:
        raise ValueError("log_format must be 'text' or 'ndjson' (or 'json')")

    formatter: logging.Formatter = NdjsonFormatter() if fmt == "ndjson" else TextFormatter()

    handlers: list[logging.Handler] = []

    if enable_console_logging:
        h = logging.StreamHandler(sys.stderr)
        h.setLevel(log_level)
        h.setFormatter(formatter)
        handlers.append(h)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        handlers.append(fh)

    run_id = uuid.uuid4().hex
    base_logger = logging.getLogger(f"rowbind.run.{run_id}")
    base_logger.setLevel(log_level)
    base_logger.handlers.clear()
    base_logger.propagate = False
    for h in handlers:
        base_logger.addHandler(h)

    logger = RunLogger(base_logger, namespace=namespace, run_id=run_id)
    return RunLogContext(logger=logger, _base_logger=base_logger, _handlers=handlers)


__all__ = [
    "ROWBIND_NAMESPACE",
    "DEFAULT_EVENT",
    "EVENT_SCHEMAS",
    "NdjsonFormatter",
    "TextFormatter",
    "RunLogger",
    "NullLogger",
    "RunLogContext",
    "create_run_logger_context",
    "normalize_dotpath",
    "qualify_event_name",
]
