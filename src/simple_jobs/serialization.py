"""
Snapshot serialization for job records.

Stores that persist outside the process go through a RecordSerializer, which
turns a JobRecord into a JSON document of the form:

    {
        "id": "<uuid>",
        "status": <status_model.dump(status)>,
        "result": null | {"ok": <output>} | {"err": <error>},
        "metadata": <metadata> | null,
        "created_at": <epoch seconds>,
        "updated_at": <epoch seconds>
    }

The result is always tagged, so a failure payload can never be mistaken for
a success value on the way back.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .errors import ErrorContext, SerializationError
from .status import DEFAULT_STATUS_MODEL, StatusModel
from .types import JobRecord, JobResult


def _identity(value: Any) -> Any:
    return value


@dataclass
class RecordSerializer:
    """Encode/decode JobRecords with pluggable hooks for non-JSON payloads.

    Each encode hook must return a JSON-serializable value and its decode hook
    must invert it. The defaults pass values through unchanged.
    """

    status_model: StatusModel = field(default_factory=lambda: DEFAULT_STATUS_MODEL)
    encode_output: Callable[[Any], Any] = _identity
    decode_output: Callable[[Any], Any] = _identity
    encode_error: Callable[[Any], Any] = _identity
    decode_error: Callable[[Any], Any] = _identity
    encode_metadata: Callable[[Any], Any] = _identity
    decode_metadata: Callable[[Any], Any] = _identity

    def dump_status(self, status: Any) -> Any:
        return self.status_model.dump(status)

    def parse_status(self, raw: Any) -> Any:
        return self.status_model.parse(raw)

    def dump_result(self, result: JobResult | None) -> dict[str, Any] | None:
        if result is None:
            return None
        if result.is_ok:
            return {"ok": self.encode_output(result.value)}
        return {"err": self.encode_error(result.error)}

    def parse_result(self, raw: dict[str, Any] | None) -> JobResult | None:
        if raw is None:
            return None
        result = JobResult.from_dict(raw)
        if result.is_ok:
            return JobResult.success(self.decode_output(result.value))
        return JobResult.failure(self.decode_error(result.error))

    def dump_metadata(self, metadata: Any) -> Any:
        if metadata is None:
            return None
        return self.encode_metadata(metadata)

    def parse_metadata(self, raw: Any) -> Any:
        if raw is None:
            return None
        return self.decode_metadata(raw)

    def to_dict(self, record: JobRecord) -> dict[str, Any]:
        """Serialize to dictionary."""
        try:
            return {
                "id": record.job_id,
                "status": self.dump_status(record.status),
                "result": self.dump_result(record.result),
                "metadata": self.dump_metadata(record.metadata),
                "created_at": record.created_at,
                "updated_at": record.updated_at,
            }
        except SerializationError:
            raise
        except Exception as exc:
            raise SerializationError(
                f"Cannot encode job record: {exc}",
                context=ErrorContext(job_id=record.job_id, operation="encode"),
                cause=exc,
            ) from exc

    def from_dict(self, data: dict[str, Any]) -> JobRecord:
        """Deserialize from dictionary."""
        job_id = data.get("id") if isinstance(data, dict) else None
        try:
            return JobRecord(
                job_id=data["id"],
                status=self.parse_status(data["status"]),
                result=self.parse_result(data.get("result")),
                metadata=self.parse_metadata(data.get("metadata")),
                created_at=data.get("created_at", 0.0),
                updated_at=data.get("updated_at", data.get("created_at", 0.0)),
            )
        except SerializationError:
            raise
        except Exception as exc:
            raise SerializationError(
                f"Cannot decode job record: {exc}",
                context=ErrorContext(job_id=job_id, operation="decode"),
                cause=exc,
            ) from exc

    def dumps(self, record: JobRecord) -> str:
        data = self.to_dict(record)
        try:
            return json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Job record is not JSON-serializable: {exc}",
                context=ErrorContext(job_id=record.job_id, operation="encode"),
                cause=exc,
            ) from exc

    def loads(self, raw: str | bytes) -> JobRecord:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SerializationError(
                f"Stored job record is not valid JSON: {exc}",
                context=ErrorContext(operation="decode"),
                cause=exc,
            ) from exc
        return self.from_dict(data)

    def dump_json(self, value: Any) -> str:
        """Encode a single already-converted field for column storage."""
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Value is not JSON-serializable: {exc}", cause=exc) from exc

    def load_json(self, raw: str | bytes | None) -> Any:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SerializationError(f"Stored value is not valid JSON: {exc}", cause=exc) from exc


__all__ = ["RecordSerializer"]
