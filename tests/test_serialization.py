"""Tests for record serialization."""

import json
from datetime import date

import pytest

from simple_jobs.errors import SerializationError
from simple_jobs.serialization import RecordSerializer
from simple_jobs.status import DEFAULT_STATUS_MODEL, JobStatus, ProgressStatusModel
from simple_jobs.types import JobRecord, JobResult


def test_document_shape():
    record = JobRecord.new(JobStatus.STARTED, {"value": 5}).finish(
        JobResult.failure({"reason": "MyError"}), DEFAULT_STATUS_MODEL
    )

    data = json.loads(RecordSerializer().dumps(record))

    assert data == {
        "id": record.job_id,
        "status": "finished",
        "result": {"err": {"reason": "MyError"}},
        "metadata": {"value": 5},
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


def test_loads_inverts_dumps():
    serializer = RecordSerializer()
    record = JobRecord.new(JobStatus.STARTED, ["a", 1]).finish(JobResult.success(None), DEFAULT_STATUS_MODEL)

    loaded = serializer.loads(serializer.dumps(record))

    assert loaded == record


def test_missing_result_field_means_not_finished():
    loaded = RecordSerializer().from_dict({"id": "abc", "status": "started"})

    assert loaded.result is None
    assert loaded.metadata is None


def test_hooks_convert_non_json_payloads():
    serializer = RecordSerializer(
        encode_output=lambda d: d.isoformat(),
        decode_output=date.fromisoformat,
    )
    record = JobRecord.new(JobStatus.STARTED).finish(JobResult.success(date(2024, 1, 2)), DEFAULT_STATUS_MODEL)

    raw = serializer.dumps(record)

    assert json.loads(raw)["result"] == {"ok": "2024-01-02"}
    assert serializer.loads(raw).result.unwrap() == date(2024, 1, 2)


def test_progress_model_statuses():
    model = ProgressStatusModel()
    serializer = RecordSerializer(status_model=model)
    record = JobRecord.new(model.initial()).with_status(model.custom({"step": 1}), model)

    raw = serializer.dumps(record)

    assert json.loads(raw)["status"] == {"custom": {"step": 1}}
    assert serializer.loads(raw).status == model.custom({"step": 1})


def test_unserializable_value_raises():
    record = JobRecord.new(JobStatus.STARTED, {"fn": object()})

    with pytest.raises(SerializationError):
        RecordSerializer().dumps(record)


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        json.dumps({"status": "started"}),
        json.dumps({"id": "x", "status": "started", "result": {"maybe": 1}}),
    ],
)
def test_bad_documents_raise(raw):
    with pytest.raises(SerializationError):
        RecordSerializer().loads(raw)
