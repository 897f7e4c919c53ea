"""Tests for status models."""

import pytest

from simple_jobs.errors import SerializationError
from simple_jobs.status import (
    EnumStatusModel,
    JobStatus,
    ProgressKind,
    ProgressStatus,
    ProgressStatusModel,
    StatusModel,
)


class TestEnumStatusModel:
    def test_lifecycle_values(self):
        model = EnumStatusModel()

        assert model.initial() is JobStatus.STARTED
        assert model.terminal() is JobStatus.FINISHED
        assert model.custom("running") is JobStatus.RUNNING

    def test_only_finished_is_terminal(self):
        model = EnumStatusModel()

        assert model.is_terminal(JobStatus.FINISHED)
        assert not model.is_terminal(JobStatus.STARTED)
        assert not model.is_terminal(JobStatus.RUNNING)
        assert JobStatus.FINISHED.is_terminal

    def test_custom_rejects_lifecycle_values(self):
        model = EnumStatusModel()

        with pytest.raises(ValueError):
            model.custom("finished")
        with pytest.raises(ValueError):
            model.custom("paused")

    def test_dump_and_parse(self):
        model = EnumStatusModel()

        assert model.dump(JobStatus.RUNNING) == "running"
        assert model.parse("started") is JobStatus.STARTED
        with pytest.raises(SerializationError):
            model.parse("paused")

    def test_satisfies_protocol(self):
        assert isinstance(EnumStatusModel(), StatusModel)


class TestProgressStatusModel:
    def test_custom_payload_is_carried(self):
        model = ProgressStatusModel()

        status = model.custom({"percent": 40})

        assert status.kind is ProgressKind.CUSTOM
        assert status.value == {"percent": 40}
        assert not model.is_terminal(status)
        assert model.is_terminal(model.terminal())

    def test_dump_shapes(self):
        model = ProgressStatusModel()

        assert model.dump(ProgressStatus.started()) == "started"
        assert model.dump(ProgressStatus.finished()) == "finished"
        assert model.dump(ProgressStatus.custom(3)) == {"custom": 3}

    def test_parse_inverts_dump(self):
        model = ProgressStatusModel()

        for status in (ProgressStatus.started(), ProgressStatus.custom("x"), ProgressStatus.finished()):
            assert model.parse(model.dump(status)) == status

    def test_parse_rejects_unknown(self):
        with pytest.raises(SerializationError):
            ProgressStatusModel().parse({"other": 1})

    def test_ranks_order_the_lifecycle(self):
        model = ProgressStatusModel()

        ranks = [model.rank(s) for s in (model.initial(), model.custom(1), model.terminal())]

        assert ranks == sorted(ranks)
        assert len(set(ranks)) == 3


class TestForeignStatuses:
    def test_enum_model_rejects_progress_status(self):
        with pytest.raises(SerializationError):
            EnumStatusModel().dump(ProgressStatus.started())

    def test_progress_model_rejects_enum_status(self):
        with pytest.raises(SerializationError):
            ProgressStatusModel().dump(JobStatus.STARTED)
