"""
FileSystem job store.
"""

from __future__ import annotations

import os
import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from ..concurrency import run_sync
from ..errors import ErrorContext, JobNotFoundError, StorageIOError
from ..serialization import RecordSerializer
from ..types import JobRecord
from .base import JobStore, JobStoreBackendName

_SAFE_NAME = re.compile(r"[A-Za-z0-9_-][A-Za-z0-9._-]*")


@dataclass
class FSJobStoreConfig:
    dir: Path
    serializer: RecordSerializer = field(default_factory=RecordSerializer)
    suffix: str = ""


class FSJobStore(JobStore):
    """One JSON file per job, named by the job id.

    ``save`` overwrites the file atomically (temp file + ``os.replace``), so a
    concurrent ``load`` sees either the previous snapshot or the new one,
    never a partial write.
    """

    name: JobStoreBackendName = "fs"

    def __init__(self, cfg: FSJobStoreConfig) -> None:
        self.cfg = cfg
        self.serializer = cfg.serializer
        self.cfg.dir = Path(self.cfg.dir)

    @classmethod
    def at(cls, directory: str | Path, serializer: RecordSerializer | None = None) -> FSJobStore:
        return cls(FSJobStoreConfig(dir=Path(directory), serializer=serializer or RecordSerializer()))

    async def ensure_ready(self) -> None:
        try:
            await run_sync(self.cfg.dir.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageIOError(
                f"Cannot create job directory {self.cfg.dir}: {exc}",
                context=ErrorContext(backend=self.name, operation="ensure_ready"),
                cause=exc,
            ) from exc

    def _path_for(self, job_id: str) -> Path:
        if not _SAFE_NAME.fullmatch(job_id):
            raise ValueError(f"Invalid job id for a file name: {job_id!r}")
        return self.cfg.dir / f"{job_id}{self.cfg.suffix}"

    async def save(self, record: JobRecord) -> None:
        ctx = ErrorContext(job_id=record.job_id, backend=self.name, operation="save")
        try:
            path = self._path_for(record.job_id)
        except ValueError as exc:
            raise StorageIOError(str(exc), context=ctx, cause=exc) from exc

        payload = self.serializer.dumps(record)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")

        def _write_atomic() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            try:
                tmp_path.write_text(payload, encoding="utf-8")
                os.replace(tmp_path, path)
            finally:
                if tmp_path.exists():
                    tmp_path.unlink()

        try:
            await run_sync(_write_atomic)
        except OSError as exc:
            raise StorageIOError(f"Cannot write {path}: {exc}", context=ctx, cause=exc) from exc

    async def load(self, job_id: str) -> JobRecord:
        try:
            path = self._path_for(job_id)
        except ValueError as exc:
            raise JobNotFoundError(job_id, backend=self.name, cause=exc) from exc

        try:
            raw = await run_sync(path.read_text, encoding="utf-8")
        except FileNotFoundError as exc:
            raise JobNotFoundError(job_id, backend=self.name, cause=exc) from exc
        except OSError as exc:
            raise StorageIOError(
                f"Cannot read {path}: {exc}",
                context=ErrorContext(job_id=job_id, backend=self.name, operation="load"),
                cause=exc,
            ) from exc
        return self.serializer.loads(raw)


__all__ = ["FSJobStore", "FSJobStoreConfig"]
