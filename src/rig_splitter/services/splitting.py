from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Iterator, Optional
from uuid import uuid4

from loguru import logger

from rig_splitter.config import AppSettings, get_settings
from rig_splitter.errors import SceneImportError
from rig_splitter.formats import create_codec
from rig_splitter.models import ExportOutcome, JobStatus, SplitArtifact, SplitRequest, SplitResponse
from rig_splitter.services.batch import BatchDriver, BatchReport, SkeletonExport
from rig_splitter.services.storage import SceneStore

_CONTENT_TYPES = {
    ".fbx": "application/octet-stream",
    ".json": "application/json",
}

# Extraction runs one scene at a time per process
_JOB_LOCK = threading.Lock()


@contextmanager
def captured_logs(job_id: str) -> Iterator[list[str]]:
    """Collect the messages logged under ``job_id`` while the block runs."""
    messages: list[str] = []
    sink_id = logger.add(
        lambda message: messages.append(message.record["message"]),
        level="DEBUG",
        filter=lambda record: record["extra"].get("job_id") == job_id,
    )
    try:
        yield messages
    finally:
        logger.remove(sink_id)


def job_status(report: BatchReport) -> JobStatus:
    if not report.exports:
        return JobStatus.NO_SKELETONS
    if report.failed_exports:
        return JobStatus.PARTIAL
    return JobStatus.COMPLETED


class SplitService:
    """Split a single scene file, held locally or on S3, into one scene per skeleton."""

    def __init__(self, settings: Optional[AppSettings] = None, store: Optional[SceneStore] = None) -> None:
        self.settings = settings or get_settings()
        self.store = store or SceneStore(self.settings)

    def split(self, request: SplitRequest) -> SplitResponse:
        job_id = uuid4().hex
        with logger.contextualize(job_id=job_id):
            logger.info("Queued split job {} for {}", job_id, request.source_uri)
            with _JOB_LOCK:
                return self._run(job_id, request)

    # Internal helpers -------------------------------------------------

    def _run(self, job_id: str, request: SplitRequest) -> SplitResponse:
        with TemporaryDirectory(prefix="rig-splitter-") as temp_dir:
            input_path = self.store.fetch(request.source_uri, Path(temp_dir))
            destination = request.output_uri or self.store.default_destination(job_id)

            driver = BatchDriver(
                settings=self.settings,
                rotate_to_face_z=request.rotate_to_face_z,
                codec=create_codec(input_path),
            )
            with captured_logs(job_id) as logs:
                try:
                    report = driver.process_file(input_path)
                finally:
                    driver.codec.close()

            if report.skipped_files:
                raise SceneImportError(f"Unable to import scene: {request.source_uri}")

            artifacts = [self._publish(export, destination) for export in report.exports]

        status = job_status(report)
        logger.info("Split job {} finished: {} ({} skeleton(s))", job_id, status.value, len(artifacts))
        return SplitResponse(
            job_id=job_id,
            status=status,
            rotated_to_face_z=request.rotate_to_face_z,
            artifacts=artifacts,
            logs=logs,
        )

    def _publish(self, export: SkeletonExport, destination: str) -> SplitArtifact:
        if not export.exported:
            return SplitArtifact(
                skeleton=export.skeleton_name,
                actor=export.actor_name,
                outcome=ExportOutcome.FAILED,
            )
        return SplitArtifact(
            skeleton=export.skeleton_name,
            actor=export.actor_name,
            outcome=ExportOutcome.EXPORTED,
            uri=self.store.publish(export.output_path, destination),
            content_type=_CONTENT_TYPES.get(export.output_path.suffix.lower(), "application/octet-stream"),
        )


__all__ = [
    "SplitService",
    "captured_logs",
    "job_status",
]
