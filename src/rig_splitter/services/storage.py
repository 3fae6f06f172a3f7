from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from rig_splitter.config import AppSettings


@dataclass(frozen=True)
class S3Location:
    bucket: str
    key: str = ""

    @classmethod
    def parse(cls, uri: str) -> Optional[S3Location]:
        """Return the location named by an ``s3://`` URI, or None for local paths."""
        if not uri.startswith("s3://"):
            return None
        parsed = urlparse(uri)
        if not parsed.netloc:
            msg = f"Invalid S3 URI: {uri}"
            raise ValueError(msg)
        return cls(bucket=parsed.netloc, key=parsed.path.strip("/"))

    def joinpath(self, name: str) -> S3Location:
        return S3Location(self.bucket, str(PurePosixPath(self.key, name)) if self.key else name)

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


class SceneStore:
    """Moves scene files between a job's working directory and local or S3 storage."""

    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings
        self._client = None

    def default_destination(self, job_id: str) -> str:
        if self.settings.output_bucket:
            prefix = S3Location(self.settings.output_bucket, self.settings.output_prefix.strip("/"))
            return prefix.joinpath(job_id).uri
        return str(self.settings.artifact_dir / job_id)

    def fetch(self, source_uri: str, working_dir: Path) -> Path:
        """Place the source scene in ``working_dir`` so outputs land beside it."""
        location = S3Location.parse(source_uri)
        if location is not None:
            target = working_dir / PurePosixPath(location.key).name
            logger.debug("Downloading {} to {}", location.uri, target)
            self._s3().download_file(location.bucket, location.key, str(target))
            return target

        source = Path(source_uri)
        if not source.exists():
            msg = f"Input path does not exist: {source_uri}"
            raise FileNotFoundError(msg)
        if source.is_dir():
            msg = "Input path must be a scene file, not a directory"
            raise IsADirectoryError(msg)
        target = working_dir / source.name
        shutil.copy2(source, target)
        return target

    def publish(self, scene_file: Path, destination: str) -> str:
        """Copy one split scene to ``destination`` and return its final URI."""
        location = S3Location.parse(destination)
        if location is not None:
            target = location.joinpath(scene_file.name)
            logger.debug("Uploading {} to {}", scene_file.name, target.uri)
            self._s3().upload_file(str(scene_file), target.bucket, target.key)
            return target.uri

        target_dir = Path(destination)
        target_dir.mkdir(parents=True, exist_ok=True)
        target_path = target_dir / scene_file.name
        shutil.copy2(scene_file, target_path)
        return str(target_path)

    def _s3(self):
        if self._client is None:
            try:
                self._client = boto3.client("s3", region_name=self.settings.aws_region)
            except (BotoCoreError, ClientError) as exc:  # pragma: no cover - boto specific
                logger.error("Unable to create S3 client: {}", exc)
                raise
        return self._client


__all__ = [
    "S3Location",
    "SceneStore",
]
