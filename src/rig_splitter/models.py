from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class JobStatus(str, Enum):
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"
    NO_SKELETONS = "NO_SKELETONS"


class ExportOutcome(str, Enum):
    EXPORTED = "EXPORTED"
    FAILED = "FAILED"


class SplitRequest(BaseModel):
    source_uri: str = Field(description="S3 URI or absolute local path to the multi-rig scene file")
    output_uri: Optional[str] = Field(
        default=None,
        description="Optional S3 URI or local directory where the split scenes should be stored",
    )
    rotate_to_face_z: bool = Field(default=False, description="Turn every extracted rig to face +Z")

    @field_validator("source_uri")
    @classmethod
    def validate_source_uri(cls, value: str) -> str:
        if not value:
            msg = "source_uri must not be empty"
            raise ValueError(msg)
        return value


class SplitArtifact(BaseModel):
    skeleton: str = Field(description="Skeleton root name as found in the source scene")
    actor: str = Field(description="Sanitized name used in the output file name")
    outcome: ExportOutcome
    uri: Optional[str] = None
    content_type: Optional[str] = None


class SplitResponse(BaseModel):
    job_id: str
    status: JobStatus
    rotated_to_face_z: bool
    artifacts: list[SplitArtifact]
    logs: list[str] = Field(default_factory=list)
