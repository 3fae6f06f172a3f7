from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """Runtime configuration for the batch CLI and the split service."""

    app_name: str = Field(default="rig-splitter")
    log_level: str = Field(default="INFO")

    # Extraction
    scene_extension: str = Field(default=".fbx", description="Extension of the scene files to split")
    spine_marker: str = Field(default="Spine", description="Name fragment picking the facing reference joint")
    recenter: bool = Field(default=True, description="Move each extracted rig's horizontal keys to the origin")

    # Split jobs
    work_dir: Path = Field(default=Path("/tmp/rig-splitter"))
    aws_region: str = Field(default="us-east-1")
    output_bucket: Optional[str] = None
    output_prefix: str = Field(default="splits")

    model_config = {
        "env_file": (".env", ".env.local", str(Path(__file__).parent.parent.parent / ".env")),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("scene_extension")
    @classmethod
    def normalise_extension(cls, value: str) -> str:
        value = value.strip().lower()
        if not value.lstrip("."):
            msg = "scene_extension must not be empty"
            raise ValueError(msg)
        return value if value.startswith(".") else f".{value}"

    @property
    def artifact_dir(self) -> Path:
        """Local destination of split jobs that name no output location."""
        return self.work_dir / "artifacts"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return cached application settings."""

    settings = AppSettings()
    settings.work_dir.mkdir(parents=True, exist_ok=True)
    return settings
