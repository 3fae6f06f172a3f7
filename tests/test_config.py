from __future__ import annotations

from pathlib import Path

import pytest

from rig_splitter.config import AppSettings, get_settings
from rig_splitter.services.batch import BatchDriver


def test_scene_extension_is_normalised(tmp_path: Path):
    settings = AppSettings(work_dir=tmp_path, scene_extension=" JSON ")

    assert settings.scene_extension == ".json"


def test_empty_scene_extension_is_rejected(tmp_path: Path):
    with pytest.raises(ValueError):
        AppSettings(work_dir=tmp_path, scene_extension=".")


def test_environment_controls_extraction(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WORK_DIR", str(tmp_path / "work"))
    monkeypatch.setenv("SCENE_EXTENSION", ".json")
    monkeypatch.setenv("RECENTER", "false")
    monkeypatch.setenv("SPINE_MARKER", "Chest")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        options = BatchDriver(settings=settings, rotate_to_face_z=True).extractor.options
    finally:
        get_settings.cache_clear()

    assert settings.work_dir.is_dir()
    assert settings.artifact_dir == tmp_path / "work" / "artifacts"
    assert (options.recenter, options.rotate_to_face_z, options.spine_marker) == (False, True, "Chest")
