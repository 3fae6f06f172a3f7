from __future__ import annotations

from pathlib import Path

import pytest
from loguru import logger

from rig_splitter.config import AppSettings, get_settings


@pytest.fixture
def log_messages():
    messages: list[str] = []
    sink_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(sink_id)


@pytest.fixture
def json_settings(tmp_path: Path) -> AppSettings:
    return AppSettings(work_dir=tmp_path / "work", scene_extension=".json")


@pytest.fixture
def json_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SCENE_EXTENSION", ".json")
    monkeypatch.setenv("WORK_DIR", str(tmp_path / "work"))
    get_settings.cache_clear()  # ensure settings pick up the environment
    yield get_settings()
    get_settings.cache_clear()
