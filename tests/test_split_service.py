from __future__ import annotations

import threading
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from loguru import logger
from scene_factory import hero_scene, static_scene, two_rig_scene

from rig_splitter.config import AppSettings
from rig_splitter.errors import SceneExportError, SceneImportError
from rig_splitter.formats import JsonSceneCodec
from rig_splitter.models import ExportOutcome, JobStatus, SplitRequest
from rig_splitter.services.batch import BatchDriver
from rig_splitter.services.splitting import SplitService


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    return AppSettings(work_dir=tmp_path / "work")


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "crowd.json"
    JsonSceneCodec().save(two_rig_scene(), path)
    return path


def test_split_local_asset(settings: AppSettings, source_file: Path):
    service = SplitService(settings=settings)

    response = service.split(SplitRequest(source_uri=str(source_file)))

    assert response.status == JobStatus.COMPLETED
    assert response.rotated_to_face_z is False
    assert [a.skeleton for a in response.artifacts] == ["A", "B"]
    for artifact in response.artifacts:
        artifact_path = Path(artifact.uri)
        assert artifact.outcome == ExportOutcome.EXPORTED
        assert artifact_path.exists()
        assert artifact_path.parent == settings.artifact_dir / response.job_id
        assert artifact.content_type == "application/json"
    assert "Found 2 skeletons in the file." in response.logs
    # the source directory is left alone
    assert sorted(p.name for p in source_file.parent.iterdir()) == ["crowd.json", "work"]


def test_split_to_explicit_local_directory(tmp_path: Path, settings: AppSettings, source_file: Path):
    destination = tmp_path / "out"

    response = SplitService(settings=settings).split(
        SplitRequest(source_uri=str(source_file), output_uri=str(destination))
    )

    assert sorted(p.name for p in destination.iterdir()) == ["crowd_A.json", "crowd_B.json"]
    assert response.artifacts[0].uri == str(destination / "crowd_A.json")


def test_split_uploads_to_s3(settings: AppSettings, source_file: Path):
    client = MagicMock()

    with patch("rig_splitter.services.storage.boto3.client", return_value=client):
        response = SplitService(settings=settings).split(
            SplitRequest(source_uri=str(source_file), output_uri="s3://assets/characters")
        )

    assert [a.uri for a in response.artifacts] == [
        "s3://assets/characters/crowd_A.json",
        "s3://assets/characters/crowd_B.json",
    ]
    uploaded_keys = [call.args[2] for call in client.upload_file.call_args_list]
    assert uploaded_keys == ["characters/crowd_A.json", "characters/crowd_B.json"]


def test_output_bucket_gives_each_job_its_own_prefix(tmp_path: Path, source_file: Path):
    settings = AppSettings(work_dir=tmp_path / "work", output_bucket="renders")
    client = MagicMock()

    with patch("rig_splitter.services.storage.boto3.client", return_value=client):
        response = SplitService(settings=settings).split(SplitRequest(source_uri=str(source_file)))

    assert response.artifacts[0].uri == f"s3://renders/splits/{response.job_id}/crowd_A.json"


def test_rotate_flag_reaches_extraction(tmp_path: Path, settings: AppSettings):
    scene = hero_scene()
    scene.node(2).translation = (4.0, 0.0, 0.0)
    source = tmp_path / "shot.json"
    JsonSceneCodec().save(scene, source)

    response = SplitService(settings=settings).split(
        SplitRequest(source_uri=str(source), rotate_to_face_z=True)
    )

    assert response.rotated_to_face_z is True
    rotation = JsonSceneCodec().load(Path(response.artifacts[0].uri)).node(1).rotation
    assert rotation[1] == pytest.approx(-90.0)


def test_failed_export_makes_job_partial(
    settings: AppSettings, source_file: Path, monkeypatch: pytest.MonkeyPatch
):
    save = JsonSceneCodec.save

    def save_all_but_b(self, scene, path):
        if path.name.endswith("_B.json"):
            raise SceneExportError("disk full")
        save(self, scene, path)

    monkeypatch.setattr(JsonSceneCodec, "save", save_all_but_b)

    response = SplitService(settings=settings).split(SplitRequest(source_uri=str(source_file)))

    assert response.status == JobStatus.PARTIAL
    failed = response.artifacts[1]
    assert (failed.skeleton, failed.outcome, failed.uri) == ("B", ExportOutcome.FAILED, None)
    assert response.artifacts[0].outcome == ExportOutcome.EXPORTED


def test_scene_without_skeletons(tmp_path: Path, settings: AppSettings):
    source = tmp_path / "props.json"
    JsonSceneCodec().save(static_scene(), source)

    response = SplitService(settings=settings).split(SplitRequest(source_uri=str(source)))

    assert response.status == JobStatus.NO_SKELETONS
    assert response.artifacts == []


def test_missing_input_is_rejected(tmp_path: Path, settings: AppSettings):
    with pytest.raises(FileNotFoundError):
        SplitService(settings=settings).split(SplitRequest(source_uri=str(tmp_path / "absent.json")))


def test_malformed_input_raises_import_error(tmp_path: Path, settings: AppSettings):
    broken = tmp_path / "broken.json"
    broken.write_text("[]", encoding="utf-8")

    with pytest.raises(SceneImportError):
        SplitService(settings=settings).split(SplitRequest(source_uri=str(broken)))


def test_concurrent_jobs_keep_their_own_logs(tmp_path: Path, settings: AppSettings):
    codec = JsonSceneCodec()
    alpha, bravo = tmp_path / "alpha.json", tmp_path / "bravo.json"
    codec.save(hero_scene(), alpha)
    codec.save(two_rig_scene(), bravo)

    barrier = threading.Barrier(2)
    responses = {}

    def run(name: str, source: Path) -> None:
        service = SplitService(settings=settings)
        barrier.wait()
        responses[name] = service.split(SplitRequest(source_uri=str(source)))

    threads = [
        threading.Thread(target=run, args=("alpha", alpha)),
        threading.Thread(target=run, args=("bravo", bravo)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not [m for m in responses["alpha"].logs if "bravo" in m]
    assert not [m for m in responses["bravo"].logs if "alpha" in m]
    assert "Found 1 skeletons in the file." in responses["alpha"].logs
    assert "Found 2 skeletons in the file." in responses["bravo"].logs


def test_logs_from_other_threads_are_not_captured(
    settings: AppSettings, source_file: Path, monkeypatch: pytest.MonkeyPatch
):
    process_file = BatchDriver.process_file

    def process_with_background_chatter(self, input_path, report=None):
        worker = threading.Thread(target=lambda: logger.info("unrelated worker message"))
        worker.start()
        worker.join()
        return process_file(self, input_path, report)

    monkeypatch.setattr(BatchDriver, "process_file", process_with_background_chatter)

    response = SplitService(settings=settings).split(SplitRequest(source_uri=str(source_file)))

    assert "unrelated worker message" not in response.logs
    assert "Found 2 skeletons in the file." in response.logs
