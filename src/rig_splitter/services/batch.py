from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

from rig_splitter.config import AppSettings, get_settings
from rig_splitter.errors import DirectoryTraversalError, SceneExportError, SceneImportError
from rig_splitter.extract import ExtractionOptions, SceneGraph, SkeletonExtractor, sanitize_name
from rig_splitter.formats import BaseCodec, create_codec


@dataclass
class SkeletonExport:
    """Outcome of writing one extracted skeleton."""

    source: Path
    skeleton_name: str
    actor_name: str
    output_path: Path
    exported: bool


@dataclass
class BatchReport:
    outputs: list[Path] = field(default_factory=list)
    processed_files: list[Path] = field(default_factory=list)
    skipped_files: list[Path] = field(default_factory=list)
    files_without_skeletons: list[Path] = field(default_factory=list)
    failed_exports: list[Path] = field(default_factory=list)
    exports: list[SkeletonExport] = field(default_factory=list)


@contextmanager
def owned_scene(scene: SceneGraph) -> Iterator[SceneGraph]:
    """Release ``scene`` on every exit path."""
    try:
        yield scene
    finally:
        scene.release()


def output_path_for(input_path: Path, actor_name: str) -> Path:
    """``<stem>_<actor>.<ext>`` beside the input file."""
    return input_path.with_name(f"{input_path.stem}_{actor_name}{input_path.suffix}")


class BatchDriver:
    """Split every scene file of a directory into one file per skeleton."""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        rotate_to_face_z: bool = False,
        codec: Optional[BaseCodec] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.codec = codec or create_codec(self.settings.scene_extension)
        self.extractor = SkeletonExtractor(
            ExtractionOptions(
                recenter=self.settings.recenter,
                rotate_to_face_z=rotate_to_face_z,
                spine_marker=self.settings.spine_marker,
            )
        )

    def process_directory(self, directory: Path, report: Optional[BatchReport] = None) -> BatchReport:
        report = report or BatchReport()
        logger.info("Processing directory: {}", directory)

        for path in self._list_scene_files(Path(directory)):
            self.process_file(path, report)

        return report

    def process_file(self, input_path: Path, report: Optional[BatchReport] = None) -> BatchReport:
        report = report or BatchReport()
        input_path = Path(input_path)
        logger.info("Processing: {}", input_path)

        try:
            source_scene = self.codec.load(input_path)
        except SceneImportError as exc:
            logger.error("Skipping {}: {}", input_path, exc)
            report.skipped_files.append(input_path)
            return report

        with owned_scene(source_scene):
            report.processed_files.append(input_path)
            skeletons = self.extractor.find_skeletons(source_scene)
            logger.info("Found {} skeletons in the file.", len(skeletons))

            if not skeletons:
                logger.info("No skeletons in {}, nothing to extract", input_path)
                report.files_without_skeletons.append(input_path)
                return report

            for skeleton in skeletons:
                self._export_skeleton(source_scene, skeleton, input_path, report)

        return report

    # Internal helpers -------------------------------------------------

    def _export_skeleton(
        self,
        source_scene: SceneGraph,
        skeleton: int,
        input_path: Path,
        report: BatchReport,
    ) -> None:
        logger.info("  Processing skeleton: {}", sanitize_name(source_scene.node(skeleton).name))
        result = self.extractor.extract(source_scene, skeleton)

        with owned_scene(result.scene) as scene:
            for warning in result.warnings:
                logger.warning("  {}", warning)

            output_path = output_path_for(input_path, result.actor_name)
            export = SkeletonExport(
                source=input_path,
                skeleton_name=result.skeleton_name,
                actor_name=result.actor_name,
                output_path=output_path,
                exported=False,
            )
            report.exports.append(export)
            try:
                self.codec.save(scene, output_path)
            except SceneExportError as exc:
                logger.error("Failed to export {} from {}: {}", result.skeleton_name, input_path, exc)
                report.failed_exports.append(output_path)
                return

        export.exported = True
        logger.info("  Successfully exported: {}", output_path)
        report.outputs.append(output_path)

    def _list_scene_files(self, directory: Path) -> list[Path]:
        extension = self.settings.scene_extension
        try:
            if not directory.is_dir():
                msg = f"Input path is not a directory: {directory}"
                raise DirectoryTraversalError(msg)
            return sorted(
                entry
                for entry in directory.iterdir()
                if entry.is_file() and entry.suffix == extension
            )
        except OSError as exc:
            raise DirectoryTraversalError(f"Error processing directory {directory}: {exc}") from exc


__all__ = [
    "BatchDriver",
    "BatchReport",
    "SkeletonExport",
    "output_path_for",
    "owned_scene",
]
