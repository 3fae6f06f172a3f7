"""
Skeleton Extraction Orchestrator

Main entry point for splitting one rig out of a multi-character scene.

Workflow:
1. Create an empty scene with the source's axis system and unit scale
2. Clone the skeleton hierarchy under the new scene root
3. Attach copies of the meshes skinned to the skeleton root
4. Transplant animation stacks, layers and curves
5. Recenter (and optionally reorient) the extracted rig
"""

import re
from dataclasses import replace
from typing import List, Optional

from loguru import logger

from rig_splitter.extract.binder import MeshSkinBinder
from rig_splitter.extract.cloner import SubgraphCloner
from rig_splitter.extract.locator import SkeletonLocator
from rig_splitter.extract.normalizer import SpatialNormalizer
from rig_splitter.extract.transplant import AnimationTransplanter
from rig_splitter.extract.types import (
    ExtractionOptions,
    ExtractionResult,
    GlobalSettings,
    SceneGraph,
)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]")


def sanitize_name(name: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _UNSAFE_CHARS.sub("_", name)


class SkeletonExtractor:
    """
    Orchestrates per-skeleton extraction.

    The source scene is only read; every result owns a fresh scene.
    """

    def __init__(self, options: Optional[ExtractionOptions] = None):
        """
        Initialize the extractor.

        Args:
            options: Configuration options for extraction
        """
        self.options = options or ExtractionOptions()

        self.locator = SkeletonLocator()
        self.cloner = SubgraphCloner()
        self.binder = MeshSkinBinder(self.cloner)
        self.transplanter = AnimationTransplanter()
        self.normalizer = SpatialNormalizer(self.locator, spine_marker=self.options.spine_marker)

    def find_skeletons(self, scene: SceneGraph) -> List[int]:
        """Return the skeleton roots of ``scene``."""
        return self.locator.find_roots(scene)

    def extract(self, source_scene: SceneGraph, skeleton_root: int) -> ExtractionResult:
        """
        Extract one skeleton with its bound meshes and animation.

        Args:
            source_scene: Imported scene holding every rig
            skeleton_root: Index of the skeleton root to extract

        Returns:
            ExtractionResult owning the new scene
        """
        skeleton_name = source_scene.node(skeleton_root).name
        actor_name = sanitize_name(skeleton_name)

        new_scene = SceneGraph(
            name=actor_name,
            settings=GlobalSettings(
                axis_system=replace(source_scene.settings.axis_system),
                unit_scale=source_scene.settings.unit_scale,
            ),
        )
        result = ExtractionResult(scene=new_scene, skeleton_name=skeleton_name, actor_name=actor_name)

        try:
            new_root = self.cloner.clone(source_scene, skeleton_root, new_scene, new_scene.root)
            result.attached_meshes = self.binder.attach(source_scene, new_scene, skeleton_root, new_root)

            curves = self.transplanter.transplant(source_scene, new_scene, skeleton_root, new_root)
            logger.debug("Transplanted {} curve(s) for {}", curves, skeleton_name)

            if self.options.recenter or self.options.rotate_to_face_z:
                normalized = self.normalizer.normalize(
                    new_scene,
                    recenter=self.options.recenter,
                    rotate_to_face_z=self.options.rotate_to_face_z,
                )
                if normalized is None:
                    result.warnings.append(f"No skeleton found while normalizing {skeleton_name}")
        except Exception:
            # the caller never receives the half-built scene
            new_scene.release()
            raise

        return result
