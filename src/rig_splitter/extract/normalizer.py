"""
Spatial Normalizer Module

Moves an extracted rig onto the origin and, optionally, turns it to face +Z.

Recentering only shifts the root's translation X/Z keyframes; the static
translation is left as is because the curves drive playback. Face-Z alignment
changes both the static Y rotation and the rotation Y keyframes of the root.
"""

from typing import Optional, Tuple

from loguru import logger

from rig_splitter.extract.locator import SkeletonLocator
from rig_splitter.extract.transforms import global_position, heading_degrees
from rig_splitter.extract.types import Channel, SceneGraph, Vector3


class SpatialNormalizer:
    """Recenters and reorients the first skeleton of a scene."""

    def __init__(self, locator: Optional[SkeletonLocator] = None, spine_marker: str = "Spine"):
        self.locator = locator or SkeletonLocator()
        self.spine_marker = spine_marker

    def normalize(
        self,
        scene: SceneGraph,
        recenter: bool = True,
        rotate_to_face_z: bool = False,
    ) -> Optional[int]:
        """
        Normalize the scene's first skeleton root.

        Args:
            scene: Extracted scene, modified in place
            recenter: Shift the root's horizontal keys onto the origin
            rotate_to_face_z: Align the rig to face +Z

        Returns:
            The normalized root index, or None if the scene has no skeleton
        """
        roots = self.locator.find_roots(scene)
        if not roots:
            logger.warning("No skeletons found in scene {!r}, skipping normalization", scene.name)
            return None

        root = roots[0]
        if recenter:
            self.recenter(scene, root)
        if rotate_to_face_z:
            self.face_z(scene, root)
        return root

    def recenter(self, scene: SceneGraph, root: int) -> Vector3:
        """
        Shift the root's translation X/Z keys so it starts over the origin.

        Returns:
            The applied offset ``(-x0, 0, -z0)``
        """
        x0, _, z0 = scene.node(root).translation
        offset = (-x0, 0.0, -z0)

        for curve in scene.iter_curves(root, Channel.TRANSLATION_X):
            curve.offset_values(offset[0])
        for curve in scene.iter_curves(root, Channel.TRANSLATION_Z):
            curve.offset_values(offset[2])

        logger.debug("Recentered {} by {}", scene.node(root).name, offset)
        return offset

    def reference_child(self, scene: SceneGraph, root: int) -> Optional[int]:
        """First child whose name contains the spine marker, else the first child."""
        children = scene.node(root).children
        for child in children:
            if self.spine_marker in scene.node(child).name:
                return child
        return children[0] if children else None

    def face_z(self, scene: SceneGraph, root: int) -> Optional[Vector3]:
        """
        Rotate the root around Y so the reference child lies along +Z.

        Returns:
            The applied rotation offset, or None when the root has no children
        """
        child = self.reference_child(scene, root)
        if child is None:
            logger.warning("Skeleton {} has no children, cannot estimate facing", scene.node(root).name)
            return None

        forward = global_position(scene, child) - global_position(scene, root)
        forward[1] = 0.0
        angle = heading_degrees(forward)
        offset = (0.0, -angle, 0.0)

        self._apply_rotation_offset(scene, root, offset)
        logger.debug(
            "Rotated {} by {:.4f} degrees using {}",
            scene.node(root).name,
            -angle,
            scene.node(child).name,
        )
        return offset

    def _apply_rotation_offset(self, scene: SceneGraph, root: int, offset: Vector3) -> None:
        node = scene.node(root)
        node.rotation = _add(node.rotation, offset)
        for curve in scene.iter_curves(root, Channel.ROTATION_Y):
            curve.offset_values(offset[1])


def _add(a: Vector3, b: Vector3) -> Tuple[float, float, float]:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])
