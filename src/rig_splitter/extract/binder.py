"""
Mesh-Skin Binder Scanner Module

Finds the meshes skinned to a skeleton root and attaches copies of them to
an extracted rig.
"""

from typing import List, Optional

from loguru import logger

from rig_splitter.extract.cloner import SubgraphCloner
from rig_splitter.extract.types import SceneGraph


class MeshSkinBinder:
    """
    Matches meshes to a skeleton through their skin clusters.

    A mesh is bound when any cluster of any of its skins links to a node whose
    name equals the skeleton root's name. Matching is by name, not identity,
    so duplicated joint names across rigs bind a mesh to every such rig.
    """

    def __init__(self, cloner: Optional[SubgraphCloner] = None):
        self.cloner = cloner or SubgraphCloner()

    def find_bound_meshes(self, scene: SceneGraph, skeleton_root: int) -> List[int]:
        """
        Return indices of mesh nodes bound to ``skeleton_root``, in arena order.

        Args:
            scene: Source scene
            skeleton_root: Skeleton root node index

        Returns:
            List of mesh-bearing node indices
        """
        root_name = scene.node(skeleton_root).name
        matches: List[int] = []

        for index, node in enumerate(scene.nodes):
            mesh = node.mesh
            if mesh is None:
                continue
            if any(
                cluster.link is not None and cluster.link == root_name
                for skin in mesh.skins
                for cluster in skin.clusters
            ):
                matches.append(index)

        return matches

    def attach(
        self,
        source_scene: SceneGraph,
        dest_scene: SceneGraph,
        skeleton_root: int,
        dest_root: int,
    ) -> List[str]:
        """
        Clone every bound mesh subtree under ``dest_root``.

        Returns:
            Names of the attached mesh nodes
        """
        attached: List[str] = []
        for index in self.find_bound_meshes(source_scene, skeleton_root):
            self.cloner.clone(source_scene, index, dest_scene, dest_root)
            name = source_scene.node(index).name
            logger.info("  Attached mesh: {}", name)
            attached.append(name)
        return attached
