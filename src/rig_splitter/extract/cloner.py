"""
Subgraph Cloner Module

Deep-copies a node subtree (hierarchy, local transforms, skeleton and mesh
attributes) from one scene into another.

Only geometry is rebuilt for meshes: control points by value and polygons
index for index. Materials, UVs, normals and skin clusters stay behind.
"""

from typing import Optional

from rig_splitter.extract.types import (
    AttributeKind,
    Mesh,
    NodeAttribute,
    SceneGraph,
)


class SubgraphCloner:
    """Copies node subtrees between scene graphs."""

    def clone(
        self,
        source_scene: SceneGraph,
        source_index: int,
        dest_scene: SceneGraph,
        dest_parent: int,
    ) -> int:
        """
        Clone ``source_index`` and all its descendants under ``dest_parent``.

        Child order and names are preserved exactly.

        Args:
            source_scene: Scene holding the subtree
            source_index: Root of the subtree to copy
            dest_scene: Scene receiving the copy
            dest_parent: Node in ``dest_scene`` to attach the copy to

        Returns:
            Index of the new subtree root in ``dest_scene``
        """
        new_root = self._clone_node(source_scene, source_index, dest_scene, dest_parent)

        # Children are pushed in reverse so they are created in source order.
        pending = [
            (child, new_root)
            for child in reversed(source_scene.node(source_index).children)
        ]
        while pending:
            src_index, dst_parent = pending.pop()
            dst_index = self._clone_node(source_scene, src_index, dest_scene, dst_parent)
            for child in reversed(source_scene.node(src_index).children):
                pending.append((child, dst_index))

        return new_root

    def _clone_node(
        self,
        source_scene: SceneGraph,
        source_index: int,
        dest_scene: SceneGraph,
        dest_parent: int,
    ) -> int:
        source = source_scene.node(source_index)
        return dest_scene.add_node(
            source.name,
            parent=dest_parent,
            translation=source.translation,
            rotation=source.rotation,
            scaling=source.scaling,
            attribute=self._clone_attribute(source.attribute),
        )

    def _clone_attribute(self, attribute: Optional[NodeAttribute]) -> Optional[NodeAttribute]:
        if attribute is None:
            return None
        if attribute.kind == AttributeKind.SKELETON:
            return NodeAttribute.skeleton(attribute.skeleton_type)
        if attribute.kind == AttributeKind.MESH and attribute.mesh is not None:
            return NodeAttribute.from_mesh(self.clone_mesh(attribute.mesh))
        return None

    @staticmethod
    def clone_mesh(mesh: Mesh) -> Mesh:
        """Rebuild control points and polygons of ``mesh``, without skins."""
        return Mesh(
            name=mesh.name,
            control_points=[tuple(point) for point in mesh.control_points],
            polygons=[list(polygon) for polygon in mesh.polygons],
        )
