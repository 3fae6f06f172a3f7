"""
Skeleton Locator Module

Finds the topmost skeleton nodes of every independent rig in a scene.
"""

from typing import List, Optional

from rig_splitter.extract.types import SceneGraph


class SkeletonLocator:
    """
    Locates skeleton roots in a scene graph.

    A skeleton root is a skeleton-typed node with no skeleton-typed ancestor.
    The walk visits every node, so sibling rigs and rigs nested below
    non-skeleton nodes are all reported, in pre-order.
    """

    def find_roots(self, scene: SceneGraph, start: Optional[int] = None) -> List[int]:
        """
        Return skeleton root indices in pre-order discovery order.

        Args:
            scene: Scene to search
            start: Node to start from (defaults to the scene root)

        Returns:
            List of node indices, possibly empty
        """
        if not scene.nodes:
            return []

        if start is None:
            start = scene.root
        inside_rig = any(scene.node(a).is_skeleton for a in scene.ancestors(start))

        roots: List[int] = []
        # (node index, inside an already-qualified rig)
        stack = [(start, inside_rig)]

        while stack:
            index, under_skeleton = stack.pop()
            node = scene.node(index)

            if node.is_skeleton and not under_skeleton:
                roots.append(index)

            child_flag = under_skeleton or node.is_skeleton
            for child in reversed(node.children):
                stack.append((child, child_flag))

        return roots


def find_skeleton_roots(scene: SceneGraph) -> List[int]:
    """Module level shortcut for :meth:`SkeletonLocator.find_roots`."""
    return SkeletonLocator().find_roots(scene)
