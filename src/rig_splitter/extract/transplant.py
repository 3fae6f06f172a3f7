"""
Animation Transplant Module

Copies animation stacks, layers and transform curves from a source hierarchy
onto its clone. Nodes are paired by position in their parent's child list,
never by name, and pairing stops at the shorter child list of each level.
Keys are copied verbatim: same time, value and interpolation, same order.
"""

from typing import List, Tuple

from rig_splitter.extract.types import (
    TRANSFORM_CHANNELS,
    AnimationCurve,
    AnimationLayer,
    SceneGraph,
)


class AnimationTransplanter:
    """Transplants keyframe animation between paired hierarchies."""

    def transplant(
        self,
        source_scene: SceneGraph,
        dest_scene: SceneGraph,
        source_index: int,
        dest_index: int,
    ) -> int:
        """
        Recreate every source stack and layer in ``dest_scene`` and copy curves.

        Args:
            source_scene: Scene owning the animation
            dest_scene: Scene receiving the animation
            source_index: Root of the source hierarchy
            dest_index: Root of the cloned hierarchy

        Returns:
            Number of curves created
        """
        pairs = self.pair_nodes(source_scene, dest_scene, source_index, dest_index)
        created = 0

        for source_stack in source_scene.animation_stacks:
            dest_stack = dest_scene.add_stack(source_stack.name)
            for source_layer in source_stack.layers:
                dest_layer = dest_stack.add_layer(source_layer.name)
                created += self._copy_layer(source_layer, dest_layer, pairs)

        return created

    def pair_nodes(
        self,
        source_scene: SceneGraph,
        dest_scene: SceneGraph,
        source_index: int,
        dest_index: int,
    ) -> List[Tuple[int, int]]:
        """Return (source, destination) node pairs in pre-order."""
        pairs: List[Tuple[int, int]] = []
        pending = [(source_index, dest_index)]

        while pending:
            src, dst = pending.pop()
            pairs.append((src, dst))
            src_children = source_scene.node(src).children
            dst_children = dest_scene.node(dst).children
            matched = list(zip(src_children, dst_children))
            pending.extend(reversed(matched))

        return pairs

    def _copy_layer(
        self,
        source_layer: AnimationLayer,
        dest_layer: AnimationLayer,
        pairs: List[Tuple[int, int]],
    ) -> int:
        created = 0
        for src, dst in pairs:
            for channel in TRANSFORM_CHANNELS:
                source_curve = source_layer.get_curve(src, channel)
                if source_curve is None:
                    continue
                dest_curve = dest_layer.get_curve(dst, channel, create=True)
                copy_curve(source_curve, dest_curve)
                created += 1
        return created


def copy_curve(source: AnimationCurve, dest: AnimationCurve) -> None:
    """Append every key of ``source`` to ``dest`` unchanged."""
    for key in source.keys:
        dest.add_key(key.time, key.value, key.interpolation)
