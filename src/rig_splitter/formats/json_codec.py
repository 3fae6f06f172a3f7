"""
JSON Codec Module
Reads and writes scenes as pydantic-validated JSON documents.

Nodes are stored flat, in arena order, with explicit child index lists.
Node 0 is the scene root. Curves reference nodes by document index.
"""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from rig_splitter.errors import SceneExportError, SceneImportError
from rig_splitter.extract.types import (
    AnimationStack,
    AttributeKind,
    AxisSystem,
    Channel,
    Cluster,
    GlobalSettings,
    Interpolation,
    Mesh,
    NodeAttribute,
    SceneGraph,
    SkeletonType,
    SkinDeformer,
)
from rig_splitter.formats.base_codec import BaseCodec


class ClusterDocument(BaseModel):
    link: Optional[str] = None


class SkinDocument(BaseModel):
    clusters: list[ClusterDocument] = Field(default_factory=list)


class MeshDocument(BaseModel):
    name: str = ""
    control_points: list[tuple[float, float, float]] = Field(default_factory=list)
    polygons: list[list[int]] = Field(default_factory=list)
    skins: list[SkinDocument] = Field(default_factory=list)


class AttributeDocument(BaseModel):
    kind: AttributeKind
    skeleton_type: Optional[SkeletonType] = None
    mesh: Optional[MeshDocument] = None


class NodeDocument(BaseModel):
    name: str
    translation: tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: tuple[float, float, float] = (0.0, 0.0, 0.0)
    scaling: tuple[float, float, float] = (1.0, 1.0, 1.0)
    children: list[int] = Field(default_factory=list)
    attribute: Optional[AttributeDocument] = None


class KeyDocument(BaseModel):
    time: float
    value: float
    interpolation: Interpolation = Interpolation.CUBIC


class CurveDocument(BaseModel):
    node: int
    channel: Channel
    keys: list[KeyDocument] = Field(default_factory=list)


class LayerDocument(BaseModel):
    name: str
    curves: list[CurveDocument] = Field(default_factory=list)


class StackDocument(BaseModel):
    name: str
    layers: list[LayerDocument] = Field(default_factory=list)


class SettingsDocument(BaseModel):
    up_axis: int = 2
    front_parity: int = 1
    coord_system: int = 0
    unit_scale: float = 1.0


class SceneDocument(BaseModel):
    name: str = ""
    settings: SettingsDocument = Field(default_factory=SettingsDocument)
    nodes: list[NodeDocument] = Field(min_length=1)
    animation_stacks: list[StackDocument] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_hierarchy(self) -> "SceneDocument":
        count = len(self.nodes)
        parents: Dict[int, int] = {}
        for index, node in enumerate(self.nodes):
            for child in node.children:
                if child <= 0 or child >= count:
                    raise ValueError(f"Node {index} has invalid child index {child}")
                if child in parents:
                    raise ValueError(f"Node {child} has more than one parent")
                parents[child] = index

        reachable = {0}
        pending = [0]
        while pending:
            for child in self.nodes[pending.pop()].children:
                reachable.add(child)
                pending.append(child)
        if len(reachable) != count:
            raise ValueError("Every node must be reachable from node 0")

        for stack in self.animation_stacks:
            for layer in stack.layers:
                for curve in layer.curves:
                    if curve.node < 0 or curve.node >= count:
                        raise ValueError(
                            f"Curve in layer {layer.name!r} references missing node {curve.node}"
                        )
        return self

    def to_scene(self) -> SceneGraph:
        """Build a :class:`SceneGraph` from the document."""
        settings = self.settings
        scene = SceneGraph(
            name=self.name,
            settings=GlobalSettings(
                axis_system=AxisSystem(
                    up_axis=settings.up_axis,
                    front_parity=settings.front_parity,
                    coord_system=settings.coord_system,
                ),
                unit_scale=settings.unit_scale,
            ),
        )
        root = self.nodes[0]
        scene.node(scene.root).name = root.name
        scene.node(scene.root).translation = root.translation
        scene.node(scene.root).rotation = root.rotation
        scene.node(scene.root).scaling = root.scaling
        scene.node(scene.root).attribute = _attribute_from_document(root.attribute)

        index_map = {0: scene.root}
        pending = [(child, scene.root) for child in reversed(root.children)]
        while pending:
            doc_index, parent = pending.pop()
            doc = self.nodes[doc_index]
            index_map[doc_index] = scene.add_node(
                doc.name,
                parent=parent,
                translation=doc.translation,
                rotation=doc.rotation,
                scaling=doc.scaling,
                attribute=_attribute_from_document(doc.attribute),
            )
            pending.extend((child, index_map[doc_index]) for child in reversed(doc.children))

        for stack_doc in self.animation_stacks:
            stack = scene.add_stack(stack_doc.name)
            for layer_doc in stack_doc.layers:
                layer = stack.add_layer(layer_doc.name)
                for curve_doc in layer_doc.curves:
                    curve = layer.get_curve(index_map[curve_doc.node], curve_doc.channel, create=True)
                    for key in curve_doc.keys:
                        curve.add_key(key.time, key.value, key.interpolation)

        return scene

    @classmethod
    def from_scene(cls, scene: SceneGraph) -> "SceneDocument":
        """Serialise a :class:`SceneGraph`, preserving arena order."""
        axis = scene.settings.axis_system
        return cls(
            name=scene.name,
            settings=SettingsDocument(
                up_axis=axis.up_axis,
                front_parity=axis.front_parity,
                coord_system=axis.coord_system,
                unit_scale=scene.settings.unit_scale,
            ),
            nodes=[
                NodeDocument(
                    name=node.name,
                    translation=node.translation,
                    rotation=node.rotation,
                    scaling=node.scaling,
                    children=list(node.children),
                    attribute=_attribute_to_document(node.attribute),
                )
                for node in scene.nodes
            ],
            animation_stacks=[_stack_to_document(stack) for stack in scene.animation_stacks],
        )


def _attribute_from_document(doc: Optional[AttributeDocument]) -> Optional[NodeAttribute]:
    if doc is None:
        return None
    if doc.kind == AttributeKind.SKELETON:
        return NodeAttribute.skeleton(doc.skeleton_type or SkeletonType.LIMB_NODE)
    if doc.kind == AttributeKind.MESH:
        mesh_doc = doc.mesh or MeshDocument()
        return NodeAttribute.from_mesh(
            Mesh(
                name=mesh_doc.name,
                control_points=[tuple(point) for point in mesh_doc.control_points],
                polygons=[list(polygon) for polygon in mesh_doc.polygons],
                skins=[
                    SkinDeformer(clusters=[Cluster(link=c.link) for c in skin.clusters])
                    for skin in mesh_doc.skins
                ],
            )
        )
    return NodeAttribute.other()


def _attribute_to_document(attribute: Optional[NodeAttribute]) -> Optional[AttributeDocument]:
    if attribute is None:
        return None
    mesh = attribute.mesh
    return AttributeDocument(
        kind=attribute.kind,
        skeleton_type=attribute.skeleton_type,
        mesh=None if mesh is None else MeshDocument(
            name=mesh.name,
            control_points=mesh.control_points,
            polygons=mesh.polygons,
            skins=[
                SkinDocument(clusters=[ClusterDocument(link=c.link) for c in skin.clusters])
                for skin in mesh.skins
            ],
        ),
    )


def _stack_to_document(stack: AnimationStack) -> StackDocument:
    layers: List[LayerDocument] = []
    for layer in stack.layers:
        curves = [
            CurveDocument(
                node=node,
                channel=channel,
                keys=[
                    KeyDocument(time=key.time, value=key.value, interpolation=key.interpolation)
                    for key in curve.keys
                ],
            )
            for (node, channel), curve in layer.curves.items()
        ]
        layers.append(LayerDocument(name=layer.name, curves=curves))
    return StackDocument(name=stack.name, layers=layers)


class JsonSceneCodec(BaseCodec):
    """Scene codec for ``.json`` scene documents."""

    extensions = frozenset({".json"})

    def get_format_name(self) -> str:
        return "JSON"

    def load(self, path: Path) -> SceneGraph:
        try:
            document = SceneDocument.model_validate_json(Path(path).read_text(encoding="utf-8"))
            return document.to_scene()
        except (OSError, ValidationError, ValueError) as exc:
            raise SceneImportError(f"Failed to import scene {path}: {exc}") from exc

    def save(self, scene: SceneGraph, path: Path) -> None:
        payload = SceneDocument.from_scene(scene).model_dump_json(indent=2)
        try:
            Path(path).write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise SceneExportError(f"Failed to export scene {path}: {exc}") from exc
