"""
Data models and types for the skeleton extraction engine.

A scene is an arena of nodes addressed by integer index. Index 0 is always
the scene root; every other node has exactly one parent.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

Vector3 = Tuple[float, float, float]

ROOT_INDEX = 0


class AttributeKind(str, Enum):
    """Node attribute variants."""

    SKELETON = "skeleton"
    MESH = "mesh"
    OTHER = "other"


class SkeletonType(str, Enum):
    """Joint sub-types carried by skeleton attributes."""

    ROOT = "root"
    LIMB = "limb"
    LIMB_NODE = "limb_node"
    EFFECTOR = "effector"


class Interpolation(str, Enum):
    """Keyframe interpolation modes."""

    CONSTANT = "constant"
    LINEAR = "linear"
    CUBIC = "cubic"


class Channel(str, Enum):
    """The nine animatable local transform channels."""

    TRANSLATION_X = "translation_x"
    TRANSLATION_Y = "translation_y"
    TRANSLATION_Z = "translation_z"
    ROTATION_X = "rotation_x"
    ROTATION_Y = "rotation_y"
    ROTATION_Z = "rotation_z"
    SCALING_X = "scaling_x"
    SCALING_Y = "scaling_y"
    SCALING_Z = "scaling_z"

    @property
    def component(self) -> str:
        """Axis letter of the channel ("X", "Y" or "Z")."""
        return self.value[-1].upper()

    @property
    def prop(self) -> str:
        """Transform property the channel belongs to."""
        return self.value.rsplit("_", 1)[0]


TRANSFORM_CHANNELS: Tuple[Channel, ...] = tuple(Channel)


@dataclass
class Cluster:
    """Skin cluster linking mesh vertices to a driving node, by name."""

    link: Optional[str] = None


@dataclass
class SkinDeformer:
    """Skin deformer made of clusters."""

    clusters: List[Cluster] = field(default_factory=list)


@dataclass
class Mesh:
    """Polygon mesh geometry with its skin deformers."""

    name: str = ""
    control_points: List[Vector3] = field(default_factory=list)
    polygons: List[List[int]] = field(default_factory=list)
    skins: List[SkinDeformer] = field(default_factory=list)

    def validate(self) -> None:
        """Raise ValueError if a polygon references a missing control point."""
        count = len(self.control_points)
        for polygon_index, polygon in enumerate(self.polygons):
            for vertex in polygon:
                if vertex < 0 or vertex >= count:
                    raise ValueError(
                        f"Mesh {self.name!r} polygon {polygon_index} references "
                        f"control point {vertex} (mesh has {count})"
                    )


@dataclass
class NodeAttribute:
    """
    Tagged attribute variant.

    Only the payload matching ``kind`` is populated: ``skeleton_type`` for
    skeletons, ``mesh`` for meshes, nothing for other attributes.
    """

    kind: AttributeKind
    skeleton_type: Optional[SkeletonType] = None
    mesh: Optional[Mesh] = None

    @classmethod
    def skeleton(cls, skeleton_type: SkeletonType = SkeletonType.LIMB_NODE) -> "NodeAttribute":
        return cls(kind=AttributeKind.SKELETON, skeleton_type=skeleton_type)

    @classmethod
    def from_mesh(cls, mesh: Mesh) -> "NodeAttribute":
        return cls(kind=AttributeKind.MESH, mesh=mesh)

    @classmethod
    def other(cls) -> "NodeAttribute":
        return cls(kind=AttributeKind.OTHER)


@dataclass
class Node:
    """A scene node: name, local transform, hierarchy links and attribute."""

    name: str
    translation: Vector3 = (0.0, 0.0, 0.0)
    rotation: Vector3 = (0.0, 0.0, 0.0)  # Euler XYZ, degrees
    scaling: Vector3 = (1.0, 1.0, 1.0)
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    attribute: Optional[NodeAttribute] = None

    @property
    def is_skeleton(self) -> bool:
        return self.attribute is not None and self.attribute.kind == AttributeKind.SKELETON

    @property
    def mesh(self) -> Optional[Mesh]:
        if self.attribute is not None and self.attribute.kind == AttributeKind.MESH:
            return self.attribute.mesh
        return None


@dataclass
class Keyframe:
    """Single keyframe sample."""

    time: float  # seconds
    value: float
    interpolation: Interpolation = Interpolation.CUBIC


@dataclass
class AnimationCurve:
    """Ordered keyframes of one channel."""

    keys: List[Keyframe] = field(default_factory=list)

    def add_key(
        self,
        time: float,
        value: float,
        interpolation: Interpolation = Interpolation.CUBIC,
    ) -> Keyframe:
        key = Keyframe(time=time, value=value, interpolation=interpolation)
        self.keys.append(key)
        return key

    def offset_values(self, delta: float) -> None:
        """Shift every key value by ``delta`` without touching times."""
        for key in self.keys:
            key.value += delta


@dataclass
class AnimationLayer:
    """Per-node, per-channel curves of one layer."""

    name: str
    curves: Dict[Tuple[int, Channel], AnimationCurve] = field(default_factory=dict)

    def get_curve(self, node: int, channel: Channel, create: bool = False) -> Optional[AnimationCurve]:
        """Return the curve for ``(node, channel)``, creating it on request."""
        curve = self.curves.get((node, channel))
        if curve is None and create:
            curve = AnimationCurve()
            self.curves[(node, channel)] = curve
        return curve


@dataclass
class AnimationStack:
    """A named animation take."""

    name: str
    layers: List[AnimationLayer] = field(default_factory=list)

    def add_layer(self, name: str) -> AnimationLayer:
        layer = AnimationLayer(name=name)
        self.layers.append(layer)
        return layer


@dataclass
class AxisSystem:
    """
    Scene axis convention.

    ``up_axis`` is signed (1=X, 2=Y, 3=Z), ``front_parity`` is signed
    (1=even, 2=odd) and ``coord_system`` is 0 for right-handed, 1 for
    left-handed.
    """

    up_axis: int = 2
    front_parity: int = 1
    coord_system: int = 0


@dataclass
class GlobalSettings:
    """Scene-wide settings inherited by extracted scenes."""

    axis_system: AxisSystem = field(default_factory=AxisSystem)
    unit_scale: float = 1.0  # centimetres per unit


@dataclass
class SceneGraph:
    """Arena-backed scene graph."""

    name: str = ""
    nodes: List[Node] = field(default_factory=lambda: [Node(name="RootNode")])
    settings: GlobalSettings = field(default_factory=GlobalSettings)
    animation_stacks: List[AnimationStack] = field(default_factory=list)

    @property
    def root(self) -> int:
        return ROOT_INDEX

    def node(self, index: int) -> Node:
        return self.nodes[index]

    def add_node(
        self,
        name: str,
        parent: int = ROOT_INDEX,
        translation: Vector3 = (0.0, 0.0, 0.0),
        rotation: Vector3 = (0.0, 0.0, 0.0),
        scaling: Vector3 = (1.0, 1.0, 1.0),
        attribute: Optional[NodeAttribute] = None,
    ) -> int:
        """Append a node under ``parent`` and return its index."""
        if parent < 0 or parent >= len(self.nodes):
            raise IndexError(f"Parent index {parent} is out of range")
        if attribute is not None and attribute.mesh is not None:
            attribute.mesh.validate()

        index = len(self.nodes)
        self.nodes.append(
            Node(
                name=name,
                translation=tuple(translation),
                rotation=tuple(rotation),
                scaling=tuple(scaling),
                parent=parent,
                attribute=attribute,
            )
        )
        self.nodes[parent].children.append(index)
        return index

    def add_stack(self, name: str) -> AnimationStack:
        stack = AnimationStack(name=name)
        self.animation_stacks.append(stack)
        return stack

    def ancestors(self, index: int):
        """Yield ancestor indices from the parent up to the scene root."""
        parent = self.nodes[index].parent
        while parent is not None:
            yield parent
            parent = self.nodes[parent].parent

    def find(self, name: str) -> Optional[int]:
        """Return the first node index with the given name."""
        for index, node in enumerate(self.nodes):
            if node.name == name:
                return index
        return None

    def iter_curves(self, node: int, channel: Channel):
        """Yield the node's curve for ``channel`` in every layer of every stack."""
        for stack in self.animation_stacks:
            for layer in stack.layers:
                curve = layer.get_curve(node, channel)
                if curve is not None:
                    yield curve

    def release(self) -> None:
        """Drop every node and animation stack held by the scene."""
        self.nodes = []
        self.animation_stacks = []


@dataclass
class ExtractionResult:
    """Result of extracting one skeleton into its own scene."""

    scene: SceneGraph
    skeleton_name: str
    actor_name: str
    attached_meshes: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ExtractionOptions:
    """Configuration options for skeleton extraction."""

    recenter: bool = True
    rotate_to_face_z: bool = False
    spine_marker: str = "Spine"
