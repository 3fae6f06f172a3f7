"""
FBX Codec Module
Reads and writes scenes through the Autodesk FBX Python SDK.

Only what the extraction engine consumes is converted: hierarchy, local
transforms, skeleton and mesh attributes, skin cluster links, animation
stacks/layers/curves, axis system and unit scale.
"""

from pathlib import Path
from typing import Dict

try:
    import fbx
    FBX_AVAILABLE = True
except ImportError:
    FBX_AVAILABLE = False
    fbx = None  # type: ignore

from loguru import logger

from rig_splitter.errors import SceneExportError, SceneImportError
from rig_splitter.extract.types import (
    TRANSFORM_CHANNELS,
    AnimationCurve,
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
    Vector3,
)
from rig_splitter.formats.base_codec import BaseCodec

_PROPERTIES = {
    "translation": "LclTranslation",
    "rotation": "LclRotation",
    "scaling": "LclScaling",
}


class FbxSceneCodec(BaseCodec):
    """Scene codec for ``.fbx`` files."""

    extensions = frozenset({".fbx"})

    def __init__(self):
        self._manager = None

    def get_format_name(self) -> str:
        return "FBX"

    # Public API -------------------------------------------------------

    def load(self, path: Path) -> SceneGraph:
        manager = self._get_manager(SceneImportError)
        importer = fbx.FbxImporter.Create(manager, "")
        try:
            if not importer.Initialize(str(path), -1, manager.GetIOSettings()):
                raise SceneImportError(
                    f"Failed to initialize importer for {path}: "
                    f"{importer.GetStatus().GetErrorString()}"
                )
            fbx_scene = fbx.FbxScene.Create(manager, "importScene")
            try:
                if not importer.Import(fbx_scene):
                    raise SceneImportError(
                        f"Failed to import scene {path}: {importer.GetStatus().GetErrorString()}"
                    )
                return self._read_scene(fbx_scene, Path(path).stem)
            except ValueError as exc:
                raise SceneImportError(f"Malformed scene {path}: {exc}") from exc
            finally:
                fbx_scene.Destroy()
        finally:
            importer.Destroy()

    def save(self, scene: SceneGraph, path: Path) -> None:
        manager = self._get_manager(SceneExportError)
        fbx_scene = fbx.FbxScene.Create(manager, scene.name)
        exporter = fbx.FbxExporter.Create(manager, "")
        try:
            self._write_scene(scene, fbx_scene)
            if not exporter.Initialize(str(path), -1, manager.GetIOSettings()):
                raise SceneExportError(
                    f"Failed to initialize exporter for {path}: "
                    f"{exporter.GetStatus().GetErrorString()}"
                )
            if not exporter.Export(fbx_scene):
                raise SceneExportError(
                    f"Failed to export scene {path}: {exporter.GetStatus().GetErrorString()}"
                )
        finally:
            exporter.Destroy()
            fbx_scene.Destroy()

    def close(self) -> None:
        if self._manager is not None:
            self._manager.Destroy()
            self._manager = None

    # Internal helpers -------------------------------------------------

    def _get_manager(self, error_type):
        if not FBX_AVAILABLE or fbx is None:
            raise error_type("Autodesk FBX Python SDK is not available")
        if self._manager is None:
            self._manager = fbx.FbxManager.Create()
            ios = fbx.FbxIOSettings.Create(self._manager, fbx.IOSROOT)
            self._manager.SetIOSettings(ios)
        return self._manager

    def _read_scene(self, fbx_scene, name: str) -> SceneGraph:
        global_settings = fbx_scene.GetGlobalSettings()
        axis = global_settings.GetAxisSystem()
        up, up_sign = axis.GetUpVector()
        front, front_sign = axis.GetFrontVector()
        scene = SceneGraph(
            name=name,
            settings=GlobalSettings(
                axis_system=AxisSystem(
                    up_axis=int(up) * up_sign,
                    front_parity=int(front) * front_sign,
                    coord_system=int(axis.GetCoorSystem()),
                ),
                unit_scale=global_settings.GetSystemUnit().GetScaleFactor(),
            ),
        )

        fbx_root = fbx_scene.GetRootNode()
        scene.node(scene.root).name = fbx_root.GetName()
        node_map: Dict[int, object] = {scene.root: fbx_root}

        pending = [(fbx_root.GetChild(i), scene.root) for i in reversed(range(fbx_root.GetChildCount()))]
        while pending:
            fbx_node, parent = pending.pop()
            index = scene.add_node(
                fbx_node.GetName(),
                parent=parent,
                translation=_vector3(fbx_node.LclTranslation.Get()),
                rotation=_vector3(fbx_node.LclRotation.Get()),
                scaling=_vector3(fbx_node.LclScaling.Get()),
                attribute=self._read_attribute(fbx_node),
            )
            node_map[index] = fbx_node
            for i in reversed(range(fbx_node.GetChildCount())):
                pending.append((fbx_node.GetChild(i), index))

        stack_criteria = fbx.FbxCriteria.ObjectType(fbx.FbxAnimStack.ClassId)
        layer_criteria = fbx.FbxCriteria.ObjectType(fbx.FbxAnimLayer.ClassId)
        for stack_index in range(fbx_scene.GetSrcObjectCount(stack_criteria)):
            fbx_stack = fbx_scene.GetSrcObject(stack_criteria, stack_index)
            stack = scene.add_stack(fbx_stack.GetName())
            for layer_index in range(fbx_stack.GetMemberCount(layer_criteria)):
                fbx_layer = fbx_stack.GetMember(layer_criteria, layer_index)
                layer = stack.add_layer(fbx_layer.GetName())
                for index, fbx_node in node_map.items():
                    for channel in TRANSFORM_CHANNELS:
                        fbx_curve = _fbx_curve(fbx_node, fbx_layer, channel, create=False)
                        if fbx_curve is None:
                            continue
                        _read_curve(fbx_curve, layer.get_curve(index, channel, create=True))

        logger.debug("Read {} node(s) from FBX scene {}", len(scene.nodes), name)
        return scene

    def _read_attribute(self, fbx_node):
        attribute = fbx_node.GetNodeAttribute()
        if attribute is None:
            return None

        attribute_type = attribute.GetAttributeType()
        if attribute_type == fbx.FbxNodeAttribute.EType.eSkeleton:
            skeleton = fbx_node.GetSkeleton()
            return NodeAttribute.skeleton(_SKELETON_TYPES_IN[int(skeleton.GetSkeletonType())])

        if attribute_type == fbx.FbxNodeAttribute.EType.eMesh:
            fbx_mesh = fbx_node.GetMesh()
            mesh = Mesh(name=fbx_mesh.GetName())
            for i in range(fbx_mesh.GetControlPointsCount()):
                point = fbx_mesh.GetControlPointAt(i)
                mesh.control_points.append((point[0], point[1], point[2]))
            for i in range(fbx_mesh.GetPolygonCount()):
                mesh.polygons.append(
                    [fbx_mesh.GetPolygonVertex(i, j) for j in range(fbx_mesh.GetPolygonSize(i))]
                )
            skin_type = fbx.FbxDeformer.EDeformerType.eSkin
            for i in range(fbx_mesh.GetDeformerCount(skin_type)):
                skin = fbx_mesh.GetDeformer(i, skin_type)
                clusters = []
                for c in range(skin.GetClusterCount()):
                    link = skin.GetCluster(c).GetLink()
                    clusters.append(Cluster(link=link.GetName() if link is not None else None))
                mesh.skins.append(SkinDeformer(clusters=clusters))
            return NodeAttribute.from_mesh(mesh)

        return NodeAttribute.other()

    def _write_scene(self, scene: SceneGraph, fbx_scene) -> None:
        global_settings = fbx_scene.GetGlobalSettings()
        axis = scene.settings.axis_system
        global_settings.SetAxisSystem(
            fbx.FbxAxisSystem(
                fbx.FbxAxisSystem.EUpVector(axis.up_axis),
                fbx.FbxAxisSystem.EFrontVector(axis.front_parity),
                fbx.FbxAxisSystem.ECoordSystem(axis.coord_system),
            )
        )
        global_settings.SetSystemUnit(fbx.FbxSystemUnit(scene.settings.unit_scale))

        node_map = {scene.root: fbx_scene.GetRootNode()}
        pending = [(child, scene.root) for child in reversed(scene.node(scene.root).children)]
        while pending:
            index, parent = pending.pop()
            node = scene.node(index)
            fbx_node = fbx.FbxNode.Create(fbx_scene, node.name)
            node_map[parent].AddChild(fbx_node)
            node_map[index] = fbx_node

            self._write_attribute(node.attribute, fbx_node, fbx_scene)
            fbx_node.LclTranslation.Set(fbx.FbxDouble3(*node.translation))
            fbx_node.LclRotation.Set(fbx.FbxDouble3(*node.rotation))
            fbx_node.LclScaling.Set(fbx.FbxDouble3(*node.scaling))

            pending.extend((child, index) for child in reversed(node.children))

        for stack in scene.animation_stacks:
            fbx_stack = fbx.FbxAnimStack.Create(fbx_scene, stack.name)
            for layer in stack.layers:
                fbx_layer = fbx.FbxAnimLayer.Create(fbx_scene, layer.name)
                fbx_stack.AddMember(fbx_layer)
                for (index, channel), curve in layer.curves.items():
                    fbx_curve = _fbx_curve(node_map[index], fbx_layer, channel, create=True)
                    _write_curve(curve, fbx_curve)

    def _write_attribute(self, attribute, fbx_node, fbx_scene) -> None:
        if attribute is None:
            return
        if attribute.kind == AttributeKind.SKELETON:
            skeleton = fbx.FbxSkeleton.Create(fbx_scene, "")
            skeleton.SetSkeletonType(_SKELETON_TYPES_OUT[attribute.skeleton_type])
            fbx_node.SetNodeAttribute(skeleton)
        elif attribute.kind == AttributeKind.MESH and attribute.mesh is not None:
            mesh = attribute.mesh
            fbx_mesh = fbx.FbxMesh.Create(fbx_scene, mesh.name)
            fbx_mesh.InitControlPoints(len(mesh.control_points))
            for i, point in enumerate(mesh.control_points):
                fbx_mesh.SetControlPointAt(fbx.FbxVector4(*point), i)
            for polygon in mesh.polygons:
                fbx_mesh.BeginPolygon()
                for vertex in polygon:
                    fbx_mesh.AddPolygon(vertex)
                fbx_mesh.EndPolygon()
            fbx_node.SetNodeAttribute(fbx_mesh)


def _vector3(value) -> Vector3:
    return (value[0], value[1], value[2])


def _fbx_curve(fbx_node, fbx_layer, channel: Channel, create: bool):
    prop = getattr(fbx_node, _PROPERTIES[channel.prop])
    return prop.GetCurve(fbx_layer, channel.component, create)


def _read_curve(fbx_curve, curve: AnimationCurve) -> None:
    for i in range(fbx_curve.KeyGetCount()):
        curve.add_key(
            fbx_curve.KeyGetTime(i).GetSecondDouble(),
            fbx_curve.KeyGetValue(i),
            _INTERPOLATION_IN.get(int(fbx_curve.KeyGetInterpolation(i)), Interpolation.CUBIC),
        )


def _write_curve(curve: AnimationCurve, fbx_curve) -> None:
    fbx_curve.KeyModifyBegin()
    for key in curve.keys:
        time = fbx.FbxTime()
        time.SetSecondDouble(key.time)
        index = fbx_curve.KeyAdd(time)[0]
        fbx_curve.KeySetValue(index, key.value)
        fbx_curve.KeySetInterpolation(index, _INTERPOLATION_OUT[key.interpolation])
    fbx_curve.KeyModifyEnd()


# FbxSkeleton::EType and FbxAnimCurveDef::EInterpolationType values
_SKELETON_TYPES_IN = {
    0: SkeletonType.ROOT,
    1: SkeletonType.LIMB,
    2: SkeletonType.LIMB_NODE,
    3: SkeletonType.EFFECTOR,
}
_INTERPOLATION_IN = {
    2: Interpolation.CONSTANT,
    4: Interpolation.LINEAR,
    8: Interpolation.CUBIC,
}

if FBX_AVAILABLE:
    _SKELETON_TYPES_OUT = {
        SkeletonType.ROOT: fbx.FbxSkeleton.EType.eRoot,
        SkeletonType.LIMB: fbx.FbxSkeleton.EType.eLimb,
        SkeletonType.LIMB_NODE: fbx.FbxSkeleton.EType.eLimbNode,
        SkeletonType.EFFECTOR: fbx.FbxSkeleton.EType.eEffector,
    }
    _INTERPOLATION_OUT = {
        Interpolation.CONSTANT: fbx.FbxAnimCurveDef.EInterpolationType.eInterpolationConstant,
        Interpolation.LINEAR: fbx.FbxAnimCurveDef.EInterpolationType.eInterpolationLinear,
        Interpolation.CUBIC: fbx.FbxAnimCurveDef.EInterpolationType.eInterpolationCubic,
    }
