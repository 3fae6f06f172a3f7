from __future__ import annotations

import json
from pathlib import Path

import pytest
from scene_factory import two_rig_scene

from rig_splitter.errors import SceneExportError, SceneImportError
from rig_splitter.extract.types import AttributeKind, Channel, Interpolation
from rig_splitter.formats import JsonSceneCodec, create_codec


def _write(path: Path, payload: dict) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_saved_scene_loads_back_with_structure_and_animation(tmp_path: Path):
    codec = JsonSceneCodec()
    path = tmp_path / "crowd.json"

    codec.save(two_rig_scene(), path)
    scene = codec.load(path)

    assert scene.settings.axis_system.up_axis == 3
    assert scene.settings.unit_scale == 2.54
    assert [scene.node(c).name for c in scene.node(scene.root).children] == ["A", "B", "BodyA", "BodyB", "Prop"]
    body = scene.node(scene.find("BodyA"))
    assert body.attribute.kind == AttributeKind.MESH
    assert body.mesh.polygons == [[0, 1, 2, 3], [3, 2, 4]]
    assert [c.link for c in body.mesh.skins[0].clusters] == ["A", "A_Spine"]

    spine_curve = scene.animation_stacks[0].layers[0].get_curve(2, Channel.ROTATION_X)
    assert [k.interpolation for k in spine_curve.keys] == [Interpolation.CONSTANT, Interpolation.CUBIC]


def test_nodes_out_of_order_are_rebuilt_depth_first(tmp_path: Path):
    path = _write(
        tmp_path / "shuffled.json",
        {
            "nodes": [
                {"name": "RootNode", "children": [2]},
                {"name": "Spine", "attribute": {"kind": "skeleton"}},
                {"name": "Hips", "attribute": {"kind": "skeleton", "skeleton_type": "root"}, "children": [1]},
            ],
            "animation_stacks": [
                {"name": "Take", "layers": [{"name": "Base", "curves": [
                    {"node": 1, "channel": "rotation_x", "keys": [{"time": 0.0, "value": 1.0}]},
                ]}]},
            ],
        },
    )

    scene = JsonSceneCodec().load(path)

    assert [node.name for node in scene.nodes] == ["RootNode", "Hips", "Spine"]
    curve = scene.animation_stacks[0].layers[0].get_curve(2, Channel.ROTATION_X)
    assert curve.keys[0].value == 1.0


@pytest.mark.parametrize(
    "payload",
    [
        {"nodes": []},
        {"nodes": [{"name": "RootNode", "children": [1]}, {"name": "Orphan", "children": [0]}]},
        {"nodes": [{"name": "RootNode", "children": [1, 2]}, {"name": "A", "children": [2]}, {"name": "B"}]},
        {"nodes": [{"name": "RootNode"}, {"name": "Detached"}]},
        {"nodes": [{"name": "RootNode", "children": [1]}, {"name": "Broken", "attribute": {
            "kind": "mesh", "mesh": {"control_points": [[0, 0, 0]], "polygons": [[0, 1, 2]]}}}]},
    ],
    ids=["empty", "root-as-child", "two-parents", "unreachable", "bad-polygon-index"],
)
def test_invalid_documents_raise_import_error(tmp_path: Path, payload: dict):
    path = _write(tmp_path / "bad.json", payload)

    with pytest.raises(SceneImportError):
        JsonSceneCodec().load(path)


def test_unreadable_file_raises_import_error(tmp_path: Path):
    path = tmp_path / "garbage.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SceneImportError):
        JsonSceneCodec().load(path)
    with pytest.raises(SceneImportError):
        JsonSceneCodec().load(tmp_path / "missing.json")


def test_unwritable_destination_raises_export_error(tmp_path: Path):
    with pytest.raises(SceneExportError):
        JsonSceneCodec().save(two_rig_scene(), tmp_path / "no-such-dir" / "out.json")


def test_codec_factory_dispatches_on_extension():
    assert isinstance(create_codec("scene.json"), JsonSceneCodec)
    assert isinstance(create_codec(".json"), JsonSceneCodec)
    assert create_codec(Path("scene.FBX")).get_format_name() == "FBX"
    with pytest.raises(ValueError):
        create_codec("scene.obj")
