from __future__ import annotations

from unittest.mock import patch

import pytest
from scene_factory import hero_scene, two_rig_scene

from rig_splitter.extract import ExtractionOptions, SkeletonExtractor, sanitize_name
from rig_splitter.extract.types import Channel, SceneGraph


def test_sanitize_name_replaces_non_alphanumerics():
    assert sanitize_name("Hero Rig") == "Hero_Rig"
    assert sanitize_name("mixamorig:Hips.001") == "mixamorig_Hips_001"
    assert sanitize_name("Actor42") == "Actor42"


def test_extracted_scene_holds_only_its_rig_and_meshes():
    source = two_rig_scene()
    extractor = SkeletonExtractor()

    result = extractor.extract(source, 1)
    scene = result.scene

    assert result.skeleton_name == "A"
    assert result.actor_name == "A"
    assert result.attached_meshes == ["BodyA"]
    assert [node.name for node in scene.nodes] == [
        "RootNode", "A", "A_Spine", "A_Head", "A_Leg", "BodyA", "BodyA_Detail",
    ]
    assert scene.settings.axis_system == source.settings.axis_system
    assert scene.settings.axis_system is not source.settings.axis_system
    assert scene.settings.unit_scale == 2.54


def test_extraction_recenters_animation_and_leaves_source_untouched():
    source = two_rig_scene()

    result = SkeletonExtractor().extract(source, 1)

    layer = result.scene.animation_stacks[0].layers[0]
    assert [k.value for k in layer.get_curve(1, Channel.TRANSLATION_X).keys] == [0.0, 1.0, 2.5]
    assert [k.value for k in layer.get_curve(1, Channel.TRANSLATION_Y).keys] == [1.0, 1.5, 1.0]
    assert [k.value for k in layer.get_curve(1, Channel.TRANSLATION_Z).keys] == [0.0, 0.0, 1.0]
    assert [k.value for k in layer.get_curve(1, Channel.ROTATION_Y).keys] == [10.0, 20.0, 30.0]

    source_layer = source.animation_stacks[0].layers[0]
    assert [k.value for k in source_layer.get_curve(1, Channel.TRANSLATION_X).keys] == [5.0, 6.0, 7.5]


def test_extraction_with_rotation_changes_only_rotation_y():
    source = two_rig_scene()

    result = SkeletonExtractor(ExtractionOptions(rotate_to_face_z=True)).extract(source, 1)

    # A_Spine sits straight above the root, so the heading is atan2(0, 0) == 0
    root = result.scene.node(1)
    assert root.rotation == pytest.approx((0.0, 0.0, 0.0))
    layer = result.scene.animation_stacks[0].layers[0]
    assert [k.value for k in layer.get_curve(1, Channel.ROTATION_Y).keys] == pytest.approx([10.0, 20.0, 30.0])


def test_hero_rig_keyframe_moves_to_origin():
    result = SkeletonExtractor().extract(hero_scene(), 1)

    layer = result.scene.animation_stacks[0].layers[0]
    key_values = tuple(
        layer.get_curve(1, channel).keys[0].value
        for channel in (Channel.TRANSLATION_X, Channel.TRANSLATION_Y, Channel.TRANSLATION_Z)
    )
    assert result.actor_name == "Hero_Rig"
    assert key_values == (0.0, 0.0, 0.0)
    assert layer.get_curve(1, Channel.TRANSLATION_X).keys[0].time == 0.0


def test_recentering_can_be_disabled():
    result = SkeletonExtractor(ExtractionOptions(recenter=False)).extract(hero_scene(), 1)

    layer = result.scene.animation_stacks[0].layers[0]
    assert layer.get_curve(1, Channel.TRANSLATION_X).keys[0].value == 5.0


def test_find_skeletons_lists_each_rig_root():
    assert SkeletonExtractor().find_skeletons(two_rig_scene()) == [1, 5]


def test_face_z_runs_without_recentering():
    source = hero_scene()
    source.node(2).translation = (4.0, 0.0, 0.0)

    options = ExtractionOptions(recenter=False, rotate_to_face_z=True)
    result = SkeletonExtractor(options).extract(source, 1)

    assert result.scene.node(1).rotation[1] == pytest.approx(-90.0)
    layer = result.scene.animation_stacks[0].layers[0]
    assert layer.get_curve(1, Channel.TRANSLATION_X).keys[0].value == 5.0


def test_failed_extraction_releases_the_new_scene():
    extractor = SkeletonExtractor()

    with patch.object(extractor.transplanter, "transplant", side_effect=RuntimeError("boom")):
        with patch.object(SceneGraph, "release", autospec=True) as release:
            with pytest.raises(RuntimeError):
                extractor.extract(two_rig_scene(), 1)

    assert [call.args[0].name for call in release.call_args_list] == ["A"]
