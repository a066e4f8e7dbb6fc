# tests/test_pipeline.py
"""
EditPipeline 端到端测试：助手回复 -> 场景 / 文件修改 -> 撤销。
"""

import pytest
import yaml

from scenegraph.core.components import MeshRenderer, Rigidbody
from scenegraph.core.primitives import DEFAULT_MATERIAL
from scenegraph.core.scene import Scene
from scenegraph.core.values import Color, Vector3
from scenegraph.storage.scene_store import YamlSceneStore
from scenepilot.core.config import PilotConfig
from scenepilot.core.errors import ReentrantBatchError
from scenepilot.core.models import FileSnapshot
from scenepilot.core.pipeline import NO_SCENE_MESSAGE, SCENE_APPLIED_MESSAGE, EditPipeline

ENEMY_SOURCE = """using UnityEngine;

public class Enemy : MonoBehaviour
{
    public float speed = 2f;
}"""

PLAYER_SOURCE = """using UnityEngine;

public class Player : MonoBehaviour
{
    public float jumpHeight = 1.5f;
}"""


def _file_block(path, body, lang="csharp"):
    return f"Here you go:\n```{lang}:{path}\n{body}\n```\n"


# ------------------------------
# 文件修改
# ------------------------------

def test_new_file_then_undo_batch_deletes_it(pipeline, sample_scene, isolated_filesystem):
    messages = pipeline.apply_response(_file_block("Assets/Scripts/Enemy.cs", ENEMY_SOURCE))

    target = isolated_filesystem / "Assets/Scripts/Enemy.cs"
    assert target.read_text(encoding="utf-8") == ENEMY_SOURCE
    assert messages == [
        "Applied changes to Assets/Scripts/Enemy.cs",
        "Created new GameObject 'Enemy' for the script",
        "Attached script 'Enemy' to GameObject 'Enemy'",
    ]
    assert sample_scene.find("Enemy").get_component("Enemy") is not None

    undo_messages = pipeline.undo_last_batch()
    assert len(undo_messages) == 3
    assert undo_messages[-1] == "Undo: deleted new file 'Enemy.cs'"
    assert not target.exists()
    assert sample_scene.find("Enemy") is None
    assert len(pipeline.ledger) == 0


def test_existing_file_undo_restores_exact_bytes(pipeline, isolated_filesystem):
    target = isolated_filesystem / "Assets/Scripts/Helper.cs"
    original = b"static class Helper {}\r\n// keep me\r\n"
    target.write_bytes(original)

    messages = pipeline.apply_response(_file_block("Assets/Scripts/Helper.cs", "static class Helper { }"))
    assert messages == [
        "Applied changes to Assets/Scripts/Helper.cs",
        "Could not find script type 'Helper'. Make sure the script name matches the class name.",
    ]

    assert pipeline.undo_last() == "Undo: reverted code changes in 'Helper.cs'"
    assert target.read_bytes() == original


def test_file_edits_apply_without_a_scene(file_system, isolated_filesystem):
    pipeline = EditPipeline(Scene("Untitled"), file_system)
    messages = pipeline.apply_response(
        _file_block("Assets/Scripts/Enemy.cs", ENEMY_SOURCE)
        + "scene:Player/Rigidbody/mass=10\nscene:Create/Enemy/Rigidbody\n"
    )
    assert messages == ["Applied changes to Assets/Scripts/Enemy.cs", NO_SCENE_MESSAGE]
    assert (isolated_filesystem / "Assets/Scripts/Enemy.cs").exists()


def test_write_failure_is_reported_and_batch_continues(pipeline, sample_scene, isolated_filesystem):
    (isolated_filesystem / "Assets/Scripts/Locked.cs").mkdir()
    messages = pipeline.apply_response(
        _file_block("Assets/Scripts/Locked.cs", "class Locked {}") + "scene:Player/Rigidbody/mass=4\n"
    )
    assert messages[0].startswith("Error applying changes to Assets/Scripts/Locked.cs")
    assert messages[1:] == ["Set Player/Rigidbody/mass = 4", SCENE_APPLIED_MESSAGE]
    assert sample_scene.find("Player").get_component(Rigidbody).get("mass") == 4.0


def test_partial_edit_mode(sample_scene, file_system, isolated_filesystem):
    target = isolated_filesystem / "Assets/Scripts/Helper.cs"
    target.write_text("class Helper\n{\n    int a = 1;\n}\n", encoding="utf-8")
    config = PilotConfig(file_edit_mode="partial")
    pipeline = EditPipeline(sample_scene, file_system, config=config)

    pipeline.apply_response(_file_block("Assets/Scripts/Helper.cs", "class Helper\n{\n    int a = 2;\n}"))
    content = target.read_text(encoding="utf-8")
    assert "int a = 2;" in content
    assert "int a = 1;" not in content


LEGACY_BYTES = b"// caf\xe9\r\nclass Legacy {}\r\n"


def test_latin1_file_is_replaced_and_restored_byte_for_byte(pipeline, sample_scene, isolated_filesystem):
    target = isolated_filesystem / "Assets/Scripts/Legacy.cs"
    target.write_bytes(LEGACY_BYTES)

    messages = pipeline.apply_response(
        _file_block("Assets/Scripts/Legacy.cs", "class Legacy { }") + "scene:Player/Rigidbody/mass=5\n"
    )
    assert messages == [
        "Applied changes to Assets/Scripts/Legacy.cs",
        "Could not find script type 'Legacy'. Make sure the script name matches the class name.",
        "Set Player/Rigidbody/mass = 5",
        SCENE_APPLIED_MESSAGE,
    ]
    assert sample_scene.find("Player").get_component(Rigidbody).get("mass") == 5.0

    pipeline.undo_last_batch()
    assert target.read_bytes() == LEGACY_BYTES
    assert sample_scene.find("Player").get_component(Rigidbody).get("mass") == 1.0


def test_partial_edit_of_latin1_file_is_reported(sample_scene, file_system, isolated_filesystem):
    target = isolated_filesystem / "Assets/Scripts/Legacy.cs"
    target.write_bytes(LEGACY_BYTES)
    pipeline = EditPipeline(sample_scene, file_system, config=PilotConfig(file_edit_mode="partial"))

    messages = pipeline.apply_response(
        _file_block("Assets/Scripts/Legacy.cs", "class Legacy {}") + "scene:Player/Rigidbody/mass=5\n"
    )
    assert messages[0].startswith("Error applying changes to Assets/Scripts/Legacy.cs")
    assert messages[1:] == ["Set Player/Rigidbody/mass = 5", SCENE_APPLIED_MESSAGE]
    assert target.read_bytes() == LEGACY_BYTES
    assert len(pipeline.ledger) == 1


@pytest.mark.parametrize("path", ["../Outside.cs", "Assets/../../Outside.cs"])
def test_paths_outside_project_are_rejected(pipeline, sample_scene, isolated_filesystem, path):
    messages = pipeline.apply_response(_file_block(path, "class Outside {}") + "scene:Player/Rigidbody/mass=5\n")
    assert messages[0] == (
        f"Error applying changes to {path}: Path is outside the project root: {path}")
    assert messages[1:] == ["Set Player/Rigidbody/mass = 5", SCENE_APPLIED_MESSAGE]
    assert not (isolated_filesystem.parent / "Outside.cs").exists()


# ------------------------------
# 脚本挂载
# ------------------------------

def test_script_attached_to_existing_entity_with_autowire(pipeline, sample_scene):
    messages = pipeline.apply_response(_file_block("Assets/Scripts/Player.cs", PLAYER_SOURCE))
    player = sample_scene.find("Player")

    assert messages == [
        "Applied changes to Assets/Scripts/Player.cs",
        "Attached script 'Player' to GameObject 'Player'",
        "Added BoxCollider to Player for collision detection",
        "Added AudioSource to Player for audio playback",
        "Added Animator to Player for animations",
    ]
    assert player.get_component("Player").get("jumpHeight") is None
    assert player.get_component("BoxCollider") is not None


def test_script_already_attached(pipeline, sample_scene):
    pipeline.apply_response(_file_block("Assets/Scripts/Enemy.cs", ENEMY_SOURCE))
    messages = pipeline.apply_response(_file_block("Assets/Scripts/Enemy.cs", ENEMY_SOURCE))
    assert messages[-1] == "Script 'Enemy' is already attached to GameObject 'Enemy'"
    assert len(sample_scene.find("Enemy").components) == 2


def test_declined_entity_creation(sample_scene, file_system):
    pipeline = EditPipeline(sample_scene, file_system, confirm=lambda question: False)
    messages = pipeline.apply_response(_file_block("Assets/Scripts/Enemy.cs", ENEMY_SOURCE))
    assert messages[-1] == "Skipped creating GameObject for script 'Enemy'"
    assert sample_scene.find("Enemy") is None


def test_declined_attach(sample_scene, file_system):
    questions = []

    def confirm(question):
        questions.append(question)
        return False

    pipeline = EditPipeline(sample_scene, file_system, confirm=confirm)
    messages = pipeline.apply_response(_file_block("Assets/Scripts/Player.cs", PLAYER_SOURCE))
    assert questions == ["Would you like to attach the script 'Player' to GameObject 'Player'?"]
    assert messages[-1] == "Skipped attaching script 'Player' to GameObject 'Player'"
    assert sample_scene.find("Player").get_component("Player") is None


def test_autowire_can_be_disabled(sample_scene, file_system):
    pipeline = EditPipeline(sample_scene, file_system, config=PilotConfig(autowire_enabled=False))
    messages = pipeline.apply_response(_file_block("Assets/Scripts/Player.cs", PLAYER_SOURCE))
    assert messages[-1] == "Attached script 'Player' to GameObject 'Player'"
    assert sample_scene.find("Player").get_component("BoxCollider") is None


# ------------------------------
# 场景修改
# ------------------------------

def test_create_twice_reports_existing(pipeline, sample_scene):
    messages = pipeline.apply_response(
        "scene:Create/Player/AudioSource\nscene:Create/Player/AudioSource\n")
    assert messages == [
        "Added component UnityEngine.AudioSource to Player",
        "Component UnityEngine.AudioSource already exists on Player",
        SCENE_APPLIED_MESSAGE,
    ]
    audio = [c for c in sample_scene.find("Player").components if c.type_name == "AudioSource"]
    assert len(audio) == 1


def test_create_builtin_component_adds_nothing_else(pipeline, sample_scene):
    messages = pipeline.apply_response("scene:Create/Door/Animation")
    assert messages == ["Added component UnityEngine.Animation to Door", SCENE_APPLIED_MESSAGE]
    door = sample_scene.find("Door")
    assert [c.type_name for c in door.components] == ["Transform", "Animation"]
    assert door.get_component("Animator") is None


def test_create_new_entity_with_transform(pipeline, sample_scene):
    messages = pipeline.apply_response("```scene:Create/Enemy/Transform```")
    assert messages == ["Component UnityEngine.Transform already exists on Enemy"]
    assert sample_scene.find("Enemy") is not None
    pipeline.undo_last_batch()
    assert sample_scene.find("Enemy") is None


def test_conversion_failure_leaves_scene_untouched(pipeline, sample_scene):
    messages = pipeline.apply_response("scene:Player/Rigidbody/mass=heavy")
    assert messages == ["Error setting property: Cannot convert 'heavy' to float"]
    assert sample_scene.find("Player").get_component(Rigidbody).get("mass") == 1.0
    assert len(pipeline.ledger) == 0


def test_invalid_directive_is_reported(pipeline):
    messages = pipeline.apply_response("scene:Player/Rigidbody/mass=1=2")
    assert messages == ["Invalid scene edit format: Player/Rigidbody/mass=1=2"]


def test_unknown_targets_are_reported(pipeline):
    messages = pipeline.apply_response(
        "scene:Ghost/Rigidbody/mass=1\nscene:Player/Camera/fieldOfView=80\nscene:Create/Player/Jetpack")
    assert messages == [
        "GameObject not found: Ghost",
        "Component not found: Camera on Player or its children",
        "Component type not found: Jetpack",
    ]


def test_failure_does_not_stop_later_directives(pipeline, sample_scene):
    messages = pipeline.apply_response(
        "scene:Player/Rigidbody/mass=heavy\nscene:Player/Rigidbody/drag=0.5\n")
    assert messages[1:] == ["Set Player/Rigidbody/drag = 0.5", SCENE_APPLIED_MESSAGE]
    assert sample_scene.find("Player").get_component(Rigidbody).get("drag") == 0.5


def test_set_then_host_undo_restores(pipeline, sample_scene):
    body = sample_scene.find("Player").get_component(Rigidbody)
    pipeline.apply_response("scene:Player/Rigidbody/mass=10")
    assert body.get("mass") == 10.0

    messages = pipeline.on_host_undo()
    assert messages == ["Undo: reverted mass on Player"]
    assert body.get("mass") == 1.0


def test_one_undo_reverts_whole_response(pipeline, sample_scene):
    pipeline.apply_response("scene:Player/Rigidbody/mass=10\nscene:Player/Transform/position=(1,2,3)")
    pipeline.apply_response("scene:Cube/Material/color=(1,0,0)")

    pipeline.undo_last_batch()
    cube = sample_scene.find("Cube").get_component(MeshRenderer)
    assert cube.shared_material.name == "Shared"
    assert sample_scene.find("Player").get_component(Rigidbody).get("mass") == 10.0

    pipeline.undo_last_batch()
    player = sample_scene.find("Player")
    assert player.get_component(Rigidbody).get("mass") == 1.0
    assert player.transform.position == Vector3.ZERO


def test_material_color_isolated_from_shared(pipeline, sample_scene):
    pipeline.apply_response("scene:Cube/Material/color=(1,0,0)")
    cube = sample_scene.find("Cube").get_component(MeshRenderer).shared_material
    sphere = sample_scene.find("Sphere").get_component(MeshRenderer).shared_material
    assert cube.color == Color(1.0, 0.0, 0.0)
    assert sphere.color == Color.WHITE


def test_empty_ledger_undo(pipeline):
    assert pipeline.undo_last() == "Nothing to undo in scene 'Main'"


def test_host_undo_fallback(sample_scene, file_system):
    calls = []
    pipeline = EditPipeline(sample_scene, file_system, host_undo=lambda: calls.append(1))
    assert pipeline.undo_last_batch() == ["Undo: reverted last modifications in scene 'Main'"]
    assert calls == [1]


def test_reentrant_apply_is_rejected(pipeline):
    with pipeline.batches.batch("outer"):
        with pytest.raises(ReentrantBatchError):
            pipeline.apply_response("scene:Player/Rigidbody/mass=10")


def test_response_without_directives(pipeline, sample_scene):
    assert pipeline.apply_response("You could try lowering the gravity.") == []
    assert len(pipeline.ledger) == 0


# ------------------------------
# 自然语言创建
# ------------------------------

def test_default_spawn_position_is_in_front_of_camera(pipeline):
    assert pipeline.default_spawn_position() == Vector3(0.0, 1.0, -7.0)


def test_create_from_query(pipeline, sample_scene):
    messages = pipeline.create_from_query("create a red cube at (1, 2, 3) named Crate")
    assert messages == ["Created Cube 'Crate' at (1, 2, 3) with scale (1, 1, 1)"]

    crate = sample_scene.find("Crate")
    assert crate.transform.position == Vector3(1.0, 2.0, 3.0)
    material = crate.get_component(MeshRenderer).shared_material
    assert material.color == Color.RED
    assert sample_scene.materials[DEFAULT_MATERIAL].color == Color.WHITE
    assert crate.get_component("BoxCollider") is not None

    pipeline.undo_last_batch()
    assert sample_scene.find("Crate") is None


def test_create_from_query_uses_spawn_position(pipeline, sample_scene):
    messages = pipeline.create_from_query("spawn a sphere scale 2")
    assert messages == ["Created Sphere 'Sphere' at (0, 1, -7) with scale (2, 2, 2)"]


def test_create_from_query_without_primitive(pipeline):
    assert pipeline.create_from_query("create something nice") == [
        "Failed to identify primitive type in: create something nice",
    ]


def test_create_from_query_without_scene(file_system):
    pipeline = EditPipeline(Scene("Untitled"), file_system)
    assert pipeline.create_from_query("create a cube") == [NO_SCENE_MESSAGE]


# ------------------------------
# 保存场景
# ------------------------------

def test_has_unsaved_changes_tracks_last_batch(pipeline):
    assert not pipeline.has_unsaved_changes()
    pipeline.apply_response("scene:Player/Rigidbody/mass=3")
    assert pipeline.has_unsaved_changes()
    pipeline.apply_response(_file_block("Assets/Scripts/Helper.cs", "static class Helper {}"))
    assert not pipeline.has_unsaved_changes()


def test_save_scene_snapshot_is_part_of_last_batch(pipeline, sample_scene, isolated_filesystem):
    scene_file = isolated_filesystem / "Assets/Scenes/Main.yaml"
    scene_file.write_text("name: Main\nentities: []\n", encoding="utf-8")

    pipeline.apply_response("scene:Player/Rigidbody/mass=3")
    pipeline.save_scene(YamlSceneStore())

    saved = yaml.safe_load(scene_file.read_text(encoding="utf-8"))
    assert [e["name"] for e in saved["entities"]][:3] == ["Main Camera", "Directional Light", "Player"]
    snapshot = pipeline.ledger.peek()
    assert isinstance(snapshot, FileSnapshot)
    assert snapshot.batch_id == pipeline.ledger.last_batch

    pipeline.undo_last_batch()
    assert scene_file.read_text(encoding="utf-8") == "name: Main\nentities: []\n"
    assert sample_scene.find("Player").get_component(Rigidbody).get("mass") == 1.0
