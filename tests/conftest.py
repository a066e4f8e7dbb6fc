# tests/conftest.py
"""
ScenePilot 测试配置和共享 fixtures
使用 pytest fixtures 来管理测试依赖和状态。
"""

import os
import tempfile
from pathlib import Path

import pytest

from scenegraph.core.components import (
    Camera, Light, Material, MeshFilter, MeshRenderer, Rigidbody,
)
from scenegraph.core.scene import Scene
from scenegraph.core.values import Color, Vector3
from scenegraph.storage.file_system import LocalFileSystem
from scenepilot.core.models import ChatSession
from scenepilot.core.pipeline import EditPipeline
from scenepilot.utils.console import set_verbose

SCENE_PATH = "Assets/Scenes/Main.yaml"


# --- Pytest Fixtures ---

@pytest.fixture(scope="function")
def isolated_filesystem():
    """
    提供一个隔离的临时文件系统。
    在测试前后自动创建和清理临时目录，并切换当前工作目录。
    """
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir).resolve()
        original_cwd = os.getcwd()
        os.chdir(temp_path)

        (temp_path / "Assets" / "Scripts").mkdir(parents=True, exist_ok=True)
        (temp_path / "Assets" / "Scenes").mkdir(parents=True, exist_ok=True)

        yield temp_path

        os.chdir(original_cwd)  # 测试结束后恢复原始目录


@pytest.fixture(autouse=True)
def quiet_console():
    """trace 输出是全局开关，每个测试都从关闭状态开始"""
    set_verbose(False)
    yield
    set_verbose(False)


@pytest.fixture
def file_system(isolated_filesystem):
    return LocalFileSystem(isolated_filesystem)


@pytest.fixture
def sample_scene():
    """
    Main Camera (Camera)          位于 (0, 1, -10)
    Directional Light (Light)
    Player (Rigidbody)
      └─ Arm (MeshRenderer)
    Cube / Sphere                 共用材质 "Shared"
    """
    scene = Scene("Main", path=SCENE_PATH)

    camera = scene.create_entity("Main Camera")
    camera.add_component(Camera)
    camera.transform.set("position", Vector3(0.0, 1.0, -10.0))

    light = scene.create_entity("Directional Light")
    light.add_component(Light)

    player = scene.create_entity("Player")
    player.add_component(Rigidbody)
    arm = scene.create_entity("Arm", parent=player)
    arm.add_component(MeshRenderer).shared_material = scene.add_material(Material("ArmMat"))

    shared = scene.add_material(Material("Shared", Color.WHITE))
    for name in ("Cube", "Sphere"):
        entity = scene.create_entity(name)
        entity.add_component(MeshFilter).set("mesh", name)
        entity.add_component(MeshRenderer).shared_material = shared

    scene.dirty = False
    return scene


@pytest.fixture
def session():
    return ChatSession()


@pytest.fixture
def pipeline(sample_scene, file_system, session):
    """一个挂在示例场景上的流水线，确认对话一律回答 yes"""
    return EditPipeline(sample_scene, file_system, session=session)


# --- CLI 测试的特殊 Fixture ---
@pytest.fixture
def runner():
    """提供一个 Click CliRunner 实例用于测试 CLI 命令"""
    from click.testing import CliRunner
    return CliRunner()
