# scenegraph/__init__.py
"""
SceneGraph 库 - 可编辑项目的抽象模型：场景图、组件注册表、文件系统与资源索引。
"""

from .core.components import ComponentRegistry, Material, ScriptField, ScriptSchema
from .core.entity import Entity
from .core.scene import Scene
from .core.values import Color, Quaternion, TypeTag, Vector2, Vector3
from .storage.asset_index import ProjectAssetIndex
from .storage.file_system import LocalFileSystem
from .storage.scene_store import SceneFormatError, YamlSceneStore

__all__ = [
    'ComponentRegistry', 'Material', 'ScriptField', 'ScriptSchema',
    'Entity', 'Scene',
    'Color', 'Quaternion', 'TypeTag', 'Vector2', 'Vector3',
    'ProjectAssetIndex', 'LocalFileSystem', 'SceneFormatError', 'YamlSceneStore',
]
