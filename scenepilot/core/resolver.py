# scenepilot/core/resolver.py
"""
目标定位：把指令中的路径 / 名称解析为文件路径或 (Entity, Component)。
"""

from pathlib import Path
from typing import Dict, Optional, Tuple, Type

from scenegraph.core.components import Component, MeshRenderer
from scenegraph.core.entity import Entity
from scenegraph.core.interfaces import IFileSystem, IScene

from ..utils.console import trace
from .errors import ApplicationError, ResolutionError

# 常用组件短名 -> 全名
COMPONENT_ALIASES: Dict[str, str] = {
    "Rigidbody": "UnityEngine.Rigidbody",
    "BoxCollider": "UnityEngine.BoxCollider",
    "SphereCollider": "UnityEngine.SphereCollider",
    "CapsuleCollider": "UnityEngine.CapsuleCollider",
    "MeshCollider": "UnityEngine.MeshCollider",
    "MeshRenderer": "UnityEngine.MeshRenderer",
    "MeshFilter": "UnityEngine.MeshFilter",
    "Material": "UnityEngine.Material",
    "AudioSource": "UnityEngine.AudioSource",
    "AudioListener": "UnityEngine.AudioListener",
    "Camera": "UnityEngine.Camera",
    "Light": "UnityEngine.Light",
    "Animator": "UnityEngine.Animator",
    "Animation": "UnityEngine.Animation",
    "ParticleSystem": "UnityEngine.ParticleSystem",
    "Text": "UnityEngine.UI.Text",
    "Image": "UnityEngine.UI.Image",
    "Button": "UnityEngine.UI.Button",
    "Canvas": "UnityEngine.Canvas",
    "CanvasGroup": "UnityEngine.CanvasGroup",
    "RectTransform": "UnityEngine.RectTransform",
    "Transform": "UnityEngine.Transform",
}

MATERIAL_ALIAS = "Material"


class ObjectResolver:
    """在文件系统和当前场景中定位指令目标"""

    def __init__(self, scene: Optional[IScene], file_system: IFileSystem,
                 aliases: Optional[Dict[str, str]] = None):
        self.scene = scene
        self.file_system = file_system
        self.aliases = dict(COMPONENT_ALIASES)
        if aliases:
            self.aliases.update(aliases)

    def resolve_file_target(self, path: str) -> Path:
        """
        解析为项目内路径；文件是否存在由调用方检查。

        Raises:
            ApplicationError: 路径位于项目根目录之外。
        """
        try:
            return self.file_system.resolve(path)
        except ValueError as e:
            raise ApplicationError(f"Error applying changes to {path}: {e}") from e

    def full_type_name(self, component_name: str) -> str:
        return self.aliases.get(component_name, component_name)

    def resolve_component_type(self, component_name: str) -> Type[Component]:
        full_name = self.full_type_name(component_name)
        component_type = self.scene.registry.lookup(full_name)
        if component_type is None:
            raise ResolutionError(f"Component type not found: {full_name}")
        return component_type

    def find_entity(self, name: str) -> Optional[Entity]:
        """先按名称全局查找，再在各节点的子层级中按相对路径查找"""
        entity = self.scene.find(name)
        if entity is None:
            entity = self.scene.find_in_hierarchies(name)
        return entity

    def resolve_entity(self, name: str, create: bool = False) -> Tuple[Entity, bool]:
        """
        Returns:
            (entity, created)。created 为 True 表示节点是本次新建的。
        """
        entity = self.find_entity(name)
        if entity is not None:
            trace("Scene Edit", f"Found GameObject: {entity.name} at path {entity.full_path}")
            return entity, False
        if not create:
            raise ResolutionError(f"GameObject not found: {name}")
        entity = self.scene.create_entity(name)
        trace("Scene Edit", f"Created new GameObject: {name}")
        return entity, True

    def resolve_scene_target(self, object_path: str, component_name: str,
                             create: bool = False) -> Tuple[Entity, Component]:
        """
        定位 (Entity, Component)。组件在节点自身及其子节点中深度优先查找；
        "Material" 指向第一个 MeshRenderer。
        """
        entity, _ = self.resolve_entity(object_path, create=create)

        if component_name == MATERIAL_ALIAS:
            renderer = entity.get_component_in_children(MeshRenderer)
            if renderer is None:
                raise ResolutionError(f"MeshRenderer not found on {object_path} or its children")
            return entity, renderer

        component_type = self.resolve_component_type(component_name)
        component = entity.get_component_in_children(component_type)
        if component is None:
            raise ResolutionError(f"Component not found: {component_name} on {object_path} or its children")
        if component.entity is not entity:
            trace("Scene Edit", f"Found component in child: {component.entity.name}")
        return entity, component
