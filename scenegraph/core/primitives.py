# scenegraph/core/primitives.py
"""内置几何体 (Cube / Sphere / ...) 的创建"""

from typing import Dict, Optional, Tuple, Type

from .components import (
    BoxCollider, CapsuleCollider, Collider, Material, MeshCollider,
    MeshFilter, MeshRenderer, SphereCollider,
)
from .entity import Entity
from .scene import Scene

DEFAULT_MATERIAL = "Default-Material"

# 几何体 -> (网格名, 碰撞体类型)
PRIMITIVES: Dict[str, Tuple[str, Type[Collider]]] = {
    "Cube": ("Cube", BoxCollider),
    "Sphere": ("Sphere", SphereCollider),
    "Cylinder": ("Cylinder", CapsuleCollider),
    "Capsule": ("Capsule", CapsuleCollider),
    "Plane": ("Plane", MeshCollider),
    "Quad": ("Quad", MeshCollider),
}


def default_material(scene: Scene) -> Material:
    material = scene.materials.get(DEFAULT_MATERIAL)
    if material is None:
        material = scene.add_material(Material(DEFAULT_MATERIAL))
    return material


def create_primitive(scene: Scene, primitive: str, name: Optional[str] = None,
                     parent: Optional[Entity] = None) -> Entity:
    """
    创建带 MeshFilter、MeshRenderer 和匹配碰撞体的几何体节点。
    MeshRenderer 引用场景的共享默认材质。
    """
    if primitive not in PRIMITIVES:
        raise ValueError(f"Unknown primitive type: {primitive}")
    mesh, collider_type = PRIMITIVES[primitive]

    entity = scene.create_entity(name or primitive, parent=parent)
    entity.add_component(MeshFilter).set("mesh", mesh)
    renderer = entity.add_component(MeshRenderer)
    renderer.shared_material = default_material(scene)
    entity.add_component(collider_type)
    return entity
