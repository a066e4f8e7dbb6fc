# scenegraph/core/scene.py
"""内存中的场景图实现"""

from typing import Dict, Iterator, List, Optional, Type

from .components import Component, ComponentRegistry, Material
from .entity import Entity
from .interfaces import IScene


class Scene(IScene):
    """
    一个打开的场景：根节点列表、组件注册表和共享材质表。

    revision 在每次 mark_dirty 时递增，供场景摘要等派生数据判断是否失效。
    """

    def __init__(self, name: str = "Untitled", path: Optional[str] = None,
                 registry: Optional[ComponentRegistry] = None):
        self.name = name
        self.path = path
        self.registry = registry or ComponentRegistry.default()
        self.roots: List[Entity] = []
        self.materials: Dict[str, Material] = {}
        self.dirty = False
        self.revision = 0

    @property
    def is_loaded(self) -> bool:
        return bool(self.path)

    # ---- traversal ----

    def iter_entities(self) -> Iterator[Entity]:
        for root in list(self.roots):
            yield from root.walk()

    def count(self) -> int:
        return sum(1 for _ in self.iter_entities())

    def find(self, name: str) -> Optional[Entity]:
        if "/" in name:
            head, _, rest = name.lstrip("/").partition("/")
            for root in self.roots:
                if root.name == head:
                    found = root.find_child(rest) if rest else root
                    if found is not None:
                        return found
            return None
        for entity in self.iter_entities():
            if entity.name == name:
                return entity
        return None

    def find_in_hierarchies(self, name: str) -> Optional[Entity]:
        for entity in self.iter_entities():
            child = entity.find_child(name)
            if child is not None:
                return child
        return None

    def find_component_of_type(self, component_type: Type[Component]) -> Optional[Component]:
        for entity in self.iter_entities():
            component = entity.get_component(component_type)
            if component is not None:
                return component
        return None

    # ---- mutation ----

    def create_entity(self, name: str, parent: Optional[Entity] = None) -> Entity:
        entity = Entity(name, scene=self)
        if parent is None:
            self.roots.append(entity)
        else:
            entity.set_parent(parent)
        return entity

    def destroy_entity(self, entity: Entity) -> None:
        if entity.parent is None:
            self.roots.remove(entity)
        else:
            entity.set_parent(None)

    def add_material(self, material: Material) -> Material:
        self.materials[material.name] = material
        return material

    def mark_dirty(self, obj=None) -> None:
        self.dirty = True
        self.revision += 1
        if obj is not None:
            obj.dirty = True
