# scenegraph/core/entity.py
"""场景图节点 (Entity，即 GameObject)"""

from typing import Iterator, List, Optional, Type, Union, TYPE_CHECKING

from .components import Component, Transform

if TYPE_CHECKING:
    from .scene import Scene

ComponentSpec = Union[Type[Component], str]


def _matches(component: Component, spec: ComponentSpec) -> bool:
    if isinstance(spec, str):
        return any(
            spec in (klass.__dict__.get("type_name"), klass.full_name())
            for klass in type(component).__mro__
            if issubclass(klass, Component)
        )
    return isinstance(component, spec)


class Entity:
    """
    场景中的一个命名节点。每个 Entity 创建时自带一个 Transform。
    """

    def __init__(self, name: str, scene: Optional["Scene"] = None, active: bool = True,
                 transform_type: Type[Transform] = Transform):
        self.name = name
        self.scene = scene
        self.active = active
        self.parent: Optional["Entity"] = None
        self.children: List["Entity"] = []
        self.components: List[Component] = []
        self.dirty = False
        self.add_component(transform_type)

    # ---- components ----

    @property
    def transform(self) -> Transform:
        return self.components[0]

    def add_component(self, component_type: Type[Component]) -> Component:
        component = component_type(self)
        self.components.append(component)
        return component

    def remove_component(self, component: Component) -> int:
        index = self.components.index(component)
        if index == 0:
            raise ValueError(f"Cannot remove the Transform of '{self.name}'")
        del self.components[index]
        return index

    def get_component(self, spec: ComponentSpec) -> Optional[Component]:
        for component in self.components:
            if _matches(component, spec):
                return component
        return None

    def get_component_in_children(self, spec: ComponentSpec) -> Optional[Component]:
        for entity in self.walk():
            component = entity.get_component(spec)
            if component is not None:
                return component
        return None

    # ---- hierarchy ----

    def set_parent(self, parent: Optional["Entity"], index: Optional[int] = None) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
        self.parent = parent
        if parent is not None:
            if index is None:
                parent.children.append(self)
            else:
                parent.children.insert(index, self)

    def walk(self) -> Iterator["Entity"]:
        """深度优先遍历自身及全部后代"""
        yield self
        for child in self.children:
            yield from child.walk()

    def find_child(self, path: str) -> Optional["Entity"]:
        """按相对路径 ("Arm/Hand") 查找子节点"""
        current: Optional[Entity] = self
        for part in path.split("/"):
            if current is None:
                return None
            current = next((c for c in current.children if c.name == part), None)
        return current

    @property
    def full_path(self) -> str:
        names = []
        node: Optional[Entity] = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return "/".join(reversed(names))

    def __repr__(self) -> str:
        return f"<Entity {self.full_path!r}>"
