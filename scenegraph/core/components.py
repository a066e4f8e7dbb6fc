# scenegraph/core/components.py
"""
组件类型与成员注册表。

每种组件类型通过 MEMBERS 声明一张封闭的可设置成员表 (名称、TypeTag、
property/field)，替代运行时反射。ComponentRegistry 按全名或短名查找组件类型。
"""

import copy
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TYPE_CHECKING

from .values import Color, Quaternion, TypeTag, Vector3

if TYPE_CHECKING:
    from .entity import Entity


class MemberKind(Enum):
    PROPERTY = "property"
    FIELD = "field"


@dataclass(frozen=True)
class Member:
    """组件上的一个可读写成员"""
    name: str
    type_tag: TypeTag
    kind: MemberKind = MemberKind.FIELD
    default: Any = None
    ref_type: Optional[str] = None  # COMPONENT_REF 的组件类型名 / ASSET_REF 的资源类型
    tooltip: str = ""
    getter: Optional[Callable[["Component"], Any]] = None
    setter: Optional[Callable[["Component", Any], None]] = None

    def get(self, component: "Component") -> Any:
        if self.getter is not None:
            return self.getter(component)
        return component.values.get(self.name)

    def set(self, component: "Component", value: Any) -> None:
        if self.setter is not None:
            self.setter(component, value)
        else:
            component.values[self.name] = value


def prop(name: str, type_tag: TypeTag, default: Any = None, **kwargs) -> Member:
    return Member(name, type_tag, MemberKind.PROPERTY, default, **kwargs)


def fld(name: str, type_tag: TypeTag, default: Any = None, **kwargs) -> Member:
    return Member(name, type_tag, MemberKind.FIELD, default, **kwargs)


_material_ids = itertools.count(1)


class Material:
    """共享材质。多个 MeshRenderer 可以引用同一个实例。"""

    def __init__(self, name: str, color: Color = Color.WHITE, shader: str = "Standard"):
        self.id = next(_material_ids)
        self.name = name
        self.color = color
        self.shader = shader

    def clone(self) -> "Material":
        """复制出一个独立实例，修改它不会影响原共享材质"""
        return Material(f"{self.name} (Instance)", self.color, self.shader)

    def __repr__(self) -> str:
        return f"Material({self.name!r}, color={self.color})"


class Component:
    """所有组件的基类"""
    type_name = "Component"
    namespace = "UnityEngine"
    MEMBERS: Tuple[Member, ...] = ()

    def __init__(self, entity: Optional["Entity"] = None):
        self.entity = entity
        self.values: Dict[str, Any] = {}
        self.dirty = False
        for member in self.members().values():
            if member.getter is None and member.default is not None:
                self.values[member.name] = copy.copy(member.default)

    @classmethod
    def full_name(cls) -> str:
        return f"{cls.namespace}.{cls.type_name}" if cls.namespace else cls.type_name

    @classmethod
    def members(cls) -> Dict[str, Member]:
        """
        合并继承链上的 MEMBERS，子类同名成员覆盖父类。
        同名时 property 优先于 field (按名查找时先查属性、再查字段)。
        """
        fields: Dict[str, Member] = {}
        properties: Dict[str, Member] = {}
        for klass in reversed(cls.__mro__):
            for member in klass.__dict__.get("MEMBERS", ()):
                target = properties if member.kind is MemberKind.PROPERTY else fields
                target[member.name] = member
        merged = dict(fields)
        merged.update(properties)
        return merged

    def find_member(self, name: str) -> Optional[Member]:
        return self.members().get(name)

    def get(self, name: str) -> Any:
        member = self.find_member(name)
        if member is None:
            raise KeyError(name)
        return member.get(self)

    def set(self, name: str, value: Any) -> None:
        member = self.find_member(name)
        if member is None:
            raise KeyError(name)
        member.set(self, value)

    def __repr__(self) -> str:
        owner = self.entity.name if self.entity else None
        return f"<{self.type_name} on {owner!r}>"


# ---------------- Built-in component types ----------------

class Transform(Component):
    type_name = "Transform"
    MEMBERS = (
        prop("position", TypeTag.VECTOR3, Vector3.ZERO),
        prop("rotation", TypeTag.QUATERNION, Quaternion.identity()),
        prop("localScale", TypeTag.VECTOR3, Vector3.ONE),
    )

    @property
    def position(self) -> Vector3:
        return self.values["position"]

    @property
    def rotation(self) -> Quaternion:
        return self.values["rotation"]

    @property
    def local_scale(self) -> Vector3:
        return self.values["localScale"]

    @property
    def forward(self) -> Vector3:
        return self.rotation.rotate(Vector3.FORWARD)


class RectTransform(Transform):
    type_name = "RectTransform"
    MEMBERS = (
        prop("sizeDelta", TypeTag.VECTOR2),
        prop("anchoredPosition", TypeTag.VECTOR2),
    )


class Behaviour(Component):
    type_name = "Behaviour"
    MEMBERS = (prop("enabled", TypeTag.BOOL, True),)


class MonoBehaviour(Behaviour):
    """用户脚本组件的基类；具体类型由 ComponentRegistry.register_script 生成"""
    type_name = "MonoBehaviour"


class Rigidbody(Component):
    type_name = "Rigidbody"
    MEMBERS = (
        prop("mass", TypeTag.FLOAT, 1.0),
        prop("drag", TypeTag.FLOAT, 0.0),
        prop("angularDrag", TypeTag.FLOAT, 0.05),
        prop("useGravity", TypeTag.BOOL, True),
        prop("isKinematic", TypeTag.BOOL, False),
        prop("constraints", TypeTag.STRING, "None"),
    )


class Collider(Component):
    type_name = "Collider"
    MEMBERS = (
        prop("enabled", TypeTag.BOOL, True),
        prop("isTrigger", TypeTag.BOOL, False),
    )


class BoxCollider(Collider):
    type_name = "BoxCollider"
    MEMBERS = (
        prop("center", TypeTag.VECTOR3, Vector3.ZERO),
        prop("size", TypeTag.VECTOR3, Vector3.ONE),
    )


class SphereCollider(Collider):
    type_name = "SphereCollider"
    MEMBERS = (
        prop("center", TypeTag.VECTOR3, Vector3.ZERO),
        prop("radius", TypeTag.FLOAT, 0.5),
    )


class CapsuleCollider(Collider):
    type_name = "CapsuleCollider"
    MEMBERS = (
        prop("center", TypeTag.VECTOR3, Vector3.ZERO),
        prop("radius", TypeTag.FLOAT, 0.5),
        prop("height", TypeTag.FLOAT, 2.0),
    )


class MeshCollider(Collider):
    type_name = "MeshCollider"
    MEMBERS = (prop("convex", TypeTag.BOOL, False),)


class MeshFilter(Component):
    type_name = "MeshFilter"
    MEMBERS = (prop("mesh", TypeTag.STRING, ""),)


class Renderer(Component):
    type_name = "Renderer"
    MEMBERS = (
        prop("enabled", TypeTag.BOOL, True),
        prop("sharedMaterial", TypeTag.MATERIAL),
    )

    @property
    def shared_material(self) -> Optional[Material]:
        return self.values.get("sharedMaterial")

    @shared_material.setter
    def shared_material(self, material: Optional[Material]) -> None:
        self.values["sharedMaterial"] = material


class MeshRenderer(Renderer):
    type_name = "MeshRenderer"


class AudioSource(Behaviour):
    type_name = "AudioSource"
    MEMBERS = (
        prop("volume", TypeTag.FLOAT, 1.0),
        prop("pitch", TypeTag.FLOAT, 1.0),
        prop("loop", TypeTag.BOOL, False),
        prop("playOnAwake", TypeTag.BOOL, True),
        prop("clip", TypeTag.STRING, ""),
    )


class AudioListener(Behaviour):
    type_name = "AudioListener"


class Camera(Behaviour):
    type_name = "Camera"
    MEMBERS = (
        prop("fieldOfView", TypeTag.FLOAT, 60.0),
        prop("nearClipPlane", TypeTag.FLOAT, 0.3),
        prop("farClipPlane", TypeTag.FLOAT, 1000.0),
        prop("orthographic", TypeTag.BOOL, False),
        prop("backgroundColor", TypeTag.COLOR, Color(0.19, 0.30, 0.47)),
    )


class Light(Behaviour):
    type_name = "Light"
    MEMBERS = (
        prop("type", TypeTag.STRING, "Directional"),
        prop("intensity", TypeTag.FLOAT, 1.0),
        prop("range", TypeTag.FLOAT, 10.0),
        prop("color", TypeTag.COLOR, Color.WHITE),
    )


class Animator(Behaviour):
    type_name = "Animator"
    MEMBERS = (
        prop("speed", TypeTag.FLOAT, 1.0),
        prop("applyRootMotion", TypeTag.BOOL, False),
    )


class Animation(Behaviour):
    type_name = "Animation"
    MEMBERS = (prop("playAutomatically", TypeTag.BOOL, True),)


class ParticleSystem(Component):
    type_name = "ParticleSystem"
    MEMBERS = (
        fld("duration", TypeTag.FLOAT, 5.0),
        fld("loop", TypeTag.BOOL, True),
        fld("maxParticles", TypeTag.INT, 1000),
    )


class Canvas(Behaviour):
    type_name = "Canvas"
    MEMBERS = (prop("sortingOrder", TypeTag.INT, 0),)


class CanvasGroup(Behaviour):
    type_name = "CanvasGroup"
    MEMBERS = (
        prop("alpha", TypeTag.FLOAT, 1.0),
        prop("interactable", TypeTag.BOOL, True),
    )


class Text(Behaviour):
    type_name = "Text"
    namespace = "UnityEngine.UI"
    MEMBERS = (
        prop("text", TypeTag.STRING, ""),
        prop("fontSize", TypeTag.INT, 14),
        prop("color", TypeTag.COLOR, Color.BLACK),
    )


class Image(Behaviour):
    type_name = "Image"
    namespace = "UnityEngine.UI"
    MEMBERS = (
        prop("color", TypeTag.COLOR, Color.WHITE),
        prop("raycastTarget", TypeTag.BOOL, True),
    )


class Button(Behaviour):
    type_name = "Button"
    namespace = "UnityEngine.UI"
    MEMBERS = (prop("interactable", TypeTag.BOOL, True),)


BUILTIN_COMPONENTS: List[Type[Component]] = [
    Transform, RectTransform, Rigidbody,
    Collider, BoxCollider, SphereCollider, CapsuleCollider, MeshCollider,
    MeshFilter, Renderer, MeshRenderer,
    AudioSource, AudioListener, Camera, Light, Animator, Animation,
    ParticleSystem, Canvas, CanvasGroup, Text, Image, Button,
]


# ---------------- Registry ----------------

@dataclass
class ScriptField:
    """脚本组件上一个可序列化字段的声明"""
    name: str
    type_tag: TypeTag
    ref_type: Optional[str] = None
    tooltip: str = ""


@dataclass
class ScriptSchema:
    """脚本类型声明：类名 + 可序列化字段"""
    name: str
    fields: List[ScriptField] = field(default_factory=list)
    base: str = "MonoBehaviour"


class ComponentRegistry:
    """按全名 / 短名查找组件类型"""

    def __init__(self, component_types: Optional[List[Type[Component]]] = None):
        self._by_full_name: Dict[str, Type[Component]] = {}
        self._by_short_name: Dict[str, Type[Component]] = {}
        self._scripts: Dict[str, ScriptSchema] = {}
        for component_type in component_types or []:
            self.register(component_type)

    @classmethod
    def default(cls) -> "ComponentRegistry":
        return cls(BUILTIN_COMPONENTS)

    def register(self, component_type: Type[Component]) -> Type[Component]:
        self._by_full_name[component_type.full_name()] = component_type
        self._by_short_name.setdefault(component_type.type_name, component_type)
        return component_type

    def register_script(self, schema: ScriptSchema) -> Type[Component]:
        """根据 ScriptSchema 生成一个 MonoBehaviour 子类并注册；重复注册会替换旧定义"""
        members = tuple(
            fld(f.name, f.type_tag, ref_type=f.ref_type, tooltip=f.tooltip)
            for f in schema.fields
        )
        script_type = type(schema.name, (MonoBehaviour,), {
            "type_name": schema.name,
            "namespace": "",
            "MEMBERS": members,
        })
        self._by_full_name[script_type.full_name()] = script_type
        self._by_short_name[schema.name] = script_type
        self._scripts[schema.name] = schema
        return script_type

    def lookup(self, name: str) -> Optional[Type[Component]]:
        return self._by_full_name.get(name) or self._by_short_name.get(name)

    def is_script(self, name: str) -> bool:
        return name in self._scripts

    def scripts(self) -> List[ScriptSchema]:
        return list(self._scripts.values())

    def names(self) -> List[str]:
        return sorted(self._by_full_name)
