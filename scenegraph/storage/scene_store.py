# scenegraph/storage/scene_store.py
"""
YAML 场景文件的读写。

文件结构：
    name: Main
    materials: [{name, color: [r, g, b, a], shader}]
    scripts:   [{name, fields: [{name, type, ref, tooltip}]}]
    entities:  [{name, active, components: [{type, <member>: <value>}], children: [...]}]

引用类成员 (entity / component / asset) 在所有节点建立后再解析。
写入时先获取文件锁，再以临时文件替换的方式原子落盘。
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from ..core.components import (
    Component, ComponentRegistry, Material, Member, ScriptField, ScriptSchema, Transform,
)
from ..core.entity import Entity
from ..core.interfaces import AssetRef
from ..core.scene import Scene
from ..core.values import Color, Quaternion, TypeTag, Vector2, Vector3
from .file_lock import FileLock, atomic_write_text


class SceneFormatError(ValueError):
    """场景文件内容不合法"""
    pass


_VECTOR_TYPES = {
    TypeTag.VECTOR2: Vector2,
    TypeTag.VECTOR3: Vector3,
    TypeTag.COLOR: Color,
    TypeTag.QUATERNION: Quaternion,
}

_SCALAR_TYPES = {
    TypeTag.FLOAT: float,
    TypeTag.INT: int,
    TypeTag.BOOL: bool,
    TypeTag.STRING: str,
}


def encode_value(member: Member, value: Any) -> Any:
    if value is None:
        return None
    tag = member.type_tag
    if tag in _VECTOR_TYPES:
        return list(value.as_tuple())
    if tag is TypeTag.MATERIAL:
        return value.name
    if tag is TypeTag.ENTITY_REF:
        return value.full_path
    if tag is TypeTag.COMPONENT_REF:
        return {"entity": value.entity.full_path, "component": value.type_name}
    if tag is TypeTag.ASSET_REF:
        return value.path
    return value


class YamlSceneStore:
    """场景 <-> YAML 文档"""

    def __init__(self, registry: Optional[ComponentRegistry] = None):
        self.registry = registry

    # ---- load ----

    def load(self, path: Union[str, Path]) -> Scene:
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise SceneFormatError(f"Invalid scene file {path}: {e}") from e
        return self.from_dict(data, path=str(path))

    def from_dict(self, data: Dict[str, Any], path: Optional[str] = None) -> Scene:
        if not isinstance(data, dict):
            raise SceneFormatError("Scene document must be a mapping")

        registry = self.registry or ComponentRegistry.default()
        for script in data.get("scripts") or []:
            registry.register_script(self._script_from_dict(script))

        scene = Scene(name=data.get("name", "Untitled"), path=path or data.get("path"), registry=registry)
        for item in data.get("materials") or []:
            color = item.get("color")
            scene.add_material(Material(
                item["name"],
                Color(*color) if color else Color.WHITE,
                item.get("shader", "Standard"),
            ))

        pending: List[Tuple[Component, Member, Any]] = []
        for item in data.get("entities") or []:
            self._entity_from_dict(scene, item, None, pending)
        for component, member, raw in pending:
            member.set(component, self._resolve_reference(scene, member, raw))

        scene.dirty = False
        return scene

    def _script_from_dict(self, item: Dict[str, Any]) -> ScriptSchema:
        fields = []
        for f in item.get("fields") or []:
            try:
                tag = TypeTag(f.get("type", "string"))
            except ValueError:
                raise SceneFormatError(f"Unknown field type '{f.get('type')}' in script {item.get('name')}")
            fields.append(ScriptField(f["name"], tag, ref_type=f.get("ref"), tooltip=f.get("tooltip", "")))
        return ScriptSchema(name=item["name"], fields=fields)

    def _entity_from_dict(self, scene: Scene, item: Dict[str, Any], parent: Optional[Entity],
                          pending: List[Tuple[Component, Member, Any]]) -> Entity:
        if "name" not in item:
            raise SceneFormatError(f"Entity without a name: {item}")
        entity = scene.create_entity(item["name"], parent=parent)
        entity.active = item.get("active", True)

        for comp_data in item.get("components") or []:
            comp_data = dict(comp_data)
            type_name = comp_data.pop("type", None)
            component_type = scene.registry.lookup(type_name) if type_name else None
            if component_type is None:
                raise SceneFormatError(f"Unknown component type '{type_name}' on {entity.full_path}")

            if issubclass(component_type, Transform):
                if type(entity.transform) is not component_type:
                    entity.components[0] = component_type(entity)
                component = entity.transform
            else:
                component = entity.add_component(component_type)

            for name, raw in comp_data.items():
                member = component.find_member(name)
                if member is None:
                    raise SceneFormatError(f"Unknown member '{name}' on {type_name} of {entity.full_path}")
                if raw is None:
                    continue
                if member.type_tag.is_reference:
                    pending.append((component, member, raw))
                else:
                    member.set(component, self._decode(scene, member, raw))

        for child in item.get("children") or []:
            self._entity_from_dict(scene, child, entity, pending)
        return entity

    def _decode(self, scene: Scene, member: Member, raw: Any) -> Any:
        tag = member.type_tag
        try:
            if tag in _VECTOR_TYPES:
                return _VECTOR_TYPES[tag](*[float(v) for v in raw])
            if tag in _SCALAR_TYPES:
                return _SCALAR_TYPES[tag](raw)
        except (TypeError, ValueError) as e:
            raise SceneFormatError(f"Bad value for {member.name}: {raw!r} ({e})") from e
        if tag is TypeTag.MATERIAL:
            material = scene.materials.get(raw)
            return material or scene.add_material(Material(raw))
        return raw

    def _resolve_reference(self, scene: Scene, member: Member, raw: Any) -> Any:
        tag = member.type_tag
        if tag is TypeTag.ASSET_REF:
            return AssetRef(name=Path(raw).stem, path=raw, asset_type=member.ref_type or "prefab")
        if tag is TypeTag.ENTITY_REF:
            target = scene.find(raw)
            if target is None:
                raise SceneFormatError(f"Referenced entity not found: {raw}")
            return target
        # COMPONENT_REF
        target = scene.find(raw.get("entity", "")) if isinstance(raw, dict) else None
        component = target.get_component(raw.get("component", "")) if target else None
        if component is None:
            raise SceneFormatError(f"Referenced component not found: {raw}")
        return component

    # ---- save ----

    def to_dict(self, scene: Scene) -> Dict[str, Any]:
        # 先序列化实体：克隆出的材质会在这一步补进材质表
        entities = [self._entity_to_dict(scene, e) for e in scene.roots]
        data: Dict[str, Any] = {"name": scene.name}
        if scene.materials:
            data["materials"] = [
                {"name": m.name, "color": list(m.color.as_tuple()), "shader": m.shader}
                for m in scene.materials.values()
            ]
        scripts = scene.registry.scripts()
        if scripts:
            data["scripts"] = [self._script_to_dict(s) for s in scripts]
        data["entities"] = entities
        return data

    def _script_to_dict(self, schema: ScriptSchema) -> Dict[str, Any]:
        fields = []
        for f in schema.fields:
            item = {"name": f.name, "type": f.type_tag.value}
            if f.ref_type:
                item["ref"] = f.ref_type
            if f.tooltip:
                item["tooltip"] = f.tooltip
            fields.append(item)
        return {"name": schema.name, "fields": fields}

    def _entity_to_dict(self, scene: Scene, entity: Entity) -> Dict[str, Any]:
        components = []
        for component in entity.components:
            item = {"type": component.type_name}
            for name, member in component.members().items():
                value = member.get(component)
                if value is None:
                    continue
                if member.type_tag is TypeTag.MATERIAL:
                    known = scene.materials.get(value.name)
                    if known is not value:
                        if known is not None:
                            value.name = f"{value.name} #{value.id}"
                        scene.add_material(value)
                item[name] = encode_value(member, value)
            components.append(item)

        data: Dict[str, Any] = {"name": entity.name, "active": entity.active, "components": components}
        if entity.children:
            data["children"] = [self._entity_to_dict(scene, c) for c in entity.children]
        return data

    def dumps(self, scene: Scene) -> str:
        return yaml.safe_dump(self.to_dict(scene), sort_keys=False, allow_unicode=True)

    def save(self, scene: Scene, path: Optional[Union[str, Path]] = None) -> Path:
        target = Path(path or scene.path)
        text = self.dumps(scene)
        with FileLock(target):
            atomic_write_text(target, text)
        scene.path = str(target)
        scene.dirty = False
        return target
