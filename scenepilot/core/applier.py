# scenepilot/core/applier.py
"""
修改应用 (Edit Applier)

每个成功的修改都会：标记对象为脏、向会话追加一条系统消息、
并在返回前向撤销记录压入恰好一条记录。
"""

from typing import Any, Callable, List, Optional

from scenegraph.core.components import Component, Material, MeshRenderer, Transform
from scenegraph.core.entity import Entity
from scenegraph.core.interfaces import IFileSystem
from scenegraph.core.values import Quaternion, TypeTag

from ..utils.console import trace
from .autowire import AutoWirer
from .coercion import coerce
from .errors import ApplicationError, ResolutionError
from .ledger import UndoLedger
from .models import ChatSession
from .resolver import MATERIAL_ALIAS, ObjectResolver

EXISTING_CODE_MARKER = "existing code"


def merge_partial_edit(original: str, edit: str) -> str:
    """
    把片段式修改合并进原文件。

    以片段中第一行非空、非 // 注释的代码为锚点，在原文件中找到内容相同的行；
    用片段中从锚点到下一个 "existing code" 标记之前的部分，替换原文件中
    从锚点到下一个标记之前的部分。

    Raises:
        ApplicationError: 片段中没有有效代码，或原文件中找不到锚点。
    """
    original_lines = original.split("\n")
    edit_lines = edit.split("\n")

    edit_start = next(
        (i for i, line in enumerate(edit_lines)
         if line.strip() and not line.strip().startswith("//")),
        None,
    )
    if edit_start is None:
        raise ApplicationError("No valid edit content found in the provided code block")

    anchor = edit_lines[edit_start].strip()
    original_start = next((i for i, line in enumerate(original_lines) if line.strip() == anchor), None)
    if original_start is None:
        raise ApplicationError("Could not find the edit location in the original file")

    edit_end = next(
        (i for i in range(edit_start + 1, len(edit_lines)) if EXISTING_CODE_MARKER in edit_lines[i]),
        len(edit_lines),
    )
    original_end = next(
        (i for i in range(original_start + 1, len(original_lines))
         if EXISTING_CODE_MARKER in original_lines[i]),
        len(original_lines),
    )

    merged = original_lines[:original_start] + edit_lines[edit_start:edit_end] + original_lines[original_end:]
    return "\n".join(merged)


class EditApplier:

    def __init__(self, resolver: ObjectResolver, ledger: UndoLedger, session: ChatSession,
                 file_system: IFileSystem, autowirer: Optional[AutoWirer] = None):
        self.resolver = resolver
        self.ledger = ledger
        self.session = session
        self.file_system = file_system
        self.autowirer = autowirer

    @property
    def scene(self):
        return self.resolver.scene

    # ------------------------------
    # 文件
    # ------------------------------

    def _write_file(self, path: str, content: str) -> None:
        self.resolver.resolve_file_target(path)
        prior = self.file_system.read_bytes(path) if self.file_system.exists(path) else None
        try:
            self.file_system.write_text(path, content)
        except OSError as e:
            raise ApplicationError(f"Error applying changes to {path}: {e}") from e
        self.ledger.record_file(path, prior)
        self.file_system.refresh()

    def apply_file_edit(self, path: str, new_content: str) -> bool:
        """整文件替换；文件不存在时创建"""
        trace("Undo System", f"Starting file edit: {path}")
        self._write_file(path, new_content)
        self.session.system(f"Applied changes to {path}")
        return True

    def apply_partial_edit(self, path: str, edit_content: str) -> bool:
        """片段合并；目标文件不存在时退化为整文件写入"""
        self.resolver.resolve_file_target(path)
        if not self.file_system.exists(path):
            return self.apply_file_edit(path, edit_content)
        try:
            original = self.file_system.read_text(path)
        except UnicodeDecodeError as e:
            raise ApplicationError(f"Error applying changes to {path}: {e}") from e
        merged = merge_partial_edit(original, edit_content)
        self._write_file(path, merged)
        self.session.system(f"Applied changes to {path}")
        return True

    # ------------------------------
    # 场景：记录可撤销的修改
    # ------------------------------

    def _record_member(self, component: Component, name: str, value: Any, description: str) -> None:
        member = component.find_member(name)
        old = member.get(component)
        member.set(component, value)
        self.scene.mark_dirty(component)

        def inverse():
            member.set(component, old)
            self.scene.mark_dirty(component)

        self.ledger.record_mutation(description, inverse)

    def _record_material(self, renderer: MeshRenderer, material: Material, description: str) -> None:
        old = renderer.shared_material
        renderer.shared_material = material
        self.scene.mark_dirty(renderer)

        def inverse():
            renderer.shared_material = old
            self.scene.mark_dirty(renderer)

        self.ledger.record_mutation(description, inverse)

    # ------------------------------
    # 场景：创建
    # ------------------------------

    def apply_create(self, object_name: str, component_name: str) -> bool:
        """
        查找或创建节点，并添加组件。组件已存在时不做修改 (但若节点是
        本次新建的，节点的创建仍会被记录)。

        Returns:
            是否添加了组件。
        """
        full_name = self.resolver.full_type_name(component_name)
        component_type = self.resolver.resolve_component_type(component_name)
        entity, created = self.resolver.resolve_entity(object_name, create=True)

        if entity.get_component(component_type) is not None:
            if created:
                self.scene.mark_dirty(entity)
                self.ledger.record_mutation(
                    f"removed GameObject '{object_name}'", self._destroy_inverse(entity))
            trace("Scene Edit", f"Component {full_name} already exists on {object_name}")
            self.session.system(f"Component {full_name} already exists on {object_name}")
            return False

        component = entity.add_component(component_type)
        self.scene.mark_dirty(entity)

        def inverse():
            if component in entity.components:
                entity.remove_component(component)
            if created:
                self.scene.destroy_entity(entity)
            self.scene.mark_dirty(entity)

        self.ledger.record_mutation(f"removed {full_name} from {object_name}", inverse)
        trace("Scene Edit", f"Added component {full_name} to {object_name}")
        self.session.system(f"Added component {full_name} to {object_name}")

        if self.autowirer is not None:
            self.autowirer.initialize_component(component)
        return True

    def _destroy_inverse(self, entity: Entity) -> Callable[[], None]:
        def inverse():
            self.scene.destroy_entity(entity)
            self.scene.mark_dirty()
        return inverse

    # ------------------------------
    # 场景：设置属性
    # ------------------------------

    def apply_set_property(self, object_path: str, component_name: str,
                           property_name: str, raw_value: str) -> bool:
        """
        设置属性 / 字段。值在任何修改发生之前完成转换，转换失败时
        抛出 ConversionError 且场景保持不变。
        """
        entity, component = self.resolver.resolve_scene_target(object_path, component_name)
        trace("Scene Edit", f"Found component: {component.type_name} on {component.entity.name}")

        if component_name == MATERIAL_ALIAS:
            return self._set_material_color(component, raw_value, object_path)

        if isinstance(component, Transform):
            if property_name in ("localScale", "scale"):
                scale = coerce(raw_value, TypeTag.VECTOR3)
                self._record_member(component, "localScale", scale, f"reverted scale on {entity.name}")
                self.session.system(f"Set transform scale = {raw_value} on {object_path}")
                return True
            if property_name == "position":
                position = coerce(raw_value, TypeTag.VECTOR3)
                self._record_member(component, "position", position, f"reverted position on {entity.name}")
                self.session.system(f"Set transform position = {raw_value} on {object_path}")
                return True
            if property_name == "rotation":
                euler = coerce(raw_value, TypeTag.VECTOR3)
                self._record_member(component, "rotation", Quaternion.from_euler(euler),
                                    f"reverted rotation on {entity.name}")
                self.session.system(f"Set transform rotation = {raw_value} on {object_path}")
                return True

        if isinstance(component, MeshRenderer) and property_name in ("color", "material.color"):
            return self._set_material_color(component, raw_value, object_path)

        member = component.find_member(property_name)
        if member is None:
            raise ResolutionError(f"Property or field not found: {property_name} on {component_name}")

        value = coerce(raw_value, member.type_tag)
        self._record_member(component, property_name, value,
                            f"reverted {property_name} on {component.entity.name}")
        trace("Scene Edit", f"Successfully set {member.kind.value} {property_name} = {raw_value}")
        self.session.system(f"Set {object_path}/{component_name}/{property_name} = {raw_value}")
        return True

    def _set_material_color(self, renderer: MeshRenderer, raw_value: str, object_path: str) -> bool:
        """克隆共享材质后再改颜色，其他引用原材质的对象不受影响"""
        material = renderer.shared_material
        if material is None:
            raise ApplicationError(f"No material found on MeshRenderer of {renderer.entity.name}")
        color = coerce(raw_value, TypeTag.COLOR)
        instance = material.clone()
        instance.color = color
        self._record_material(renderer, instance, f"reverted material color on {renderer.entity.name}")
        self.session.system(f"Set material color = {raw_value} on {object_path}")
        return True

    # ------------------------------
    # 几何体
    # ------------------------------

    def record_created_entities(self, entities: List[Entity], description: str) -> None:
        """把一组新建节点登记为一条撤销记录"""
        def inverse():
            for entity in reversed(entities):
                self.scene.destroy_entity(entity)
            self.scene.mark_dirty()

        self.ledger.record_mutation(description, inverse)
