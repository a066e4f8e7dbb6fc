# scenepilot/core/pipeline.py
"""
EditPipeline: 助手回复 -> 指令 -> 定位 -> 转换 -> 应用 -> 撤销记录。

一次 apply_response 对应一个批次；单条指令失败只产生一条系统消息，
不会中断其余指令，也不会回滚已经成功的修改。
"""

from pathlib import Path
from typing import Callable, List, Optional

from scenegraph.core.components import Camera, MeshRenderer
from scenegraph.core.interfaces import IAssetIndex, IFileSystem
from scenegraph.core.primitives import create_primitive
from scenegraph.core.scene import Scene
from scenegraph.core.scripts import parse_csharp_script
from scenegraph.core.values import Vector3
from scenegraph.storage.scene_store import YamlSceneStore

from ..utils.console import trace
from .applier import EditApplier
from .autowire import AutoWirer
from .batch import DEFAULT_BATCH_NAME, BatchCoordinator
from .config import PilotConfig
from .errors import ApplicationError, ConversionError, ParseError, ResolutionError, ScenePilotError
from .extractor import extract
from .intent import parse_creation_request
from .ledger import UndoLedger
from .models import (
    ChatSession, CreateEntityDirective, Directive, FileEditDirective, FileSnapshot, InvalidDirective,
    SceneMutation,
)
from .resolver import ObjectResolver

NO_SCENE_MESSAGE = "No scene is currently loaded. Scene edits will be ignored."
SCENE_APPLIED_MESSAGE = "Scene modifications applied. Remember to save your scene."
SCRIPT_SUFFIXES = (".cs",)
SPAWN_DISTANCE = 3.0

Confirm = Callable[[str], bool]


def _always_yes(question: str) -> bool:
    return True


class EditPipeline:
    """
    对外入口：
        apply_response(text)   处理一条助手回复，返回本次产生的系统消息
        undo_last()            撤销最近一条记录
        undo_last_batch()      撤销最近一个批次 (宿主撤销信号绑定到这里)
        create_from_query(q)   自然语言创建几何体
    """

    def __init__(self, scene: Optional[Scene], file_system: IFileSystem,
                 asset_index: Optional[IAssetIndex] = None,
                 config: Optional[PilotConfig] = None,
                 session: Optional[ChatSession] = None,
                 ledger: Optional[UndoLedger] = None,
                 confirm: Confirm = _always_yes,
                 host_undo: Optional[Callable[[], None]] = None):
        self.scene = scene
        self.file_system = file_system
        self.asset_index = asset_index
        self.config = config or PilotConfig()
        self.session = session or ChatSession()
        self.confirm = confirm

        self.ledger = ledger or UndoLedger(file_system, scene=scene, host_undo=host_undo)
        if ledger is not None:
            self.ledger.scene = scene
            if host_undo is not None:
                self.ledger.host_undo = host_undo

        self.resolver = ObjectResolver(scene, file_system, aliases=self.config.component_aliases)
        self.autowirer: Optional[AutoWirer] = None
        if scene is not None and self.config.autowire_enabled:
            self.autowirer = AutoWirer(
                scene, self.ledger, self.session, asset_index,
                min_score=self.config.autowire_min_score,
                asset_types=self.config.autowire_asset_types,
            )
        self.applier = EditApplier(self.resolver, self.ledger, self.session, file_system, self.autowirer)
        self.batches = BatchCoordinator(self.ledger, scene)

        on_refresh = getattr(file_system, "on_refresh", None)
        if asset_index is not None and on_refresh is not None:
            on_refresh(asset_index.invalidate)

    @property
    def scene_loaded(self) -> bool:
        return self.scene is not None and self.scene.is_loaded

    def _messages_since(self, start: int) -> List[str]:
        return [m.text for m in self.session.messages[start:] if m.sender == "System"]

    # ------------------------------
    # 处理助手回复
    # ------------------------------

    def apply_response(self, text: str) -> List[str]:
        """
        Raises:
            ReentrantBatchError: 上一个批次仍在执行。
        """
        start = len(self.session.messages)
        directives = extract(text, self.config.languages)
        trace("Scene Edit", f"Found {len(directives)} directive(s)")

        with self.batches.batch(DEFAULT_BATCH_NAME):
            scene_modified = False
            warned = False
            for directive in directives:
                if isinstance(directive, FileEditDirective):
                    self._apply_file(directive)
                    continue
                if not self.scene_loaded:
                    if not warned:
                        trace("Scene Edit", NO_SCENE_MESSAGE)
                        self.session.system(NO_SCENE_MESSAGE)
                        warned = True
                    continue
                if self._apply_scene(directive):
                    scene_modified = True

            if scene_modified:
                trace("Scene Edit", "Scene modifications applied successfully")
                self.session.system(SCENE_APPLIED_MESSAGE)

        return self._messages_since(start)

    def _apply_file(self, directive: FileEditDirective) -> None:
        path = directive.target_path
        try:
            if self.config.file_edit_mode == "partial":
                self.applier.apply_partial_edit(path, directive.new_content)
            else:
                self.applier.apply_file_edit(path, directive.new_content)
        except ApplicationError as e:
            self.session.system(str(e))
            return
        except OSError as e:
            self.session.system(f"Error applying changes to {path}: {e}")
            return

        if self.scene_loaded and Path(path).suffix.lower() in SCRIPT_SUFFIXES:
            try:
                self._attach_script(path)
            except ScenePilotError as e:
                self.session.system(f"Error attaching script from {path}: {e}")

    def _apply_scene(self, directive: Directive) -> bool:
        try:
            if isinstance(directive, InvalidDirective):
                raise ParseError(directive.reason)
            if isinstance(directive, CreateEntityDirective):
                return self.applier.apply_create(directive.object_name, directive.component_name)
            return self.applier.apply_set_property(
                directive.object_path, directive.component_name,
                directive.property_name, directive.raw_value,
            )
        except ConversionError as e:
            trace("Scene Edit", f"Error setting property: {e}")
            self.session.system(f"Error setting property: {e}")
        except (ParseError, ResolutionError, ApplicationError) as e:
            trace("Scene Edit", str(e))
            self.session.system(str(e))
        return False

    # ------------------------------
    # 脚本挂载
    # ------------------------------

    def _attach_script(self, path: str) -> None:
        """为写入的脚本找到 / 创建同名节点，确认后挂载并自动装配"""
        registry = self.scene.registry
        file_name = Path(path).stem

        schema = parse_csharp_script(self.file_system.read_text(path), registry)
        if schema is not None:
            registry.register_script(schema)
            trace("Auto Wire", f"Registered script {schema.name} with {len(schema.fields)} field(s)")

        script_type = registry.lookup(file_name)
        if script_type is None:
            self.session.system(
                f"Could not find script type '{file_name}'. Make sure the script name matches the class name.")
            return

        target = self.resolver.find_entity(file_name)
        if target is None:
            if not self.confirm(f"Would you like to create a new GameObject named '{file_name}' for this script?"):
                self.session.system(f"Skipped creating GameObject for script '{file_name}'")
                return
            target = self.scene.create_entity(file_name)
            self.scene.mark_dirty(target)
            self.applier.record_created_entities([target], f"removed GameObject '{file_name}'")
            self.session.system(f"Created new GameObject '{file_name}' for the script")

        existing = target.get_component(file_name)
        if existing is not None:
            self.session.system(f"Script '{file_name}' is already attached to GameObject '{target.name}'")
            if self.autowirer is not None:
                self.autowirer.assign_assets(existing)
            return

        if not self.confirm(f"Would you like to attach the script '{file_name}' to GameObject '{target.name}'?"):
            self.session.system(f"Skipped attaching script '{file_name}' to GameObject '{target.name}'")
            return

        component = target.add_component(script_type)
        self.scene.mark_dirty(target)

        def inverse():
            if component in target.components:
                target.remove_component(component)
            self.scene.mark_dirty(target)

        self.ledger.record_mutation(f"detached script '{file_name}' from '{target.name}'", inverse)
        self.session.system(f"Attached script '{file_name}' to GameObject '{target.name}'")
        if self.autowirer is not None:
            self.autowirer.initialize_component(component)

    # ------------------------------
    # 撤销
    # ------------------------------

    def undo_last(self) -> str:
        try:
            message = self.ledger.undo_last()
        except OSError as e:
            entry = self.ledger.peek()
            message = f"Error undoing code in '{Path(getattr(entry, 'target_path', '')).name}': {e}"
        self.session.system(message)
        self.ledger.save()
        return message

    def undo_last_batch(self) -> List[str]:
        start = len(self.session.messages)
        try:
            messages = self.ledger.undo_last_batch()
        except OSError as e:
            entry = self.ledger.peek()
            messages = [f"Error undoing code in '{Path(getattr(entry, 'target_path', '')).name}': {e}"]
        for message in messages:
            self.session.system(message)
        self.ledger.save()
        return self._messages_since(start)

    def on_host_undo(self) -> List[str]:
        """宿主的原生撤销信号"""
        trace("Undo System", "Host undo performed")
        return self.undo_last_batch()

    # ------------------------------
    # 自然语言创建
    # ------------------------------

    def default_spawn_position(self) -> Vector3:
        """第一个相机前方 SPAWN_DISTANCE 处；没有相机时为原点"""
        camera = self.scene.find_component_of_type(Camera) if self.scene is not None else None
        if camera is None:
            return Vector3.ZERO
        transform = camera.entity.transform
        return transform.position + transform.forward.scaled(SPAWN_DISTANCE)

    def create_from_query(self, query: str) -> List[str]:
        start = len(self.session.messages)
        if not self.scene_loaded:
            self.session.system(NO_SCENE_MESSAGE)
            return self._messages_since(start)

        request = parse_creation_request(query, self.default_spawn_position())
        if request is None:
            self.session.system(f"Failed to identify primitive type in: {query}")
            return self._messages_since(start)

        with self.batches.batch("AI Create Object"):
            entity = create_primitive(self.scene, request.primitive, request.object_name)
            position = request.position or Vector3.ZERO
            entity.transform.set("position", position)
            entity.transform.set("localScale", request.scale)
            renderer = entity.get_component(MeshRenderer)
            material = renderer.shared_material.clone()
            material.color = request.color
            renderer.shared_material = material
            self.scene.mark_dirty(entity)
            self.applier.record_created_entities(
                [entity], f"removed {request.primitive} '{entity.name}'")
            self.session.system(
                f"Created {request.primitive} '{entity.name}' at {position} with scale {request.scale}")
        return self._messages_since(start)

    # ------------------------------
    # 保存场景
    # ------------------------------

    def has_unsaved_changes(self) -> bool:
        """最近一个批次是否修改了场景"""
        return any(
            isinstance(entry, SceneMutation) and entry.batch_id == self.ledger.last_batch
            for entry in self.ledger.entries
        )

    def save_scene(self, store: YamlSceneStore) -> Optional[Path]:
        """
        保存场景文件，并把这次保存登记为最近批次中的一条文件快照，
        使跨进程的撤销也能还原场景文件。
        """
        if not self.scene_loaded:
            return None
        path = self.scene.path
        prior = self.file_system.read_bytes(path) if self.file_system.exists(path) else None
        target = store.save(self.scene)
        self.ledger.push(FileSnapshot(
            target_path=path,
            prior_content=prior,
            is_new_entity=prior is None,
            batch_id=self.ledger.last_batch,
        ))
        self.ledger.save()
        return target
