# scenepilot/core/ledger.py
"""
撤销记录 (Undo Ledger)

一个后进先出的栈，元素为 FileSnapshot 或 SceneMutation。每条记录带有
所属批次 id，undo_last 弹出一条，undo_last_batch 弹出最近一个批次的全部记录。

文件快照可以持久化到 JSON 文件 (跨 CLI 调用)；场景修改的逆操作是
内存中的闭包，不做持久化。
"""

import json
import uuid
from pathlib import Path
from typing import Callable, List, Optional, Union

from scenegraph.core.interfaces import IFileSystem, IScene
from scenegraph.storage.file_lock import FileLock, atomic_write_text

from ..utils.console import trace
from .models import FileSnapshot, SceneMutation, UndoEntry


class UndoLedger:

    def __init__(self, file_system: IFileSystem, scene: Optional[IScene] = None,
                 host_undo: Optional[Callable[[], None]] = None,
                 store_path: Optional[Union[str, Path]] = None):
        self.file_system = file_system
        self.scene = scene
        self.host_undo = host_undo
        self.store_path = Path(store_path) if store_path else None
        self.entries: List[UndoEntry] = []
        self.current_batch: Optional[str] = None
        self.current_batch_name: Optional[str] = None
        self.last_batch: Optional[str] = None

    def __len__(self) -> int:
        return len(self.entries)

    def peek(self) -> Optional[UndoEntry]:
        return self.entries[-1] if self.entries else None

    # ---- batches ----

    def begin_batch(self, name: str) -> str:
        self.current_batch = uuid.uuid4().hex[:12]
        self.current_batch_name = name
        trace("Undo System", f"Begin batch '{name}' ({self.current_batch})")
        return self.current_batch

    def end_batch(self) -> None:
        if self.current_batch:
            count = sum(1 for e in self.entries if e.batch_id == self.current_batch)
            trace("Undo System", f"Collapsed {count} operation(s) into '{self.current_batch_name}'")
            self.last_batch = self.current_batch
        self.current_batch = None
        self.current_batch_name = None

    # ---- recording ----

    def push(self, entry: UndoEntry) -> UndoEntry:
        if entry.batch_id is None:
            entry.batch_id = self.current_batch
        self.entries.append(entry)
        return entry

    def record_file(self, target_path: str, prior_content: Optional[bytes]) -> FileSnapshot:
        snapshot = FileSnapshot(
            target_path=target_path,
            prior_content=prior_content,
            is_new_entity=prior_content is None,
        )
        trace("Undo System", f"Snapshot {'new file' if snapshot.is_new_entity else 'file'}: {target_path}")
        return self.push(snapshot)

    def record_mutation(self, description: str, inverse: Callable[[], None]) -> SceneMutation:
        trace("Undo System", f"Recorded scene mutation: {description}")
        return self.push(SceneMutation(description=description, inverse=inverse))

    # ---- undo ----

    def _revert(self, entry: UndoEntry) -> str:
        if isinstance(entry, SceneMutation):
            entry.inverse()
            return f"Undo: {entry.description}"

        name = Path(entry.target_path).name
        if entry.is_new_entity:
            if self.file_system.exists(entry.target_path):
                self.file_system.delete(entry.target_path)
                self.file_system.refresh()
                return f"Undo: deleted new file '{name}'"
            return f"Undo: new file '{name}' was already removed"

        self.file_system.write_bytes(entry.target_path, entry.prior_content)
        self.file_system.refresh()
        return f"Undo: reverted code changes in '{name}'"

    def _undo_top(self) -> str:
        entry = self.entries[-1]
        try:
            message = self._revert(entry)
        except OSError as e:
            target = getattr(entry, "target_path", getattr(entry, "description", ""))
            trace("Undo System", f"Failed to revert {target}: {e}")
            raise
        self.entries.pop()
        trace("Undo System", f"{message} ({len(self.entries)} remaining)")
        return message

    def _fallback(self) -> str:
        scene_name = self.scene.name if self.scene is not None else ""
        if self.host_undo is not None:
            self.host_undo()
            return f"Undo: reverted last modifications in scene '{scene_name}'"
        return f"Nothing to undo in scene '{scene_name}'"

    def undo_last(self) -> str:
        """撤销最近一条记录；栈为空时交给宿主的撤销机制"""
        if not self.entries:
            return self._fallback()
        return self._undo_top()

    def undo_last_batch(self) -> List[str]:
        """撤销最近一个批次的全部记录 (宿主层面的“一步”)"""
        if not self.entries:
            return [self._fallback()]
        batch_id = self.entries[-1].batch_id
        messages = [self._undo_top()]
        while batch_id is not None and self.entries and self.entries[-1].batch_id == batch_id:
            messages.append(self._undo_top())
        return messages

    # ---- persistence ----

    def load(self) -> None:
        """从 store_path 读取已持久化的文件快照"""
        if not self.store_path or not self.store_path.exists():
            return
        with FileLock(self.store_path):
            data = json.loads(self.store_path.read_text(encoding="utf-8") or "[]")
        self.entries = [FileSnapshot.from_dict(item) for item in data]
        trace("Undo System", f"Restored {len(self.entries)} snapshot(s) from {self.store_path}")

    def save(self) -> None:
        if not self.store_path:
            return
        data = [e.to_dict() for e in self.entries if isinstance(e, FileSnapshot)]
        with FileLock(self.store_path):
            atomic_write_text(self.store_path, json.dumps(data, indent=2, ensure_ascii=False))
