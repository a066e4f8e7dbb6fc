# scenepilot/core/batch.py
"""批次协调：把一次助手回复触发的全部修改归为一个撤销分组"""

from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from scenegraph.core.interfaces import IScene

from .errors import ReentrantBatchError
from .ledger import UndoLedger

DEFAULT_BATCH_NAME = "AI Batch Edits"

T = TypeVar("T")


class BatchCoordinator:

    def __init__(self, ledger: UndoLedger, scene: Optional[IScene] = None):
        self.ledger = ledger
        self.scene = scene
        self.running = False

    @contextmanager
    def batch(self, name: str = DEFAULT_BATCH_NAME) -> Iterator[str]:
        if self.running:
            raise ReentrantBatchError(
                f"Batch '{self.ledger.current_batch_name}' is still being applied")
        self.running = True
        batch_id = self.ledger.begin_batch(name)
        try:
            yield batch_id
        finally:
            self.ledger.end_batch()
            self.running = False
            if self.scene is not None and self.scene.is_loaded:
                self.scene.mark_dirty()

    def run_batch(self, action: Callable[[], T], name: str = DEFAULT_BATCH_NAME) -> T:
        """执行 action；无论是否抛出异常都会关闭分组"""
        with self.batch(name):
            return action()
