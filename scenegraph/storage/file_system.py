# scenegraph/storage/file_system.py
"""基于本地目录的项目文件系统"""

from pathlib import Path
from typing import Callable, List, Union

from ..core.interfaces import IFileSystem


class PathOutsideRootError(ValueError):
    pass


class LocalFileSystem(IFileSystem):
    """
    以 root 为项目根目录的文件读写。相对路径都相对 root 解析，
    解析结果必须位于 root 之内 (含 ".." 或绝对路径时同样检查)。
    refresh() 会依次调用注册的回调 (例如让资源索引失效)。
    """

    def __init__(self, root: Union[str, Path] = "."):
        self.root = Path(root).resolve()
        self._refresh_hooks: List[Callable[[], None]] = []

    def resolve(self, path: str) -> Path:
        p = Path(path.strip())
        target = (p if p.is_absolute() else self.root / p).resolve()
        if target != self.root and self.root not in target.parents:
            raise PathOutsideRootError(f"Path is outside the project root: {path}")
        return target

    def exists(self, path: str) -> bool:
        return self.resolve(path).is_file()

    def read_text(self, path: str) -> str:
        with open(self.resolve(path), "r", encoding="utf-8", newline="") as f:
            return f.read()

    def read_bytes(self, path: str) -> bytes:
        return self.resolve(path).read_bytes()

    def write_text(self, path: str, content: str) -> None:
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        # 保持原样写入，不做换行符转换
        with open(target, "w", encoding="utf-8", newline="") as f:
            f.write(content)

    def write_bytes(self, path: str, content: bytes) -> None:
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def delete(self, path: str) -> None:
        self.resolve(path).unlink()

    def on_refresh(self, hook: Callable[[], None]) -> None:
        self._refresh_hooks.append(hook)

    def refresh(self) -> None:
        for hook in self._refresh_hooks:
            hook()
