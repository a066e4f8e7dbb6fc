# scenegraph/storage/file_lock.py
"""
轻量级跨进程文件锁，保护场景文件与撤销记录的读写。

- Unix 使用 fcntl.flock，Windows 使用 msvcrt.locking
- 支持 with 语句；异常时也会释放锁
- 锁文件与被保护文件同目录，名为 <文件名>.lock
"""

import sys
from pathlib import Path
from typing import Union

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl


class FileLockError(RuntimeError):
    pass


class FileLock:
    """独占文件锁；__enter__ 会阻塞直到获得锁"""

    def __init__(self, target: Union[str, Path]):
        target = Path(target)
        self.lock_file_path = target.with_name(target.name + ".lock")
        self._handle = None

    def __enter__(self):
        self.lock_file_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._handle = open(self.lock_file_path, "w")
            if sys.platform == "win32":
                msvcrt.locking(self._handle.fileno(), msvcrt.LK_LOCK, 1)
            else:
                fcntl.flock(self._handle.fileno(), fcntl.LOCK_EX)
        except OSError as e:
            if self._handle:
                self._handle.close()
                self._handle = None
            raise FileLockError(f"Could not acquire lock {self.lock_file_path}: {e}") from e
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self._handle:
            return
        try:
            if sys.platform == "win32":
                msvcrt.locking(self._handle.fileno(), msvcrt.LK_UNLCK, 1)
            else:
                fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._handle.close()
            self._handle = None


def atomic_write_text(path: Union[str, Path], content: str) -> None:
    """先写临时文件再原子替换"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp = path.with_name(path.name + ".tmp")
    try:
        temp.write_text(content, encoding="utf-8")
        temp.replace(path)
    except OSError:
        temp.unlink(missing_ok=True)
        raise
