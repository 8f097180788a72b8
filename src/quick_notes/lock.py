"""跨平台文件锁实现（基于 filelock 库）"""

import hashlib
from pathlib import Path

from filelock import FileLock, Timeout

from .config import CACHE_ROOT


def get_cache_dir(notes_dir: Path, cache_root: Path = CACHE_ROOT) -> Path:
    # 使用 SHA256 确保跨进程一致性（不使用内置 hash()，因为有 hash randomization）
    path_str = str(notes_dir.absolute())
    path_hash = hashlib.sha256(path_str.encode()).hexdigest()[:16]
    return cache_root / path_hash


def get_lock_file(notes_dir: Path, cache_root: Path = CACHE_ROOT) -> Path:
    return get_cache_dir(notes_dir, cache_root) / "notes.lock"


class NotesLock:
    """便签目录的单实例文件锁（同一目录只允许一个进程驱动）"""

    def __init__(self, notes_dir: Path, cache_root: Path = CACHE_ROOT):
        self.lock_file = get_lock_file(notes_dir, cache_root)

        # 非阻塞模式
        self._lock = FileLock(str(self.lock_file), timeout=0)

    @property
    def is_locked(self) -> bool:
        return self._lock.is_locked

    def acquire(self) -> bool:
        """尝试获取独占锁，成功返回 True"""
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            self._lock.acquire(blocking=False)
            return True
        except Timeout:
            return False

    def release(self):
        """释放锁"""
        if self._lock.is_locked:
            self._lock.release()
