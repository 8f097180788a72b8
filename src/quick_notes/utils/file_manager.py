"""文件管理器 - 负责便签目录的文件系统 I/O 操作

所有阻塞调用都通过 asyncio.to_thread 移出事件循环，结果以 Result 返回，
由调用方决定是否忽略错误。
"""

import asyncio
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from rusty_results.prelude import Err, Ok, Result

from ..errors import ErrorKind, StoreError


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    modified: datetime | None


class NoteFileStore:
    """单个便签目录上的异步文件操作"""

    def __init__(self, root: Path):
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def path_of(self, name: str) -> Result[Path, StoreError]:
        """把文件名解析成目录内的路径（拒绝包含路径分隔符的名字）"""
        if (
            not name
            or name in (".", "..")
            or "/" in name
            or os.sep in name
            or (os.altsep is not None and os.altsep in name)
        ):
            return Err(StoreError(ErrorKind.IO, f"非法文件名: {name!r}"))
        return Ok(self._root / name)

    async def ensure_directory(self) -> Result[Path, StoreError]:
        try:
            await asyncio.to_thread(self._root.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            return Err(StoreError.from_os_error("创建目录", str(self._root), e))
        return Ok(self._root)

    async def list_entries(self) -> Result[list[DirectoryEntry], StoreError]:
        """列出目录下的文件（不递归，跳过子目录）"""
        try:
            entries = await asyncio.to_thread(self._scan)
        except OSError as e:
            return Err(StoreError.from_os_error("列出目录", str(self._root), e))
        return Ok(entries)

    def _scan(self) -> list[DirectoryEntry]:
        entries = []
        with os.scandir(self._root) as it:
            for entry in it:
                if not entry.is_file():
                    continue
                try:
                    modified = datetime.fromtimestamp(entry.stat().st_mtime)
                except OSError:
                    modified = None
                entries.append(DirectoryEntry(entry.name, modified))
        return entries

    async def read_text(self, name: str) -> Result[str, StoreError]:
        match self.path_of(name):
            case Err(e):
                return Err(e)
            case Ok(path):
                pass

        try:
            text = await asyncio.to_thread(_read_verbatim, path)
        except OSError as e:
            return Err(StoreError.from_os_error("读取", name, e))
        except UnicodeDecodeError:
            return Err(StoreError(ErrorKind.IO, f"读取 '{name}' 失败：不是 UTF-8 文本"))
        return Ok(text)

    async def write_text(self, name: str, text: str) -> Result[None, StoreError]:
        """整体覆盖写入（先写临时文件再替换，调用方看不到写了一半的内容）"""
        match self.path_of(name):
            case Err(e):
                return Err(e)
            case Ok(path):
                pass

        try:
            await asyncio.to_thread(_write_atomic, path, text)
        except OSError as e:
            return Err(StoreError.from_os_error("写入", name, e))
        return Ok(None)

    async def delete_entry(self, name: str) -> Result[None, StoreError]:
        match self.path_of(name):
            case Err(e):
                return Err(e)
            case Ok(path):
                pass

        try:
            await asyncio.to_thread(path.unlink)
        except OSError as e:
            return Err(StoreError.from_os_error("删除", name, e))
        return Ok(None)

    def resolve_location(self) -> str:
        """目录位置描述（file:// URI），只用于展示"""
        return self._root.resolve().as_uri()


def _read_verbatim(path: Path) -> str:
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _write_atomic(path: Path, text: str) -> None:
    tmp = path.with_name(path.name + ".tmp")
    try:
        # newline="" 保证内容原样落盘，不做换行转换
        with open(tmp, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
