"""便签注册表 - 内存中的便签集合与便签目录保持一致（Repository Pattern）"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path

from rusty_results.prelude import Err, Ok, Result

from ..config import AUTOSAVE_DELAY_SECONDS, NOTE_SUFFIX, PREVIEW_LENGTH
from ..errors import StoreError
from ..utils.file_manager import NoteFileStore
from ..utils.logger import logger
from . import query
from .autosave import DebouncedWriter
from .filename_policy import (
    derive_final_identifier,
    is_provisional_identifier,
    new_provisional_identifier,
)


@dataclass(frozen=True)
class Note:
    """便签快照：identifier 同时是磁盘上的文件名（含 .txt 后缀）"""

    identifier: str
    content: str
    last_modified: datetime
    is_provisional: bool = False

    @property
    def title(self) -> str:
        return self.identifier

    @property
    def preview(self) -> str:
        return self.content[:PREVIEW_LENGTH] or "..."


class EventKind(Enum):
    COLLECTION_CHANGED = "collection_changed"
    LOCATION_RESOLVED = "location_resolved"


@dataclass(frozen=True)
class RegistryEvent:
    kind: EventKind
    notes: tuple[Note, ...] = ()
    location: str | None = None


Listener = Callable[[RegistryEvent], None]


class NoteRegistry:
    """便签注册表

    - 只有注册表自己的方法会修改 _notes，外部拿到的都是不可变快照
    - 编辑先经过 DebouncedWriter 合并，再写入文件
    - finalize 和 load 共用 _sync_lock，重新加载不会看到重命名到一半的状态
    - 所有 I/O 失败都以 Err 返回，由各个操作决定是上报还是忽略
    """

    def __init__(
        self,
        notes_dir: Path,
        store: NoteFileStore | None = None,
        autosave_delay: float = AUTOSAVE_DELAY_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._store = store if store is not None else NoteFileStore(notes_dir)
        self._clock = clock
        self._notes: dict[str, Note] = {}
        self._listeners: list[Listener] = []
        self._sync_lock = asyncio.Lock()
        self._autosave = DebouncedWriter(self._autosave_write, autosave_delay)
        self._location: str | None = None
        self._loaded = False

    @property
    def store(self) -> NoteFileStore:
        return self._store

    @property
    def autosave(self) -> DebouncedWriter:
        return self._autosave

    @property
    def location(self) -> str | None:
        return self._location

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def notes(self) -> tuple[Note, ...]:
        return tuple(self._notes.values())

    def get(self, identifier: str) -> Note | None:
        return self._notes.get(identifier)

    def view(self, filter_term: str | None = "") -> list[Note]:
        return query.view(self._notes.values(), filter_term)

    # --- 通知 ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册监听器，返回取消注册的函数"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: RegistryEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener failed on {event.kind.value}")

    def _notify_changed(self) -> None:
        self._emit(RegistryEvent(EventKind.COLLECTION_CHANGED, notes=self.notes()))

    # --- 命令 ---

    async def load(self) -> tuple[Note, ...]:
        """从目录重新构建整个集合"""
        async with self._sync_lock:
            return await self._load_locked()

    async def _load_locked(self) -> tuple[Note, ...]:
        match await self._store.ensure_directory():
            case Err(e):
                logger.debug(f"Ignoring directory creation failure: {e.message}")

        match await self._store.list_entries():
            case Err(e):
                logger.error(f"Failed to list notes directory: {e.message}")
                self._loaded = True
                return self.notes()
            case Ok(entries):
                pass

        entries = [entry for entry in entries if entry.name.endswith(NOTE_SUFFIX)]
        results = await asyncio.gather(
            *(self._store.read_text(entry.name) for entry in entries)
        )

        # 仍在编辑中的临时便签保留内存记录（即使自动保存已经写出了临时文件）
        notes = {i: n for i, n in self._notes.items() if n.is_provisional}
        for entry, result in zip(entries, results):
            if entry.name in notes:
                continue
            match result:
                case Err(e):
                    logger.warning(f"Skipping {entry.name}: {e.message}")
                case Ok(content):
                    notes[entry.name] = Note(
                        identifier=entry.name,
                        content=content,
                        last_modified=entry.modified or self._clock(),
                    )

        self._notes = notes
        self._loaded = True
        logger.info(f"Loaded {len(notes)} notes from {self._store.root}")
        self._notify_changed()

        self._location = self._store.resolve_location()
        self._emit(RegistryEvent(EventKind.LOCATION_RESOLVED, location=self._location))
        return self.notes()

    def create(self) -> str:
        """新建临时便签，放在集合最前面，返回它的 id"""
        now = self._clock()
        identifier = new_provisional_identifier(now)
        stamp = now
        while identifier in self._notes:
            stamp += timedelta(milliseconds=1)
            identifier = new_provisional_identifier(stamp)

        note = Note(identifier, "", now, is_provisional=True)
        self._notes = {identifier: note, **self._notes}
        logger.debug(f"Created provisional note {identifier}")
        self._notify_changed()
        return identifier

    def edit(self, identifier: str, content: str) -> None:
        """记录一次编辑（延迟写入，不立即修改集合）"""
        self._autosave.schedule(identifier, content)

    async def _autosave_write(self, identifier: str, content: str) -> None:
        match await self._store.write_text(identifier, content):
            case Err(e):
                # 后台自动保存失败不打断输入，下一次保存或 finalize 会重试
                logger.warning(f"Autosave of {identifier} failed: {e.message}")
                return

        note = self._notes.get(identifier)
        if note is None:
            logger.debug(f"Autosaved {identifier} which is no longer in the collection")
            return

        modified = max(self._clock(), note.last_modified)
        self._notes[identifier] = replace(note, content=content, last_modified=modified)
        self._notify_changed()

    async def finalize(self, identifier: str, content: str) -> Result[str | None, StoreError]:
        """结束编辑：写入最新内容，临时便签按首行重命名，然后重新加载

        Returns:
            最终的 id；空白的临时便签被丢弃时为 Ok(None)；写入失败时为 Err
        """
        await self._autosave.cancel(identifier)

        async with self._sync_lock:
            note = self._notes.get(identifier)
            if note is not None:
                provisional = note.is_provisional
            else:
                provisional = is_provisional_identifier(identifier)

            if provisional:
                result = await self._commit_provisional(identifier, content)
            else:
                result = await self._commit_existing(identifier, content)

            match result:
                case Ok(_):
                    # 已经落盘（或被丢弃），不再是临时便签
                    self._notes.pop(identifier, None)
                case Err(_) if provisional:
                    # 写入失败：保留内存中的临时便签，重新加载后仍可重试
                    self._notes[identifier] = Note(identifier, content, self._clock(), True)

            await self._load_locked()

        return result

    async def _commit_existing(
        self, identifier: str, content: str
    ) -> Result[str | None, StoreError]:
        match await self._store.write_text(identifier, content):
            case Err(e):
                logger.error(f"Failed to save {identifier}: {e.message}")
                return Err(e)
        return Ok(identifier)

    async def _commit_provisional(
        self, identifier: str, content: str
    ) -> Result[str | None, StoreError]:
        if not content.strip():
            # 从没写过内容的空便签不留痕迹（清掉自动保存可能留下的临时文件）
            self._notes.pop(identifier, None)
            await self._delete_quietly(identifier)
            logger.info(f"Discarded empty note {identifier}")
            return Ok(None)

        final_id = derive_final_identifier(content, self._clock()) or identifier

        match await self._store.write_text(final_id, content):
            case Err(e):
                logger.error(f"Failed to save {identifier} as {final_id}: {e.message}")
                return Err(e)

        if final_id != identifier:
            await self._delete_quietly(identifier)
            logger.info(f"Renamed {identifier} -> {final_id}")

        return Ok(final_id)

    async def _delete_quietly(self, identifier: str) -> None:
        match await self._store.delete_entry(identifier):
            case Err(e) if not e.is_not_found:
                logger.warning(f"Failed to remove {identifier}: {e.message}")

    async def delete(self, identifier: str) -> Result[None, StoreError]:
        """删除便签文件并立即从集合中移除（文件不存在视为成功）"""
        # 取消待写入内容，否则延迟写入可能在删除后重新创建文件
        await self._autosave.cancel(identifier)

        match await self._store.delete_entry(identifier):
            case Err(e) if not e.is_not_found:
                logger.error(f"Failed to delete {identifier}: {e.message}")
                return Err(e)

        if self._notes.pop(identifier, None) is not None:
            self._notify_changed()
        logger.info(f"Deleted {identifier}")
        return Ok(None)

    async def close(self) -> None:
        """把所有待写入的自动保存落盘"""
        await self._autosave.close()
