"""防抖自动保存 - 把连续的编辑合并成一次延迟写入"""

import asyncio
from collections.abc import Awaitable, Callable

from ..config import AUTOSAVE_DELAY_SECONDS
from ..utils.logger import logger

FlushCallback = Callable[[str, str], Awaitable[None]]


class _PendingWrite:
    """某个便签上尚未落盘的一次写入"""

    def __init__(self, content: str, after: asyncio.Task | None = None):
        self.content = content
        self.started = False
        self.task: asyncio.Task | None = None
        # 同一 id 上仍在进行的上一次写入，必须等它结束
        self.after = after


class DebouncedWriter:
    """按便签 id 划分的单槽延迟写入

    - schedule() 会取消同一 id 上还没触发的定时器，再重新计时
    - 定时器触发后调用 flush(identifier, content)
    - cancel() 返回时保证该 id 没有正在进行的写入
    """

    def __init__(self, flush: FlushCallback, delay: float = AUTOSAVE_DELAY_SECONDS):
        self._flush = flush
        self._delay = delay
        self._pending: dict[str, _PendingWrite] = {}

    @property
    def delay(self) -> float:
        return self._delay

    def schedule(self, identifier: str, content: str) -> None:
        """安排一次延迟写入（必须在事件循环中调用）"""
        previous = self._pending.get(identifier)
        after = None
        if previous is not None:
            if previous.started:
                after = previous.task
            else:
                previous.task.cancel()  # type: ignore[union-attr]
                after = previous.after

        pending = _PendingWrite(content, after)
        pending.task = asyncio.create_task(self._run(identifier, pending))
        self._pending[identifier] = pending

    async def _run(self, identifier: str, pending: _PendingWrite) -> None:
        await asyncio.sleep(self._delay)
        pending.started = True
        try:
            if pending.after is not None:
                await asyncio.shield(pending.after)
            await self._flush(identifier, pending.content)
        except Exception:
            logger.exception(f"Autosave flush crashed for {identifier}")
        finally:
            if self._pending.get(identifier) is pending:
                del self._pending[identifier]

    def has_pending(self, identifier: str) -> bool:
        pending = self._pending.get(identifier)
        return pending is not None and not pending.started

    def pending_identifiers(self) -> list[str]:
        return [i for i, p in self._pending.items() if not p.started]

    async def cancel(self, identifier: str) -> str | None:
        """取消定时器

        Returns:
            被取消、尚未写入的内容；没有待写入内容时返回 None
        """
        pending = self._pending.pop(identifier, None)
        if pending is None:
            return None

        if pending.started:
            # 已经在写了：等它写完，不能留下进行中的写入
            await asyncio.shield(pending.task)  # type: ignore[arg-type]
            return None

        pending.task.cancel()  # type: ignore[union-attr]
        try:
            await pending.task  # type: ignore[misc]
        except asyncio.CancelledError:
            pass
        if pending.after is not None:
            await asyncio.shield(pending.after)
        return pending.content

    async def flush_now(self, identifier: str) -> bool:
        """立即执行待写入内容，返回是否真的写了"""
        content = await self.cancel(identifier)
        if content is None:
            return False
        await self._flush(identifier, content)
        return True

    async def close(self) -> None:
        """关闭前把所有待写入内容落盘"""
        for identifier in list(self._pending):
            await self.flush_now(identifier)
