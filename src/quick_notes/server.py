"""MCP 服务器入口 - 把便签引擎的命令暴露为工具"""

import argparse
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP
from rusty_results.prelude import Err, Ok

from .config import LIST_LIMIT, NOTES_DIR
from .core.note_registry import Note, NoteRegistry
from .lock import NotesLock
from .utils.logger import logger, setup_logger

load_dotenv()

_registry: NoteRegistry = None  # type: ignore
_lock: NotesLock = None  # type: ignore


@asynccontextmanager
async def lifespan(app):
    """服务器生命周期管理：启动时加载便签，关闭时落盘待写入内容"""
    await _registry.load()
    yield
    await _registry.close()
    if _lock is not None:
        _lock.release()


mcp = FastMCP("quick-notes", lifespan=lifespan)


def _format_time(note: Note) -> str:
    return note.last_modified.strftime("%Y-%m-%d %H:%M")


@mcp.tool()
async def list_notes_tool(query: str = "") -> str:
    """列出便签（按修改时间倒序）

    Args:
        query: 过滤词（可选），匹配文件名或内容，不区分大小写
    """
    notes = _registry.view(query)
    if not notes:
        return "没找到匹配项" if query.strip() else "还没有便签"

    output = f"找到 {len(notes)} 条便签:\n"
    for idx, note in enumerate(notes[:LIST_LIMIT], start=1):
        output += f"{idx}. {note.title} | {_format_time(note)} | {note.preview}\n"

    if len(notes) > LIST_LIMIT:
        output += f"... 还有 {len(notes) - LIST_LIMIT} 条"

    return output


@mcp.tool()
async def read_note_tool(identifier: str) -> str:
    """读取便签内容

    Args:
        identifier: 便签文件名（含 .txt 后缀）
    """
    note = _registry.get(identifier)
    if note is None:
        return f"便签 {identifier} 不存在"
    return f"""文件名：{note.title}
修改时间：{_format_time(note)}

{note.content}
"""


@mcp.tool()
async def create_note_tool() -> str:
    """新建一条空便签，返回临时文件名（结束编辑时会按首行重命名）"""
    return _registry.create()


@mcp.tool()
async def edit_note_tool(identifier: str, content: str) -> str:
    """更新正在编辑的便签内容（短暂延迟后自动保存）

    Args:
        identifier: 便签文件名
        content: 便签的完整内容
    """
    _registry.edit(identifier, content)
    return "已安排自动保存"


@mcp.tool()
async def close_note_tool(identifier: str, content: str) -> str:
    """结束编辑：保存最终内容，新便签会按首行重命名

    Args:
        identifier: 便签文件名
        content: 便签的完整内容
    """
    match await _registry.finalize(identifier, content):
        case Ok(None):
            return "空便签已丢弃"
        case Ok(final_id):
            return f"已保存为 {final_id}"
        case Err(e):
            return f"保存 {identifier} 失败，内容可能丢失: {e}"


@mcp.tool()
async def delete_note_tool(identifier: str) -> str:
    """删除便签

    Args:
        identifier: 便签文件名
    """
    match await _registry.delete(identifier):
        case Ok(_):
            return f"已删除 {identifier}"
        case Err(e):
            return f"删除 {identifier} 失败: {e}"


@mcp.tool()
async def notes_location_tool() -> str:
    """返回便签目录的位置（file:// URI）"""
    return _registry.location or _registry.store.resolve_location()


def main():
    """MCP 服务器入口函数"""
    parser = argparse.ArgumentParser(description="Quick Notes MCP Server")
    parser.add_argument(
        "--notes-dir",
        type=Path,
        default=NOTES_DIR,
        help="便签目录（默认：$QUICK_NOTES_DIR 或 ~/Documents/QuickNotes）",
    )
    args = parser.parse_args()
    setup_logger()

    global _registry, _lock
    notes_dir = args.notes_dir.expanduser().resolve()
    _lock = NotesLock(notes_dir)
    if not _lock.acquire():
        print(f"错误: 另一个进程正在使用便签目录 {notes_dir}", file=sys.stderr)
        sys.exit(1)

    logger.info(f"Serving notes from {notes_dir}")
    _registry = NoteRegistry(notes_dir)

    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
