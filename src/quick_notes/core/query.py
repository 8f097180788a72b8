"""查询视图 - 排序、过滤后的只读便签列表"""

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .note_registry import Note


def normalize_term(term: str | None) -> str:
    return (term or "").strip().lower()


def matches(note: "Note", term: str) -> bool:
    """文件名或内容包含关键词（term 需已经 normalize）"""
    return term in note.identifier.lower() or term in note.content.lower()


def view(notes: Iterable["Note"], filter_term: str | None = "") -> list["Note"]:
    """按修改时间倒序排列，过滤词非空时只保留匹配的便签（线性扫描）"""
    ordered = sorted(notes, key=lambda n: n.last_modified, reverse=True)
    term = normalize_term(filter_term)
    if not term:
        return ordered
    return [note for note in ordered if matches(note, term)]
