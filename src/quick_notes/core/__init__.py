"""核心模块 - 便签集合、文件名策略、自动保存和查询视图"""

from . import filename_policy, query
from .autosave import DebouncedWriter
from .note_registry import EventKind, Note, NoteRegistry, RegistryEvent

__all__ = [
    "filename_policy",
    "query",
    "DebouncedWriter",
    "EventKind",
    "Note",
    "NoteRegistry",
    "RegistryEvent",
]
