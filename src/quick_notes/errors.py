"""错误值类型 - I/O 边界返回的失败信息"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(Enum):
    """存储层错误分类"""

    IO = "io"  # 权限、磁盘已满、卷不存在等
    NOT_FOUND = "not_found"  # 预期中可能不存在的文件


@dataclass(frozen=True)
class StoreError:
    """带建议的存储错误"""

    kind: ErrorKind
    message: str
    suggestion: str | None = None

    @property
    def is_not_found(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND

    @classmethod
    def from_os_error(cls, action: str, name: str, exc: OSError) -> "StoreError":
        """把 OSError 转换成错误值（FileNotFoundError → NOT_FOUND，其余 → IO）"""
        if isinstance(exc, FileNotFoundError):
            return cls(ErrorKind.NOT_FOUND, f"{action} '{name}' 失败：文件不存在")
        return cls(
            ErrorKind.IO,
            f"{action} '{name}' 失败：{exc.strerror or exc}",
            suggestion="检查便签目录的权限和剩余磁盘空间",
        )

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\n建议: {self.suggestion}"
        return self.message
