"""文件名策略 - 由时间或便签内容推导文件名（纯函数，无 I/O）"""

import re
from datetime import datetime

from ..config import (
    ILLEGAL_FILENAME_CHARS,
    MAX_TITLE_LENGTH,
    NOTE_SUFFIX,
    PROVISIONAL_PREFIX,
)

_ILLEGAL_RE = re.compile("[" + re.escape(ILLEGAL_FILENAME_CHARS) + "]")
_PROVISIONAL_RE = re.compile(
    re.escape(PROVISIONAL_PREFIX) + r"\d+" + re.escape(NOTE_SUFFIX)
)


def new_provisional_identifier(now: datetime) -> str:
    """生成临时文件名（例如 "temp_1704412800000.txt"）"""
    millis = int(now.timestamp() * 1000)
    return f"{PROVISIONAL_PREFIX}{millis}{NOTE_SUFFIX}"


def is_provisional_identifier(identifier: str) -> bool:
    return _PROVISIONAL_RE.fullmatch(identifier) is not None


def date_stamp(now: datetime) -> str:
    return now.strftime("%Y.%m.%d")


def first_line_title(content: str) -> str:
    """取首行，去掉首尾空白，截断到 MAX_TITLE_LENGTH，再去掉文件名非法字符

    先截断再过滤，所以结果可能短于 MAX_TITLE_LENGTH。
    """
    first_line = content.split("\n", 1)[0].strip()
    return _ILLEGAL_RE.sub("", first_line[:MAX_TITLE_LENGTH])


def derive_final_identifier(content: str, now: datetime) -> str | None:
    """根据内容首行推导正式文件名（例如 "Groceries 2024.01.05.txt"）

    Returns:
        正式文件名；首行处理后为空时返回 None，表示不重命名
    """
    title = first_line_title(content)
    if not title:
        return None
    # 同一天首行相同的两条便签会得到相同的文件名，后写入的覆盖先写入的
    return f"{title} {date_stamp(now)}{NOTE_SUFFIX}"
