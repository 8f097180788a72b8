"""配置常量和环境变量加载"""

import os
from pathlib import Path

APP_NAME = "quick-notes"
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"

# 目录配置
NOTES_DIR_NAME = "QuickNotes"
NOTES_DIR = Path(
    os.getenv("QUICK_NOTES_DIR", str(Path.home() / "Documents" / NOTES_DIR_NAME))
).expanduser()
CACHE_ROOT = Path(
    os.getenv("QUICK_NOTES_CACHE_DIR", str(Path.home() / ".quick-notes"))
).expanduser()

# 文件名配置
NOTE_SUFFIX = ".txt"
PROVISIONAL_PREFIX = "temp_"
MAX_TITLE_LENGTH = 15  # 首行截断长度
ILLEGAL_FILENAME_CHARS = '\\/:*?"<>|'

# 自动保存配置
AUTOSAVE_DELAY_SECONDS = int(os.getenv("QUICK_NOTES_AUTOSAVE_MS", "300")) / 1000

# 展示配置
PREVIEW_LENGTH = 40  # 列表预览字数
LIST_LIMIT = 50  # 工具一次最多列出的便签数
