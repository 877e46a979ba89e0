"""JSON Pointer (RFC-6901) 工具"""

import re
from typing import List, Sequence

_ARRAY_INDEX_RE = re.compile(r'^(0|[1-9][0-9]*)$')

END_OF_ARRAY = "-"


def unescape_segment(segment: str) -> str:
    # 顺序不能颠倒：先 ~1 再 ~0，保证 "~01" -> "~1"
    return segment.replace("~1", "/").replace("~0", "~")


def escape_segment(segment: str) -> str:
    return segment.replace("~", "~0").replace("/", "~1")


def parse_pointer(path: str) -> List[str]:
    """把指针解析为解码后的段列表，非法时抛出 ValueError"""
    if not isinstance(path, str):
        raise ValueError(f"路径必须是字符串: {path!r}")
    if path == "":
        return []
    if not path.startswith("/"):
        raise ValueError(f"路径必须以 / 开头: {path!r}")
    return [unescape_segment(segment) for segment in path.split("/")[1:]]


def format_pointer(segments: Sequence[str]) -> str:
    return "".join("/" + escape_segment(segment) for segment in segments)


def is_array_index(segment: str) -> bool:
    return segment == END_OF_ARRAY or bool(_ARRAY_INDEX_RE.match(segment))


def parse_array_index(segment: str, length: int, allow_end: bool = False) -> int:
    """
    解析数组下标段

    Args:
        segment: 指针段，数字或 "-"
        length: 当前数组长度
        allow_end: 是否允许指向末尾之后的位置（add插入用）

    Raises:
        ValueError: 段不是合法下标或越界
    """
    if segment == END_OF_ARRAY:
        if allow_end:
            return length
        raise ValueError("'-' 只能用于追加")
    if not _ARRAY_INDEX_RE.match(segment):
        raise ValueError(f"非法数组下标: {segment!r}")
    index = int(segment)
    limit = length if allow_end else length - 1
    if index > limit:
        raise ValueError(f"数组下标越界: {index} (长度 {length})")
    return index
