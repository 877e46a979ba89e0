"""流式状态追踪器：行缓冲区、文本分段"""

from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Tuple

LINE_TERMINATOR = "\n"


@dataclass
class LineBuffer:
    """
    行缓冲区

    累积任意切分的文本片段，只吐出完整的行（不含换行符），
    未结束的尾部保留到下一次 push。
    """
    buffer: str = ""
    lines_emitted: int = 0
    chars_received: int = 0

    def push(self, fragment: str) -> List[str]:
        """追加片段并返回所有已完整的行"""
        self.chars_received += len(fragment)
        self.buffer += fragment

        lines = self.buffer.split(LINE_TERMINATOR)
        self.buffer = lines.pop()
        self.lines_emitted += len(lines)
        return lines

    def flush(self) -> Optional[str]:
        """取出剩余内容并清空；只有空白时视为没有内容"""
        content = self.buffer
        self.buffer = ""
        if not content.strip():
            return None
        return content

    def get_stats(self) -> Dict[str, Any]:
        return {
            "buffer_length": len(self.buffer),
            "lines_emitted": self.lines_emitted,
            "chars_received": self.chars_received
        }


@dataclass
class SegmentTracker:
    """
    文本分段追踪器

    同一分段内的文本累积输出；遇到patch边界时关闭当前分段，
    下一行文本开启序号+1的新分段。空分段关闭时不消耗序号。
    """
    index: int = 0
    text: str = ""
    segments_closed: int = 0

    def append(self, content: str) -> Tuple[int, str]:
        """追加内容，返回 (分段序号, 累积全文)"""
        self.text += content
        return self.index, self.text

    def close(self) -> bool:
        if not self.text:
            return False
        self.index += 1
        self.text = ""
        self.segments_closed += 1
        return True
