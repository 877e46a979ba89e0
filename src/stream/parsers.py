"""行分类器与外层事件流解码器"""

import codecs
import json
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, List, Optional, AsyncIterable, AsyncGenerator, Union

from src.document import Patch
from .trackers import LineBuffer


class LineKind(Enum):
    """行类型"""
    PATCH = "patch"
    TEXT = "text"


@dataclass(frozen=True)
class ParsedLine:
    """分类结果：patch 行携带 patch，文本行携带原样内容"""
    kind: LineKind
    patch: Optional[Patch] = None
    content: Optional[str] = None

    @classmethod
    def text(cls, content: str) -> "ParsedLine":
        return cls(kind=LineKind.TEXT, content=content)

    @classmethod
    def from_patch(cls, patch: Patch) -> "ParsedLine":
        return cls(kind=LineKind.PATCH, patch=patch)

    @property
    def is_patch(self) -> bool:
        return self.kind == LineKind.PATCH


def classify_line(line: str) -> Optional[ParsedLine]:
    """
    把一行分类为 patch 或文本

    空白行返回 None；能解析为带 op 和 path 的JSON对象时为 patch，
    否则为文本，内容保留原始空白。
    """
    trimmed = line.strip()
    if not trimmed:
        return None

    try:
        parsed = json.loads(trimmed)
    except (ValueError, RecursionError):
        return ParsedLine.text(line)

    if isinstance(parsed, dict) and parsed.get("op") and parsed.get("path"):
        return ParsedLine.from_patch(Patch.from_dict(parsed))
    return ParsedLine.text(line)


class EventStreamDecoder:
    """
    外层事件流解码器

    支持SSE (data: {...}) 和 NDJSON 两种格式，处理任意位置的分块。
    [DONE]、注释行、其他SSE字段以及非JSON对象行都会被跳过。
    """

    SSE_DATA_PREFIX = "data:"
    SSE_IGNORED_PREFIXES = ("event:", "id:", "retry:")
    DONE_MARKER = "[DONE]"

    def __init__(self):
        self.lines = LineBuffer()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.parse_errors = 0
        self.successful_parses = 0

    def _decode_line(self, line: str) -> Optional[Dict[str, Any]]:
        text = line.strip()
        if not text or text.startswith(":"):
            return None

        if text.startswith(self.SSE_DATA_PREFIX):
            text = text[len(self.SSE_DATA_PREFIX):].lstrip()
        elif text.startswith(self.SSE_IGNORED_PREFIXES):
            return None

        if text == self.DONE_MARKER:
            return None

        try:
            obj = json.loads(text)
        except (ValueError, RecursionError):
            self.parse_errors += 1
            return None

        if not isinstance(obj, dict):
            self.parse_errors += 1
            return None

        self.successful_parses += 1
        return obj

    def feed(self, data: Union[str, bytes]) -> List[Dict[str, Any]]:
        """输入数据并返回所有完整的事件"""
        if isinstance(data, bytes):
            data = self._decoder.decode(data)

        results = []
        for line in self.lines.push(data):
            event = self._decode_line(line)
            if event is not None:
                results.append(event)
        return results

    def flush(self) -> List[Dict[str, Any]]:
        """流结束时处理没有换行结尾的最后一行"""
        tail = self._decoder.decode(b"", final=True)
        results = self.feed(tail) if tail else []

        remaining = self.lines.flush()
        if remaining is not None:
            event = self._decode_line(remaining)
            if event is not None:
                results.append(event)
        return results

    def get_stats(self) -> Dict[str, Any]:
        return {
            "buffer_length": len(self.lines.buffer),
            "successful_parses": self.successful_parses,
            "parse_errors": self.parse_errors
        }


async def decode_event_stream(
    chunks: AsyncIterable[Union[str, bytes]],
    decoder: Optional[EventStreamDecoder] = None
) -> AsyncGenerator[Dict[str, Any], None]:
    """把原始文本/字节块的异步迭代器解码为事件字典"""
    decoder = decoder or EventStreamDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
    for event in decoder.flush():
        yield event
