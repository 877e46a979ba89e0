"""流式处理模块"""

from .trackers import LineBuffer, SegmentTracker
from .parsers import EventStreamDecoder, LineKind, ParsedLine, classify_line, decode_event_stream
from .sse_formatter import SSEFormatter
from .processor import StreamProcessor, get_stream_processor

__all__ = [
    "LineBuffer",
    "SegmentTracker",
    "EventStreamDecoder",
    "LineKind",
    "ParsedLine",
    "classify_line",
    "decode_event_stream",
    "SSEFormatter",
    "StreamProcessor",
    "get_stream_processor",
]
