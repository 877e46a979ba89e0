"""
流式事件处理器

把外层协议事件流转换为派生事件流：
- text-delta 中的patch行 -> document-updated（完整文档快照）
- text-delta 中的文本行 -> text-segment（按patch边界分段，输出累积全文）
- text-start 被吞掉，text-end 触发缓冲区刷新
- 其他事件原样透传
"""

from typing import Dict, Any, Generator, Iterable, AsyncIterable, AsyncGenerator

from src.core.constants import (
    EVENT_DOCUMENT_UPDATED,
    EVENT_PATCH_ERROR,
    EVENT_TEXT_DELTA,
    EVENT_TEXT_END,
    EVENT_TEXT_SEGMENT,
    EVENT_TEXT_START,
    POLICY_HALT,
    POLICY_SKIP,
)
from src.core.errors import PatchError
from src.document import Document, Patch, apply_patch
from .parsers import ParsedLine, classify_line
from .trackers import LINE_TERMINATOR, LineBuffer, SegmentTracker


class StreamProcessor:
    """
    流式事件处理器

    每个实例只服务一条流。行缓冲区按文本流ID分别维护，
    文档快照与分段状态在整条流内共享。
    """

    def __init__(self, on_invalid_patch: str = POLICY_SKIP):
        """
        初始化流处理器

        Args:
            on_invalid_patch: patch应用失败时的策略，
                "skip" 输出 patch-error 事件后继续，"halt" 直接抛出异常终止流
        """
        if on_invalid_patch not in (POLICY_SKIP, POLICY_HALT):
            raise ValueError(f"未知的策略: {on_invalid_patch!r}")
        self.on_invalid_patch = on_invalid_patch
        self.debug_mode = False

        self.document = Document.empty()
        self.segment = SegmentTracker()
        self._buffers: Dict[Any, LineBuffer] = {}

        self._stats = {
            "events_processed": 0,
            "events_forwarded": 0,
            "patches_applied": 0,
            "patch_errors": 0,
            "text_lines": 0,
            "skipped_lines": 0
        }

    def enable_debug(self, enabled: bool = True):
        """启用调试模式"""
        self.debug_mode = enabled

    def _log_debug(self, message: str):
        """调试日志"""
        if self.debug_mode:
            print(f"[流处理] {message}")

    def get_stats(self) -> Dict[str, Any]:
        """获取处理统计信息"""
        return {
            **self._stats,
            "segment_index": self.segment.index,
            "segments_closed": self.segment.segments_closed,
            "open_buffers": len(self._buffers),
            "buffer_stats": {str(k): v.get_stats() for k, v in self._buffers.items()}
        }

    def _buffer_for(self, stream_id: Any) -> LineBuffer:
        buffer = self._buffers.get(stream_id)
        if buffer is None:
            buffer = LineBuffer()
            self._buffers[stream_id] = buffer
            self._log_debug(f"新文本流: id={stream_id}")
        return buffer

    def _apply(self, patch: Patch) -> Generator[Dict[str, Any], None, None]:
        """patch边界：关闭当前分段，应用patch并输出新快照"""
        self.segment.close()
        try:
            document = apply_patch(self.document, patch)
        except PatchError as e:
            self._stats["patch_errors"] += 1
            if self.on_invalid_patch == POLICY_HALT:
                raise
            print(f"⚠️ 跳过无法应用的patch: {e.message}")
            yield {"type": EVENT_PATCH_ERROR, **e.to_dict()}
            return

        self.document = document
        self._stats["patches_applied"] += 1
        self._log_debug(f"应用patch: {patch.op} {patch.path}")
        yield {"type": EVENT_DOCUMENT_UPDATED, "document": document}

    def _append_text(self, content: str) -> Dict[str, Any]:
        index, text = self.segment.append(content)
        return {"type": EVENT_TEXT_SEGMENT, "segmentIndex": index, "text": text}

    def _handle_line(self, parsed: ParsedLine, terminator: str) -> Generator[Dict[str, Any], None, None]:
        if parsed.is_patch:
            yield from self._apply(parsed.patch)
        else:
            self._stats["text_lines"] += 1
            yield self._append_text(parsed.content + terminator)

    def _handle_delta(self, event: Dict[str, Any]) -> Generator[Dict[str, Any], None, None]:
        delta = event.get("delta")
        if not isinstance(delta, str) or not delta:
            return

        buffer = self._buffer_for(event.get("id"))
        for line in buffer.push(delta):
            parsed = classify_line(line)
            if parsed is None:
                self._stats["skipped_lines"] += 1
                continue
            yield from self._handle_line(parsed, LINE_TERMINATOR)

    def _flush_stream(self, stream_id: Any) -> Generator[Dict[str, Any], None, None]:
        """刷新某个文本流的剩余内容并关闭当前分段"""
        buffer = self._buffers.pop(stream_id, None)
        remaining = buffer.flush() if buffer is not None else None

        if remaining is not None:
            self._log_debug(f"刷新文本流 id={stream_id}: {len(remaining)} 字符")
            parsed = classify_line(remaining)
            if parsed is not None:
                # 剩余内容没有换行结尾，文本不补换行符
                yield from self._handle_line(parsed, "")

        self.segment.close()

    def process_event(self, event: Any) -> Generator[Dict[str, Any], None, None]:
        """处理一个外层事件，产出零或多个派生事件"""
        self._stats["events_processed"] += 1
        event_type = event.get("type") if isinstance(event, dict) else None

        if event_type == EVENT_TEXT_START:
            return
        elif event_type == EVENT_TEXT_DELTA:
            yield from self._handle_delta(event)
        elif event_type == EVENT_TEXT_END:
            yield from self._flush_stream(event.get("id"))
        else:
            self._stats["events_forwarded"] += 1
            yield event

    def finish(self) -> Generator[Dict[str, Any], None, None]:
        """外层流结束：按出现顺序刷新所有未收到 text-end 的文本流"""
        for stream_id in list(self._buffers):
            yield from self._flush_stream(stream_id)

    def close(self):
        """释放所有缓冲区状态"""
        if self._buffers:
            self._log_debug(f"丢弃 {len(self._buffers)} 个未刷新的缓冲区")
        self._buffers.clear()

    def iter_events(self, events: Iterable[Any]) -> Generator[Dict[str, Any], None, None]:
        """同步驱动：逐个拉取外层事件"""
        try:
            for event in events:
                yield from self.process_event(event)
            yield from self.finish()
        finally:
            self.close()

    async def process_stream(self, events: AsyncIterable[Any]) -> AsyncGenerator[Dict[str, Any], None]:
        """
        异步驱动：逐个拉取外层事件

        消费方停止拉取时（aclose / 取消），本生成器不再请求外层事件，
        并释放缓冲区。

        Args:
            events: 外层事件的异步迭代器

        Yields:
            派生事件字典
        """
        try:
            async for event in events:
                for derived in self.process_event(event):
                    yield derived
            for derived in self.finish():
                yield derived
        finally:
            self.close()


def get_stream_processor(on_invalid_patch: str = POLICY_SKIP, debug: bool = False) -> StreamProcessor:
    """创建流处理器实例"""
    processor = StreamProcessor(on_invalid_patch=on_invalid_patch)
    processor.enable_debug(debug)
    return processor
