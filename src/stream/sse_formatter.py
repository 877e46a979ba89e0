"""SSE格式化器，把派生事件序列化为 text/event-stream"""

import json
from typing import Dict, Any

from src.core.constants import EVENT_ERROR
from src.core.errors import PatchError
from src.document import Document


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Document):
        return obj.to_dict()
    raise TypeError(f"无法序列化 {type(obj).__name__}")


class SSEFormatter:
    """SSE格式化器"""

    DONE_EVENT = "data: [DONE]\n\n"

    def to_json(self, data: Dict[str, Any]) -> str:
        return json.dumps(data, ensure_ascii=False, default=_json_default)

    def format_sse_event(self, data: Dict[str, Any]) -> str:
        """格式化为SSE事件"""
        return f"data: {self.to_json(data)}\n\n"

    def create_error_event(self, error: Exception) -> str:
        """流被异常终止时的最后一个事件"""
        if isinstance(error, PatchError):
            payload = {"type": EVENT_ERROR, **error.to_dict()}
        else:
            payload = {"type": EVENT_ERROR, "error": type(error).__name__, "message": str(error)}
        return self.format_sse_event(payload)
