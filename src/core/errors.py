"""异常定义"""

from typing import Any, Dict, Optional


class PatchError(Exception):
    """Patch应用失败的基类，附带出错的patch"""

    def __init__(self, message: str, patch: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.patch = patch

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "patch": self.patch
        }


class InvalidPatchPath(PatchError):
    """路径无法在文档结构上解析"""
    pass


class PatchTestFailed(PatchError):
    """test操作的值不匹配"""
    pass


class UnsupportedPatchOperation(PatchError):
    """未知的op"""
    pass


class UpstreamError(Exception):
    """上游响应错误"""
    pass
