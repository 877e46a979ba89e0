"""文档与Patch数据模型"""

from dataclasses import dataclass, field
from typing import Dict, Any


class _Missing:
    """缺省值哨兵，区分"字段不存在"与JSON null"""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING = _Missing()

# 元素保持为原始JSON对象：type / props / children / visible / on / repeat，
# 以及任何未知字段，原样存储、原样输出
Element = Dict[str, Any]


@dataclass(frozen=True)
class Patch:
    """
    单条RFC-6902风格的patch指令

    value 缺省为 MISSING（与 value=None 即JSON null 区分），
    from_ 对应线上格式的 "from" 字段。
    """
    op: Any
    path: Any
    value: Any = MISSING
    from_: Any = None

    @property
    def has_value(self) -> bool:
        return self.value is not MISSING

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Patch":
        return cls(
            op=data.get("op"),
            path=data.get("path"),
            value=data.get("value", MISSING),
            from_=data.get("from")
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"op": self.op, "path": self.path}
        if self.has_value:
            result["value"] = self.value
        if self.from_ is not None:
            result["from"] = self.from_
        return result


@dataclass(frozen=True)
class Document:
    """
    被patch逐步构建的文档

    Attributes:
        root: 顶层元素ID，未设置时为空字符串
        elements: 元素ID -> 元素对象
        state: 数据绑定用的任意JSON树，未设置时为 MISSING
    """
    root: str = ""
    elements: Dict[str, Element] = field(default_factory=dict)
    state: Any = MISSING

    @classmethod
    def empty(cls) -> "Document":
        return cls()

    @property
    def has_state(self) -> bool:
        return self.state is not MISSING

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """从JSON对象构建，结构不合法时抛出 ValueError"""
        if not isinstance(data, dict):
            raise ValueError("文档必须是对象")

        root = data.get("root", "")
        if root is None:
            root = ""
        if not isinstance(root, str):
            raise ValueError(f"root 必须是字符串，实际为 {type(root).__name__}")

        elements = data.get("elements", {})
        if not isinstance(elements, dict):
            raise ValueError("elements 必须是对象")
        for element_id, element in elements.items():
            if not isinstance(element, dict):
                raise ValueError(f"元素 {element_id!r} 必须是对象")

        return cls(root=root, elements=elements, state=data.get("state", MISSING))

    def to_dict(self) -> Dict[str, Any]:
        """导出为JSON对象（与文档共享内部结构，修改前请自行拷贝）"""
        result: Dict[str, Any] = {"root": self.root, "elements": self.elements}
        if self.has_state:
            result["state"] = self.state
        return result
