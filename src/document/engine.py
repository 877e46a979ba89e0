"""
Patch应用引擎

在文档的深拷贝上执行单条patch，成功后生成新文档；任何失败都发生在
替换之前，调用方持有的文档保持不变。
"""

import copy
import re
from dataclasses import replace
from typing import Dict, Any, Iterable, List, Optional, Union

from src.core.errors import (
    InvalidPatchPath,
    PatchTestFailed,
    UnsupportedPatchOperation,
)
from .models import MISSING, Document, Patch
from .pointer import (
    format_pointer,
    is_array_index,
    parse_array_index,
    parse_pointer,
)

OPERATIONS = ("add", "remove", "replace", "move", "copy", "test")

ROOT_KEY = "root"
ELEMENTS_KEY = "elements"
STATE_KEY = "state"
DOCUMENT_KEYS = (ROOT_KEY, ELEMENTS_KEY, STATE_KEY)

_DIRECT_ELEMENT_RE = re.compile(r'^/elements/([^/]+)$')

PatchLike = Union[Patch, Dict[str, Any]]


def _coerce_patch(patch: PatchLike) -> Patch:
    if isinstance(patch, Patch):
        return patch
    if isinstance(patch, dict):
        return Patch.from_dict(patch)
    raise InvalidPatchPath(f"patch 必须是对象: {patch!r}")


def _resolve(path: Any, raw: Dict[str, Any], mutating: bool) -> List[str]:
    """把路径解析为段列表，并校验它落在文档结构之内"""
    try:
        segments = parse_pointer(path)
    except ValueError as e:
        raise InvalidPatchPath(str(e), raw)

    if not segments or segments[0] not in DOCUMENT_KEYS:
        raise InvalidPatchPath(f"路径不在文档结构内: {path!r}", raw)
    if segments[0] == ROOT_KEY and len(segments) > 1:
        raise InvalidPatchPath(f"root 是字符串，不能继续寻址: {path!r}", raw)
    if mutating and segments == [ELEMENTS_KEY]:
        raise InvalidPatchPath("修改 /elements 需要元素ID", raw)
    return segments


def _new_container(next_segment: str) -> Any:
    return [] if is_array_index(next_segment) else {}


def _find(tree: Dict[str, Any], segments: List[str], raw: Dict[str, Any]) -> Any:
    """按段查找值；成员不存在返回 MISSING，穿过标量时抛出 InvalidPatchPath"""
    node: Any = tree
    for depth, segment in enumerate(segments):
        if isinstance(node, dict):
            if segment not in node:
                return MISSING
            node = node[segment]
        elif isinstance(node, list):
            if segment == "-":
                return MISSING
            if not is_array_index(segment):
                raise InvalidPatchPath(f"非法数组下标: {format_pointer(segments[:depth + 1])}", raw)
            index = int(segment)
            if index >= len(node):
                return MISSING
            node = node[index]
        else:
            raise InvalidPatchPath(f"无法在标量上寻址: {format_pointer(segments[:depth + 1])}", raw)
    return node


def _parent(tree: Dict[str, Any], segments: List[str], raw: Dict[str, Any], create: bool) -> Any:
    """
    定位目标的父容器

    create=True 时（仅 state 子树）按下一段的形态补建缺失的中间容器：
    数字段建数组，命名段建对象。
    """
    node: Any = tree
    for depth, segment in enumerate(segments[:-1]):
        next_segment = segments[depth + 1]
        if isinstance(node, dict):
            if segment not in node or (create and node[segment] is None):
                if not create:
                    raise InvalidPatchPath(f"父容器不存在: {format_pointer(segments[:depth + 1])}", raw)
                node[segment] = _new_container(next_segment)
            node = node[segment]
        elif isinstance(node, list):
            try:
                index = parse_array_index(segment, len(node), allow_end=create)
            except ValueError as e:
                raise InvalidPatchPath(f"{e}: {format_pointer(segments[:depth + 1])}", raw)
            if index == len(node):
                node.append(_new_container(next_segment))
            node = node[index]
        else:
            raise InvalidPatchPath(f"父节点不是容器: {format_pointer(segments[:depth + 1])}", raw)
    return node


def _add(tree: Dict[str, Any], segments: List[str], value: Any, raw: Dict[str, Any], replace_only: bool = False):
    parent = _parent(tree, segments, raw, create=segments[0] == STATE_KEY)
    key = segments[-1]
    if isinstance(parent, dict):
        parent[key] = value
    elif isinstance(parent, list):
        try:
            index = parse_array_index(key, len(parent), allow_end=not replace_only)
        except ValueError as e:
            raise InvalidPatchPath(f"{e}: {format_pointer(segments)}", raw)
        if replace_only:
            parent[index] = value
        else:
            parent.insert(index, value)
    else:
        raise InvalidPatchPath(f"父节点不是容器: {format_pointer(segments[:-1])}", raw)


def _remove(tree: Dict[str, Any], segments: List[str], raw: Dict[str, Any]):
    if segments == [ROOT_KEY]:
        tree[ROOT_KEY] = ""
        return

    parent = _find(tree, segments[:-1], raw)
    key = segments[-1]
    if parent is MISSING or parent is None:
        return
    if isinstance(parent, dict):
        parent.pop(key, None)
    elif isinstance(parent, list):
        if not is_array_index(key) or key == "-":
            raise InvalidPatchPath(f"非法数组下标: {format_pointer(segments)}", raw)
        index = int(key)
        if index < len(parent):
            del parent[index]
    else:
        raise InvalidPatchPath(f"父节点不是容器: {format_pointer(segments[:-1])}", raw)


def json_equal(left: Any, right: Any) -> bool:
    """按JSON语义比较，布尔值与数字互不相等"""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(json_equal(left[key], right[key]) for key in left)
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return False
        return all(json_equal(a, b) for a, b in zip(left, right))
    return type(left) is type(right) and left == right


def apply_patch(document: Document, patch: PatchLike) -> Document:
    """
    把一条patch应用到文档，返回新文档

    add/replace 在 /root 与 /elements/<id> 上可互换；remove 不存在的成员为空操作；
    state 子树下的写入会自动补建中间容器。

    Raises:
        InvalidPatchPath: 路径无法解析或结果不符合文档结构
        PatchTestFailed: test 操作值不匹配
        UnsupportedPatchOperation: 未知 op
    """
    patch = _coerce_patch(patch)
    raw = patch.to_dict()
    op = patch.op

    if op not in OPERATIONS:
        raise UnsupportedPatchOperation(f"不支持的操作: {op!r}", raw)

    segments = _resolve(patch.path, raw, mutating=op != "test")
    try:
        tree = copy.deepcopy(document.to_dict())
        _apply_operation(tree, patch, segments, raw)
    except RecursionError:
        raise InvalidPatchPath("value 嵌套层级过深", raw)

    try:
        return Document.from_dict(tree)
    except ValueError as e:
        raise InvalidPatchPath(str(e), raw)


def _apply_operation(tree: Dict[str, Any], patch: Patch, segments: List[str], raw: Dict[str, Any]):
    """在已拷贝的文档树上原地执行一条patch"""
    op = patch.op
    if op in ("add", "replace", "test") and not patch.has_value:
        raise InvalidPatchPath(f"{op} 操作缺少 value", raw)

    if op == "test":
        current = _find(tree, segments, raw)
        if current is MISSING or not json_equal(current, patch.value):
            raise PatchTestFailed(f"test 失败: {patch.path!r} 的值不匹配", raw)

    elif op == "remove":
        _remove(tree, segments, raw)

    elif op == "add":
        _add(tree, segments, copy.deepcopy(patch.value), raw)

    elif op == "replace":
        _add(tree, segments, copy.deepcopy(patch.value), raw, replace_only=True)

    else:
        if patch.from_ is None:
            raise InvalidPatchPath(f"{op} 操作缺少 from", raw)
        source = _resolve(patch.from_, raw, mutating=op == "move")
        value = _find(tree, source, raw)
        if value is MISSING:
            raise InvalidPatchPath(f"from 路径不存在: {patch.from_!r}", raw)

        if op == "move":
            if len(segments) > len(source) and segments[:len(source)] == source:
                raise InvalidPatchPath("不能把值移动到它自己的子路径", raw)
            _remove(tree, source, raw)
        else:
            value = copy.deepcopy(value)
        _add(tree, segments, value, raw)


def apply_patches(document: Document, patches: Iterable[PatchLike]) -> Document:
    """依次应用多条patch（不推断root）"""
    for patch in patches:
        document = apply_patch(document, patch)
    return document


def direct_element_id(patch: Patch) -> Optional[str]:
    """add/replace 直接写 /elements/<id> 时返回该ID"""
    if patch.op not in ("add", "replace") or not isinstance(patch.path, str):
        return None
    match = _DIRECT_ELEMENT_RE.match(patch.path)
    if not match:
        return None
    return parse_pointer(match.group(0))[1]


def build_document(patches: Iterable[PatchLike]) -> Document:
    """
    从空文档折叠一组patch

    折叠结束后root仍为空时，取第一条直接写入 /elements/<id> 的ID作为root。
    """
    document = Document.empty()
    first_element_id: Optional[str] = None

    for patch in patches:
        patch = _coerce_patch(patch)
        if first_element_id is None:
            first_element_id = direct_element_id(patch)
        document = apply_patch(document, patch)

    if not document.root and first_element_id:
        document = replace(document, root=first_element_id)

    return document
