"""文档模型与Patch引擎"""

from .models import MISSING, Document, Element, Patch
from .pointer import escape_segment, format_pointer, parse_pointer, unescape_segment
from .engine import apply_patch, apply_patches, build_document, json_equal

__all__ = [
    "MISSING",
    "Document",
    "Element",
    "Patch",
    "escape_segment",
    "format_pointer",
    "parse_pointer",
    "unescape_segment",
    "apply_patch",
    "apply_patches",
    "build_document",
    "json_equal",
]
