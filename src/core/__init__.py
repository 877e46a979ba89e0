"""核心模块"""

from .constants import *
from .config import load_config
from .errors import (
    PatchError,
    InvalidPatchPath,
    PatchTestFailed,
    UnsupportedPatchOperation,
    UpstreamError,
)

__all__ = [
    'PORT_API',
    'HOST_API',
    'CONFIG_FILE',
    'EVENT_TEXT_START',
    'EVENT_TEXT_DELTA',
    'EVENT_TEXT_END',
    'EVENT_DOCUMENT_UPDATED',
    'EVENT_TEXT_SEGMENT',
    'EVENT_PATCH_ERROR',
    'EVENT_ERROR',
    'POLICY_SKIP',
    'POLICY_HALT',
    'load_config',
    'PatchError',
    'InvalidPatchPath',
    'PatchTestFailed',
    'UnsupportedPatchOperation',
    'UpstreamError',
]
