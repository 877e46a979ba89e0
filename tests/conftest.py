"""Shared test fixtures."""

from typing import Any

import pytest

from src.core.constants import POLICY_SKIP


@pytest.fixture
def app_config() -> dict[str, Any]:
    return {
        "host": "127.0.0.1",
        "port": 7860,
        "on_invalid_patch": POLICY_SKIP,
        "debug": False,
        "cors_origins": ["*"],
        "upstream": {"url": "", "timeout": 5.0, "headers": {}},
    }
