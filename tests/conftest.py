"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Iterator

_ENV_KEYS = (
    "ENABLE_NATIVE_TOOLS",
    "ENABLE_GEMINI_NATIVE_TOOLS",
    "ENABLE_GOOGLE_SEARCH",
    "ENABLE_URL_CONTEXT",
    "TOOLS_PRIORITY",
    "GEMINI_TOOLS_PRIORITY",
    "DEFAULT_TO_NATIVE_TOOLS",
    "ALLOW_REQUEST_TOOL_CONTROL",
    "ENABLE_INLINE_CITATIONS",
    "INCLUDE_GROUNDING_METADATA",
    "INCLUDE_SEARCH_ENTRY_POINT",
    "LEGACY_MODEL_MARKER",
    "LOG_LEVEL",
    "LOG_DESTINATION",
    "LOG_FILE_PATH",
    "LOG_VERBOSE",
    "ALLOW_SENSITIVE_LOGGING",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep host environment flags out of settings under test."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield
