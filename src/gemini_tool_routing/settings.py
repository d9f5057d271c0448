from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gemini_tool_routing.models import ToolsPriority

LogDestination = Literal["stdout", "file", "both"]


def parse_opt_in_flag(value: object) -> bool:
    """Return True only when the raw value spells ``true``."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() == "true"


def parse_opt_out_flag(value: object) -> bool:
    """Return True unless the raw value spells ``false``."""
    if isinstance(value, bool):
        return value
    if value is None:
        return True
    return str(value).strip().lower() != "false"


def parse_tools_priority(value: object) -> ToolsPriority:
    """Map a raw priority string onto :class:`ToolsPriority`, defaulting to native first."""
    if isinstance(value, ToolsPriority):
        return value
    try:
        return ToolsPriority(str(value).strip().lower())
    except ValueError:
        return ToolsPriority.NATIVE_FIRST


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    enable_native_tools: bool = Field(
        default=False,
        validation_alias=AliasChoices("ENABLE_NATIVE_TOOLS", "ENABLE_GEMINI_NATIVE_TOOLS"),
    )
    enable_google_search: bool = Field(default=False, validation_alias="ENABLE_GOOGLE_SEARCH")
    enable_url_context: bool = Field(default=False, validation_alias="ENABLE_URL_CONTEXT")
    tools_priority: ToolsPriority = Field(
        default=ToolsPriority.NATIVE_FIRST,
        validation_alias=AliasChoices("TOOLS_PRIORITY", "GEMINI_TOOLS_PRIORITY"),
    )
    default_to_native_tools: bool = Field(default=True, validation_alias="DEFAULT_TO_NATIVE_TOOLS")
    allow_request_tool_control: bool = Field(default=True, validation_alias="ALLOW_REQUEST_TOOL_CONTROL")
    enable_inline_citations: bool = Field(default=False, validation_alias="ENABLE_INLINE_CITATIONS")
    include_grounding_metadata: bool = Field(default=True, validation_alias="INCLUDE_GROUNDING_METADATA")
    include_search_entry_point: bool = Field(default=False, validation_alias="INCLUDE_SEARCH_ENTRY_POINT")
    legacy_model_marker: str = Field(default="gemini-1.5", validation_alias="LEGACY_MODEL_MARKER", min_length=1)
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_destination: LogDestination = Field(default="stdout", validation_alias="LOG_DESTINATION")
    log_file_path: str = Field(default="logs/app.log", validation_alias="LOG_FILE_PATH")
    log_verbose: bool = Field(default=False, validation_alias="LOG_VERBOSE")
    allow_sensitive_logging: bool = Field(default=False, validation_alias="ALLOW_SENSITIVE_LOGGING")
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    @field_validator(
        "enable_native_tools",
        "enable_google_search",
        "enable_url_context",
        "enable_inline_citations",
        "include_search_entry_point",
        mode="before",
    )
    @classmethod
    def _opt_in(cls, value: object) -> bool:
        return parse_opt_in_flag(value)

    @field_validator(
        "default_to_native_tools",
        "allow_request_tool_control",
        "include_grounding_metadata",
        mode="before",
    )
    @classmethod
    def _opt_out(cls, value: object) -> bool:
        return parse_opt_out_flag(value)

    @field_validator("tools_priority", mode="before")
    @classmethod
    def _priority(cls, value: object) -> ToolsPriority:
        return parse_tools_priority(value)


settings = Settings()
