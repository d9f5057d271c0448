"""Shared Pydantic data models used by the tool routing components."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any, TypeAlias

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from gemini_tool_routing.settings import Settings


class ToolsPriority(StrEnum):
    """Environment-wide preference when native and custom tools compete."""

    NATIVE_FIRST = "native_first"
    CUSTOM_FIRST = "custom_first"


class ToolSource(StrEnum):
    """Which family of tools a request prefers or a configuration uses."""

    NATIVE = "native"
    CUSTOM = "custom"


class ToolType(StrEnum):
    """Label attached to a resolved configuration."""

    SEARCH_AND_URL = "search_and_url"
    CUSTOM_ONLY = "custom_only"


class NativeToolKind(StrEnum):
    """Native tools executed by the Gemini API itself."""

    GOOGLE_SEARCH = "google_search"
    URL_CONTEXT = "url_context"


class NativeToolDescriptor(BaseModel):
    """Tagged marker for a single native tool; carries no payload."""

    model_config = ConfigDict(frozen=True)

    kind: NativeToolKind

    def to_wire(self) -> dict[str, dict[str, object]]:
        """Return the REST representation, e.g. ``{"google_search": {}}``."""
        return {self.kind.value: {}}


GOOGLE_SEARCH = NativeToolDescriptor(kind=NativeToolKind.GOOGLE_SEARCH)
URL_CONTEXT = NativeToolDescriptor(kind=NativeToolKind.URL_CONTEXT)


class CustomTool(BaseModel):
    """Caller-defined function tool forwarded to the API as-is."""

    model_config = ConfigDict(extra="allow", frozen=True)

    name: str = Field(min_length=1)
    description: str | None = None
    parameters: dict[str, Any] | None = None


CustomToolInput: TypeAlias = "CustomTool | Mapping[str, Any]"


def _tri_state(value: object) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


class NativeToolsRequestParams(BaseModel):
    """Per-request tool overrides; ``None`` means the caller did not say."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    enable_native_tools: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("enable_native_tools", "enableNativeTools"),
    )
    enable_search: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("enable_search", "enableSearch"),
    )
    enable_url_context: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("enable_url_context", "enableUrlContext"),
    )
    native_tools_priority: ToolSource | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "native_tools_priority",
            "nativeToolsPriority",
            "tools_priority",
            "toolsPriority",
        ),
    )

    @field_validator("enable_native_tools", "enable_search", "enable_url_context", mode="before")
    @classmethod
    def _coerce_flag(cls, value: object) -> bool | None:
        return _tri_state(value)

    @field_validator("native_tools_priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: object) -> ToolSource | None:
        if isinstance(value, ToolSource):
            return value
        if not isinstance(value, str):
            return None
        try:
            return ToolSource(value.strip().lower())
        except ValueError:
            return None


class NativeToolsEnvSettings(BaseModel):
    """Frozen snapshot of the environment flags that drive tool resolution."""

    model_config = ConfigDict(frozen=True)

    enable_native_tools: bool = False
    enable_google_search: bool = False
    enable_url_context: bool = False
    priority: ToolsPriority = ToolsPriority.NATIVE_FIRST
    default_to_native_tools: bool = True
    allow_request_control: bool = True
    enable_inline_citations: bool = False
    include_grounding_metadata: bool = True
    include_search_entry_point: bool = False
    legacy_model_marker: str = "gemini-1.5"

    @classmethod
    def from_settings(cls, app_settings: Settings) -> NativeToolsEnvSettings:
        """Copy the tool-related flags out of application settings."""
        return cls(
            enable_native_tools=app_settings.enable_native_tools,
            enable_google_search=app_settings.enable_google_search,
            enable_url_context=app_settings.enable_url_context,
            priority=app_settings.tools_priority,
            default_to_native_tools=app_settings.default_to_native_tools,
            allow_request_control=app_settings.allow_request_tool_control,
            enable_inline_citations=app_settings.enable_inline_citations,
            include_grounding_metadata=app_settings.include_grounding_metadata,
            include_search_entry_point=app_settings.include_search_entry_point,
            legacy_model_marker=app_settings.legacy_model_marker,
        )


class ToolsConfiguration(BaseModel):
    """Tool decision for one outbound request."""

    model_config = ConfigDict(frozen=True)

    use_native_tools: bool
    use_custom_tools: bool
    native_tools: tuple[NativeToolDescriptor, ...] = ()
    # caller payloads are opaque and forwarded untouched
    custom_tools: tuple[Any, ...] | None = None
    priority: ToolSource
    tool_type: ToolType

    @model_validator(mode="after")
    def _check_exclusive(self) -> ToolsConfiguration:
        """The upstream API rejects native search tools mixed with function tools."""
        if self.use_native_tools and self.use_custom_tools:
            message = "Native and custom tools cannot be used in the same request"
            raise ValueError(message)
        if self.use_native_tools and self.custom_tools is not None:
            message = "Native configurations must not carry custom tools"
            raise ValueError(message)
        if self.use_custom_tools and self.native_tools:
            message = "Custom configurations must not carry native tools"
            raise ValueError(message)
        return self

    @classmethod
    def native(cls, native_tools: Iterable[NativeToolDescriptor]) -> ToolsConfiguration:
        """Build a native-only configuration."""
        return cls(
            use_native_tools=True,
            use_custom_tools=False,
            native_tools=tuple(native_tools),
            custom_tools=None,
            priority=ToolSource.NATIVE,
            tool_type=ToolType.SEARCH_AND_URL,
        )

    @classmethod
    def custom_only(cls, custom_tools: Iterable[CustomToolInput]) -> ToolsConfiguration:
        """Build a configuration that forwards the caller's tools untouched."""
        return cls(
            use_native_tools=False,
            use_custom_tools=True,
            native_tools=(),
            custom_tools=tuple(custom_tools),
            priority=ToolSource.CUSTOM,
            tool_type=ToolType.CUSTOM_ONLY,
        )

    def native_kinds(self) -> list[str]:
        """Return the native tool kinds in emission order."""
        return [tool.kind.value for tool in self.native_tools]
