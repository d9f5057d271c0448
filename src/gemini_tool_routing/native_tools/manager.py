"""Decide which tools accompany a single Gemini request."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol

from gemini_tool_routing.logger import BaseComponent
from gemini_tool_routing.models import (
    GOOGLE_SEARCH,
    URL_CONTEXT,
    NativeToolDescriptor,
    NativeToolsEnvSettings,
    NativeToolsRequestParams,
    ToolsConfiguration,
    ToolSource,
    ToolsPriority,
)
from gemini_tool_routing.native_tools.citations import CitationsProcessor
from gemini_tool_routing.settings import Settings, settings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gemini_tool_routing.models import CustomToolInput
    from gemini_tool_routing.native_tools.citations import GroundingMetadataInput


class CitationRewriter(Protocol):
    """Anything able to rewrite citation markers and summarize grounding sources."""

    def process_chunk(self, text: str, grounding_metadata: GroundingMetadataInput = None) -> str:
        """Return the rewritten text."""
        ...

    def grounding_details(self, grounding_metadata: GroundingMetadataInput) -> dict[str, object] | None:
        """Return grounding sources for the response, or None when disabled."""
        ...


class ToolConfigurationResolver(BaseComponent):
    """Resolve native versus custom tools from environment and request settings.

    The Gemini endpoint rejects requests mixing native search tools
    (``google_search`` / ``url_context``) with function tools, so every
    resolution picks exactly one family.
    """

    def __init__(
        self,
        source: Settings | Mapping[str, str] | None = None,
        *,
        citations: CitationRewriter | None = None,
    ) -> None:
        """Parse the environment flags once and wire the citation collaborator."""
        if source is None:
            app_settings = settings
        elif isinstance(source, Settings):
            app_settings = source
        else:
            app_settings = Settings.model_validate(dict(source))
        self._env = NativeToolsEnvSettings.from_settings(app_settings)
        self._citations: CitationRewriter = citations if citations is not None else CitationsProcessor(self._env)

    @property
    def env_settings(self) -> NativeToolsEnvSettings:
        """Return the frozen environment snapshot."""
        return self._env

    def resolve_configuration(
        self,
        custom_tools: Sequence[CustomToolInput],
        request_params: NativeToolsRequestParams | None,
        model_id: str,
    ) -> ToolsConfiguration:
        """Return the tool decision for one request."""
        params = request_params or NativeToolsRequestParams()

        if not self._env.enable_native_tools:
            return self._custom_only(custom_tools, rule="native_tools_disabled")

        if self._env.allow_request_control and params.enable_native_tools is False:
            return self._custom_only(custom_tools, rule="request_disabled_native")

        native_available = self._env.enable_google_search or self._env.enable_url_context
        explicitly_requested = self._env.allow_request_control and any(
            flag is True
            for flag in (params.enable_native_tools, params.enable_search, params.enable_url_context)
        )
        # never auto-enable native tools next to caller function tools
        defaulted_on = self._env.default_to_native_tools and not custom_tools

        if native_available and (explicitly_requested or defaulted_on):
            return self._break_tie(custom_tools, params, model_id)

        return self._custom_only(custom_tools, rule="native_not_requested")

    def build_native_tools(
        self,
        request_params: NativeToolsRequestParams | None,
        model_id: str,
    ) -> tuple[NativeToolDescriptor, ...]:
        """Return the native tools to attach; Search and URL Context are never combined."""
        params = request_params or NativeToolsRequestParams()
        tools: list[NativeToolDescriptor] = []

        search_enabled = _resolve_flag(params.enable_search, default=self._env.enable_google_search)
        if search_enabled and not self.is_legacy_model(model_id):
            tools.append(GOOGLE_SEARCH)

        url_context_enabled = _resolve_flag(params.enable_url_context, default=self._env.enable_url_context)
        if url_context_enabled and not search_enabled:
            tools.append(URL_CONTEXT)

        return tuple(tools)

    def rewrite_citations(self, text: str, grounding_metadata: GroundingMetadataInput = None) -> str:
        """Delegate citation rewriting to the configured collaborator."""
        return self._citations.process_chunk(text, grounding_metadata)

    def grounding_details(self, grounding_metadata: GroundingMetadataInput) -> dict[str, object] | None:
        """Delegate grounding summaries to the configured collaborator."""
        return self._citations.grounding_details(grounding_metadata)

    def is_legacy_model(self, model_id: str) -> bool:
        """Legacy model families do not support the Search tool."""
        return self._env.legacy_model_marker in model_id

    def _break_tie(
        self,
        custom_tools: Sequence[CustomToolInput],
        params: NativeToolsRequestParams,
        model_id: str,
    ) -> ToolsConfiguration:
        native_tools = self.build_native_tools(params, model_id)

        if (
            self._env.priority is ToolsPriority.NATIVE_FIRST
            or params.native_tools_priority is ToolSource.NATIVE
        ):
            return self._native(native_tools, model_id, rule="native_priority")

        if (
            self._env.priority is ToolsPriority.CUSTOM_FIRST
            or params.native_tools_priority is ToolSource.CUSTOM
        ) and custom_tools:
            return self._custom_only(custom_tools, rule="custom_priority")

        return self._native(native_tools, model_id, rule="native_fallback")

    def _native(
        self,
        native_tools: tuple[NativeToolDescriptor, ...],
        model_id: str,
        *,
        rule: str,
    ) -> ToolsConfiguration:
        configuration = ToolsConfiguration.native(native_tools)
        self.log_decision(rule, model=model_id, native_tools=configuration.native_kinds())
        return configuration

    def _custom_only(self, custom_tools: Sequence[CustomToolInput], *, rule: str) -> ToolsConfiguration:
        self.log_decision(rule, custom_tool_count=len(custom_tools))
        return ToolsConfiguration.custom_only(custom_tools)


def _resolve_flag(requested: bool | None, *, default: bool) -> bool:
    if requested is None:
        return default
    return requested
