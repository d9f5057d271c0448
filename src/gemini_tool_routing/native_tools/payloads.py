"""Helpers for converting a tools configuration into Gemini payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, cast

from google.genai import types as genai_types

from gemini_tool_routing.models import CustomTool, NativeToolDescriptor, NativeToolKind

if TYPE_CHECKING:
    from gemini_tool_routing.models import ToolsConfiguration


def _native_tool(descriptor: NativeToolDescriptor) -> genai_types.Tool:
    if descriptor.kind is NativeToolKind.GOOGLE_SEARCH:
        return genai_types.Tool(google_search=genai_types.GoogleSearch())
    return genai_types.Tool(url_context=genai_types.UrlContext())


def as_custom_tool(tool: object) -> CustomTool:
    """Normalize a caller tool, unwrapping the OpenAI ``{"type": "function"}`` envelope."""
    if isinstance(tool, CustomTool):
        return tool
    if not isinstance(tool, Mapping):
        message = f"Unsupported custom tool payload: {type(tool).__name__}"
        raise TypeError(message)
    mapping = cast("Mapping[str, Any]", tool)
    function_payload = mapping.get("function")
    if mapping.get("type") == "function" and isinstance(function_payload, Mapping):
        return CustomTool.model_validate(dict(cast("Mapping[str, Any]", function_payload)))
    return CustomTool.model_validate(dict(mapping))


def _function_declaration(tool: CustomTool) -> genai_types.FunctionDeclaration:
    return genai_types.FunctionDeclaration(
        name=tool.name,
        description=tool.description,
        parameters_json_schema=tool.parameters,
    )


def to_gemini_tools_payload(configuration: ToolsConfiguration) -> list[genai_types.Tool]:
    """Convert a configuration to the `tools` argument of ``generate_content``."""
    if configuration.use_native_tools:
        return [_native_tool(descriptor) for descriptor in configuration.native_tools]
    if not configuration.custom_tools:
        return []
    declarations = [_function_declaration(as_custom_tool(tool)) for tool in configuration.custom_tools]
    return [genai_types.Tool(function_declarations=declarations)]


def to_wire_tools_payload(configuration: ToolsConfiguration) -> list[dict[str, object]]:
    """Convert a configuration to the REST `tools` JSON array."""
    if configuration.use_native_tools:
        return [descriptor.to_wire() for descriptor in configuration.native_tools]
    if not configuration.custom_tools:
        return []
    declarations = [as_custom_tool(tool).model_dump(exclude_none=True) for tool in configuration.custom_tools]
    return [{"functionDeclarations": declarations}]
