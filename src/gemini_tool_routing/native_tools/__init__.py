"""Native Gemini tool routing and grounding helpers."""

from gemini_tool_routing.native_tools.citations import CitationsProcessor
from gemini_tool_routing.native_tools.manager import CitationRewriter, ToolConfigurationResolver
from gemini_tool_routing.native_tools.payloads import to_gemini_tools_payload, to_wire_tools_payload

__all__ = [
    "CitationRewriter",
    "CitationsProcessor",
    "ToolConfigurationResolver",
    "to_gemini_tools_payload",
    "to_wire_tools_payload",
]
