"""Inline citation rewriting driven by Gemini grounding metadata."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, TypeAlias

from google.genai import types as genai_types
from pydantic import ValidationError

from gemini_tool_routing.logger import BaseComponent

if TYPE_CHECKING:
    from gemini_tool_routing.models import NativeToolsEnvSettings

GroundingMetadataInput: TypeAlias = "genai_types.GroundingMetadata | Mapping[str, object] | None"

_MARKER_RUN = re.compile(r"(?:\[\d+\])+")
_MARKER_NUMBER = re.compile(r"\[(\d+)\]")


class CitationsProcessor(BaseComponent):
    """Insert ``[n]`` source markers after grounded text segments."""

    def __init__(self, env_settings: NativeToolsEnvSettings) -> None:
        """Keep the flags that gate citations and grounding output."""
        self._env = env_settings

    def process_chunk(self, text: str, grounding_metadata: GroundingMetadataInput = None) -> str:
        """Return ``text`` with citation markers added where supports match.

        The text is returned unchanged when inline citations are disabled,
        when no metadata is given, or when no grounding support matches.
        """
        if not self._env.enable_inline_citations or not text:
            return text
        metadata = self._coerce(grounding_metadata)
        if metadata is None:
            return text

        insertions = _collect_insertions(text, metadata)
        if not insertions:
            return text

        rewritten = text
        for position in sorted(insertions, reverse=True):
            rewritten = rewritten[:position] + insertions[position] + rewritten[position:]
        self.log_io("output", citations=len(insertions), text=rewritten)
        return rewritten

    def grounding_details(self, grounding_metadata: GroundingMetadataInput) -> dict[str, object] | None:
        """Summarize search queries and sources for the response payload."""
        if not self._env.include_grounding_metadata:
            return None
        metadata = self._coerce(grounding_metadata)
        if metadata is None:
            return None

        sources: list[dict[str, object]] = [
            {"index": index, "title": chunk.web.title, "uri": chunk.web.uri}
            for index, chunk in enumerate(metadata.grounding_chunks or [], start=1)
            if chunk.web is not None
        ]
        details: dict[str, object] = {
            "web_search_queries": list(metadata.web_search_queries or []),
            "sources": sources,
        }
        entry_point = metadata.search_entry_point
        if self._env.include_search_entry_point and entry_point is not None and entry_point.rendered_content:
            details["search_entry_point"] = entry_point.rendered_content
        return details

    def _coerce(self, grounding_metadata: GroundingMetadataInput) -> genai_types.GroundingMetadata | None:
        if grounding_metadata is None or isinstance(grounding_metadata, genai_types.GroundingMetadata):
            return grounding_metadata
        try:
            return genai_types.GroundingMetadata.model_validate(dict(grounding_metadata))
        except ValidationError as exc:
            self.logger.warning("grounding_metadata_invalid", error_count=exc.error_count())
            return None


def _collect_insertions(text: str, metadata: genai_types.GroundingMetadata) -> dict[int, str]:
    chunk_count = len(metadata.grounding_chunks or [])
    indices_by_position: dict[int, set[int]] = {}
    for support in metadata.grounding_supports or []:
        segment = support.segment
        if segment is None or not segment.text:
            continue
        indices = {index for index in support.grounding_chunk_indices or [] if 0 <= index < chunk_count}
        if not indices:
            continue
        found = text.find(segment.text)
        if found < 0:
            continue
        indices_by_position.setdefault(found + len(segment.text), set()).update(indices)

    insertions: dict[int, str] = {}
    for position, indices in indices_by_position.items():
        # markers already present right after the segment, e.g. on a second pass
        existing = _MARKER_RUN.match(text, position)
        cited = {int(number) - 1 for number in _MARKER_NUMBER.findall(existing.group())} if existing else set()
        missing = indices - cited
        if not missing:
            continue
        end = existing.end() if existing else position
        insertions[end] = "".join(f"[{index + 1}]" for index in sorted(missing))
    return insertions
