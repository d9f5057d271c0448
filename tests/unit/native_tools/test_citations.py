"""Tests for inline citation rewriting and grounding details."""

from __future__ import annotations

from google.genai import types as genai_types
from structlog.testing import capture_logs

from gemini_tool_routing.models import NativeToolsEnvSettings
from gemini_tool_routing.native_tools.citations import CitationsProcessor

TEXT = "Paris is the capital of France. It hosts the Louvre."


def _metadata() -> genai_types.GroundingMetadata:
    return genai_types.GroundingMetadata(
        grounding_chunks=[
            genai_types.GroundingChunk(
                web=genai_types.GroundingChunkWeb(uri="https://example.com/paris", title="Paris"),
            ),
            genai_types.GroundingChunk(
                web=genai_types.GroundingChunkWeb(uri="https://example.com/louvre", title="Louvre"),
            ),
        ],
        grounding_supports=[
            genai_types.GroundingSupport(
                segment=genai_types.Segment(text="Paris is the capital of France."),
                grounding_chunk_indices=[0],
            ),
            genai_types.GroundingSupport(
                segment=genai_types.Segment(text="It hosts the Louvre."),
                grounding_chunk_indices=[1, 0, 1],
            ),
        ],
        web_search_queries=["capital of France"],
        search_entry_point=genai_types.SearchEntryPoint(rendered_content="<div>search</div>"),
    )


def _processor(**flags: bool) -> CitationsProcessor:
    return CitationsProcessor(NativeToolsEnvSettings(enable_inline_citations=True, **flags))


def test_process_chunk_inserts_markers_after_segments() -> None:
    """Markers follow each grounded segment with sorted unique indices."""
    rewritten = _processor().process_chunk(TEXT, _metadata())

    assert rewritten == "Paris is the capital of France.[1] It hosts the Louvre.[1][2]"


def test_process_chunk_is_idempotent() -> None:
    """Already cited segments are not cited twice."""
    processor = _processor()
    once = processor.process_chunk(TEXT, _metadata())

    assert processor.process_chunk(once, _metadata()) == once


def test_process_chunk_adds_only_missing_markers() -> None:
    """A partially cited segment gains the missing indices after the existing run."""
    metadata = genai_types.GroundingMetadata(
        grounding_chunks=_metadata().grounding_chunks,
        grounding_supports=[
            genai_types.GroundingSupport(
                segment=genai_types.Segment(text="Paris is the capital of France."),
                grounding_chunk_indices=[0, 1],
            ),
        ],
    )

    rewritten = _processor().process_chunk("Paris is the capital of France.[1] It hosts the Louvre.", metadata)

    assert rewritten == "Paris is the capital of France.[1][2] It hosts the Louvre."


def test_process_chunk_disabled_returns_text() -> None:
    """Without inline citations enabled, text passes through."""
    processor = CitationsProcessor(NativeToolsEnvSettings(enable_inline_citations=False))

    assert processor.process_chunk(TEXT, _metadata()) == TEXT


def test_process_chunk_without_metadata_returns_text() -> None:
    """Missing metadata leaves the text alone."""
    assert _processor().process_chunk(TEXT) == TEXT


def test_process_chunk_accepts_raw_camel_case_mapping() -> None:
    """REST-shaped metadata dictionaries are understood."""
    metadata = {
        "groundingChunks": [{"web": {"uri": "https://example.com/paris", "title": "Paris"}}],
        "groundingSupports": [
            {"segment": {"endIndex": 31, "text": "Paris is the capital of France."}, "groundingChunkIndices": [0]},
        ],
    }

    assert _processor().process_chunk(TEXT, metadata) == "Paris is the capital of France.[1] It hosts the Louvre."


def test_process_chunk_ignores_unmatched_and_out_of_range_supports() -> None:
    """Supports pointing outside the text or chunk list are skipped."""
    metadata = genai_types.GroundingMetadata(
        grounding_chunks=[genai_types.GroundingChunk(web=genai_types.GroundingChunkWeb(uri="u", title="t"))],
        grounding_supports=[
            genai_types.GroundingSupport(segment=genai_types.Segment(text="Berlin"), grounding_chunk_indices=[0]),
            genai_types.GroundingSupport(
                segment=genai_types.Segment(text="It hosts the Louvre."),
                grounding_chunk_indices=[5],
            ),
        ],
    )

    assert _processor().process_chunk(TEXT, metadata) == TEXT


def test_invalid_metadata_is_logged_and_ignored() -> None:
    """Malformed metadata never raises."""
    processor = _processor()
    assert processor.logger is not None

    with capture_logs() as logs:
        rewritten = processor.process_chunk(TEXT, {"groundingSupports": "not-a-list"})

    assert rewritten == TEXT
    assert any(entry["event"] == "grounding_metadata_invalid" for entry in logs)


def test_grounding_details_lists_sources_and_queries() -> None:
    """Sources are numbered to match the inline markers."""
    details = _processor().grounding_details(_metadata())

    assert details == {
        "web_search_queries": ["capital of France"],
        "sources": [
            {"index": 1, "title": "Paris", "uri": "https://example.com/paris"},
            {"index": 2, "title": "Louvre", "uri": "https://example.com/louvre"},
        ],
    }


def test_grounding_details_includes_entry_point_when_enabled() -> None:
    """The rendered search entry point is opt-in."""
    details = _processor(include_search_entry_point=True).grounding_details(_metadata())

    assert details is not None
    assert details["search_entry_point"] == "<div>search</div>"


def test_grounding_details_disabled() -> None:
    """Grounding details can be switched off entirely."""
    assert _processor(include_grounding_metadata=False).grounding_details(_metadata()) is None
    assert _processor().grounding_details(None) is None
