# tests/test_verifier.py
"""
Tests for evidence selection, per-chunk verification and merging.
"""

from datetime import date

import pytest

from app.services.chunking import Chunk
from app.services.evidence_gatherer import Evidence
from app.services.verifier import (
    ChunkVerifier,
    EvidenceSelector,
    format_evidence,
    merge_chunk_outputs,
)
from app.services.web_search import SearchResult


def _evidence(claim: str, found: bool = True) -> Evidence:
    results = (SearchResult(title="Source", snippet="x" * 500, url="https://example.com"),) if found else ()
    return Evidence(claim_text=claim, query=claim, results=results)


CHUNK_TEXT = (
    "The Federal Reserve raised interest rates in March. "
    "Unemployment stayed low through the summer while wages climbed."
)


class TestEvidenceSelector:
    """Relevance matching between a chunk and gathered evidence."""

    def test_word_matches_select_relevant(self):
        evidence = [
            _evidence("Federal Reserve raised interest rates"),
            _evidence("Unemployment stayed remarkably low"),
            _evidence("Wages climbed faster than prices"),
            _evidence("Glaciers retreated across Patagonia"),
        ]
        selected = EvidenceSelector().select(CHUNK_TEXT, evidence)
        assert [e.claim_text for e in selected] == [e.claim_text for e in evidence[:3]]

    def test_prefix_match_is_case_insensitive(self):
        selector = EvidenceSelector(min_matches=1)
        evidence = [_evidence("THE FEDERAL RESERVE RAISED INTEREST RATES IN MARCH, said officials")]
        assert selector.select(CHUNK_TEXT, evidence) == evidence

    def test_single_word_match_is_not_enough(self):
        selector = EvidenceSelector(min_matches=1)
        assert not selector.is_relevant(CHUNK_TEXT.lower(), _evidence("Reserve currencies in Asia"))

    def test_too_few_matches_falls_back_to_all_capped(self):
        evidence = [_evidence(f"Unrelated topic number {i}") for i in range(50)]
        selected = EvidenceSelector().select(CHUNK_TEXT, evidence)
        assert selected == evidence[:40]

    def test_constants_are_configurable(self):
        evidence = [_evidence("Unrelated topic")] * 5
        assert len(EvidenceSelector(fallback_cap=2).select(CHUNK_TEXT, evidence)) == 2

    def test_fallback_keeps_relevant_entries_ahead_of_cap(self):
        filler = [_evidence(f"Unrelated topic number {i}") for i in range(45)]
        match = _evidence("Federal Reserve raised interest rates")
        evidence = filler + [match]

        selected = EvidenceSelector().select(CHUNK_TEXT, evidence)

        assert len(selected) == 40
        assert selected[0] is match
        assert selected[1:] == filler[:39]


class TestFormatting:
    def test_format_evidence_truncates_snippets_and_notes_misses(self):
        block = format_evidence([_evidence("Claim A"), _evidence("Claim B", found=False)])
        assert "[1] Claim: Claim A" in block
        assert "x" * 300 in block and "x" * 301 not in block
        assert "No results found." in block

    def test_merge_joins_with_blank_line(self):
        assert merge_chunk_outputs(["one", "two", "three"]) == "one\n\ntwo\n\nthree"


class TestChunkVerifier:
    @pytest.mark.asyncio
    async def test_sends_chunk_and_selected_evidence(self, fake_llm):
        provider = fake_llm(lambda prompt, call_type: "  [[VERIFIED: rates rose | Source]]  ")
        chunk = Chunk(index=1, text=CHUNK_TEXT, source_offset_hint="paragraphs 3-4")

        output = await ChunkVerifier(provider).verify(
            chunk, [_evidence("Federal Reserve raised interest rates")], date(2026, 3, 1), total_chunks=3
        )

        assert output == "[[VERIFIED: rates rose | Source]]"
        prompt = provider.calls_of("verify_chunk")[0]
        assert "part 2 of 3" in prompt
        assert "Federal Reserve raised interest rates" in prompt
        assert "2026-03-01" in prompt

    @pytest.mark.asyncio
    async def test_empty_reply_raises(self, fake_llm):
        provider = fake_llm(lambda prompt, call_type: "   ")
        chunk = Chunk(index=0, text="Text.", source_offset_hint="paragraph 1")
        with pytest.raises(ValueError):
            await ChunkVerifier(provider).verify(chunk, [], date(2026, 3, 1))

    @pytest.mark.asyncio
    async def test_blank_chunk_skips_model(self, fake_llm):
        provider = fake_llm(lambda prompt, call_type: "[[VERIFIED: x]]")
        chunk = Chunk(index=0, text="  \n", source_offset_hint="paragraph 1")

        output = await ChunkVerifier(provider).verify(chunk, [_evidence("Claim A")], date(2026, 3, 1))

        assert output == "  \n"
        assert provider.calls == []
