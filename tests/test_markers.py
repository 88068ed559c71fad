# tests/test_markers.py
"""
Tests for findings-list parsing, global numbering and verdict parsing.
"""

import re

from app.constants import MarkerTags
from app.services.markers import (
    CLAIM_MARKERS,
    ISSUE_MARKERS,
    FindingNumberer,
    parse_findings_list,
    parse_verdicts,
)


class TestParseFindingsList:
    """Each list item is tried against progressively looser forms."""

    def test_strict_arrow_and_parenthesized_reason(self):
        [finding] = parse_findings_list('1. "teh" -> "the" (spelling)')
        assert finding.original_text == "teh"
        assert finding.replacement_text == "the"
        assert finding.rationale == "spelling"

    def test_arrow_with_dash_reason_and_curly_quotes(self):
        [finding] = parse_findings_list("1. “recieve” → “receive” — common misspelling")
        assert (finding.original_text, finding.replacement_text) == ("recieve", "receive")
        assert finding.rationale == "common misspelling"

    def test_quote_dash_form(self):
        [finding] = parse_findings_list('1. "GDP grew 3%" - check against BEA release')
        assert finding.original_text == "GDP grew 3%"
        assert finding.replacement_text is None
        assert finding.rationale == "check against BEA release"

    def test_plain_numbered_line(self):
        [finding] = parse_findings_list("1. The second paragraph repeats the first.")
        assert finding.original_text is None
        assert finding.rationale == "The second paragraph repeats the first."

    def test_mixed_forms_and_continuation_lines(self):
        listing = '\n1. "a" -> "b" (x)\n2. Overall tone is uneven\n   across sections.\n3) "c" - y\n'
        findings = parse_findings_list(listing)
        assert [f.original_text for f in findings] == ["a", None, "c"]
        assert findings[1].rationale == "Overall tone is uneven across sections."


class TestFindingNumberer:
    """Renumbering markers and findings across chunks."""

    def test_numbers_continue_across_chunks(self):
        numberer = FindingNumberer(ISSUE_MARKERS)
        first = 'A [[ISSUE: teh]] cat.\n\n---ISSUES---\n1. "teh" -> "the" (spelling)'
        second = 'B [[ISSUE: dgo]] and [[ISSUE: its]].\n\n---ISSUES---\n1. "dgo" -> "dog" (spelling)\n2. "its" -> "it\'s" (contraction)'

        chunk1, next_number = numberer.number_chunk(first, 1)
        chunk2, next_number = numberer.number_chunk(second, next_number)

        assert chunk1.text == "A [[ISSUE #1: teh]] cat."
        assert chunk2.text == "B [[ISSUE #2: dgo]] and [[ISSUE #3: its]]."
        assert [f.number for f in chunk1.findings + chunk2.findings] == [1, 2, 3]
        assert chunk2.findings[1].replacement_text == "it's"
        assert next_number == 4

    def test_repeated_marker_text_shares_number(self):
        """Case and whitespace differences still reuse the first number."""
        output = "[[ISSUE: Teh  cat]] and again [[ISSUE: teh cat]].\n---ISSUES---\n1. \"Teh cat\" -> \"The cat\" (case)"
        chunk, next_number = FindingNumberer(ISSUE_MARKERS).number_chunk(output, 5)

        assert chunk.text == "[[ISSUE #5: Teh  cat]] and again [[ISSUE #5: teh cat]]."
        assert len(chunk.findings) == 1
        assert next_number == 6

    def test_match_by_text_before_position(self):
        output = (
            "[[ISSUE: alpha]] then [[ISSUE: beta]]\n---ISSUES---\n"
            '1. "beta" -> "Beta" (caps)\n2. "alpha" -> "Alpha" (caps)'
        )
        chunk, _ = FindingNumberer(ISSUE_MARKERS).number_chunk(output, 1)
        assert [(f.number, f.replacement_text) for f in chunk.findings] == [(1, "Alpha"), (2, "Beta")]

    def test_positional_fallback_when_text_differs(self):
        output = "Some [[ISSUE: wierd phrasing]] here\n---ISSUES---\n1. Rephrase for clarity"
        chunk, _ = FindingNumberer(ISSUE_MARKERS).number_chunk(output, 1)
        assert chunk.findings[0].rationale == "Rephrase for clarity"
        assert chunk.findings[0].original_text == "wierd phrasing"

    def test_unmatched_marker_gets_placeholder(self):
        """Markers are never dropped, even without a list entry."""
        chunk, next_number = FindingNumberer(ISSUE_MARKERS).number_chunk("Text [[ISSUE: oops]] end.", 1)
        assert chunk.text == "Text [[ISSUE #1: oops]] end."
        assert chunk.findings[0].rationale == MarkerTags.MISSING_RATIONALE
        assert next_number == 2

    def test_unmarked_finding_wraps_first_occurrence(self):
        output = "The dog and the dog.\n---ISSUES---\n1. \"dog\" -> \"hound\" (word choice)"
        chunk, next_number = FindingNumberer(ISSUE_MARKERS).number_chunk(output, 3)
        assert chunk.text == "The [[ISSUE #3: dog]] and the dog."
        assert chunk.findings[0].replacement_text == "hound"
        assert next_number == 4

    def test_unmarked_finding_not_in_text_is_dropped(self):
        output = "Clean text.\n---ISSUES---\n1. \"missing\" -> \"gone\" (n/a)"
        chunk, next_number = FindingNumberer(ISSUE_MARKERS).number_chunk(output, 1)
        assert chunk.findings == ()
        assert chunk.text == "Clean text."
        assert next_number == 1

    def test_every_marker_maps_to_one_finding(self):
        output = "[[ISSUE: a1]] [[ISSUE: b2]] [[ISSUE: a1]] [[ISSUE: c3]]\n---ISSUES---\n1. \"b2\" -> \"B2\" (x)"
        chunk, _ = FindingNumberer(ISSUE_MARKERS).number_chunk(output, 1)
        numbers_in_text = sorted({int(n) for n in re.findall(r"#(\d+):", chunk.text)})
        assert numbers_in_text == [f.number for f in chunk.findings]

    def test_claim_markers_and_header(self):
        output = (
            "Officials said [[CLAIM: turnout was 67%]].\n\n---CLAIMS---\n"
            '1. "turnout was 67%" - confirm with the election commission'
        )
        chunk, _ = FindingNumberer(CLAIM_MARKERS).number_chunk(output, 1)
        assert chunk.text == "Officials said [[CLAIM #1: turnout was 67%]]."
        assert chunk.findings[0].rationale == "confirm with the election commission"

    def test_marker_spanning_line_break(self):
        output = 'A [[ISSUE: broken\nline]] here.\n\n---ISSUES---\n1. "broken line" -> "whole line" (hyphenation)'
        chunk, next_number = FindingNumberer(ISSUE_MARKERS).number_chunk(output, 1)

        assert chunk.text == "A [[ISSUE #1: broken\nline]] here."
        [finding] = chunk.findings
        assert finding.replacement_text == "whole line"
        assert finding.rationale == "hyphenation"
        assert next_number == 2

    def test_unmarked_finding_across_line_break_is_wrapped(self):
        output = 'Its a long\nsentence.\n---ISSUES---\n1. "long sentence" -> "short one" (length)'
        chunk, _ = FindingNumberer(ISSUE_MARKERS).number_chunk(output, 1)
        assert chunk.text == "Its a [[ISSUE #1: long\nsentence]]."
        assert chunk.findings[0].replacement_text == "short one"

    def test_wrapped_finding_numbered_in_document_order(self):
        """A finding wrapped ahead of an existing marker takes the lower number."""
        output = (
            "Teh cat sat. The [[ISSUE: dgo]] ran.\n---ISSUES---\n"
            '1. "Teh" -> "The" (spelling)\n2. "dgo" -> "dog" (spelling)'
        )
        chunk, next_number = FindingNumberer(ISSUE_MARKERS).number_chunk(output, 4)

        assert chunk.text == "[[ISSUE #4: Teh]] cat sat. The [[ISSUE #5: dgo]] ran."
        inline = [int(n) for n in re.findall(r"#(\d+):", chunk.text)]
        assert inline == sorted(inline)
        assert [(f.number, f.replacement_text) for f in chunk.findings] == [(4, "The"), (5, "dog")]
        assert next_number == 6


class TestParseVerdicts:
    def test_all_four_statuses_in_document_order(self):
        text = (
            "[[CHECK_CURRENT: The mayor is Smith | current officeholder]] said "
            "[[VERIFIED: rates rose in March]] and [[INCORRECT: GDP fell 5% | GDP fell 2%]] "
            "while [[QUESTIONABLE: crime doubled | sources disagree]]."
        )
        verdicts = parse_verdicts(text)
        assert [v["status"] for v in verdicts] == ["check_current", "verified", "incorrect", "questionable"]
        assert verdicts[1] == {"status": "verified", "claim": "rates rose in March", "detail": None}
        assert verdicts[2]["detail"] == "GDP fell 2%"

    def test_verdict_spanning_line_break(self):
        text = "Officials said [[INCORRECT: turnout was\n80% | turnout was\n67%]] on Friday."
        assert parse_verdicts(text) == [
            {"status": "incorrect", "claim": "turnout was 80%", "detail": "turnout was 67%"}
        ]
