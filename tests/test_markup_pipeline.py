# tests/test_markup_pipeline.py
"""
Tests for chunked copy-edit and claim-flag runs.
"""

import pytest

from app.services.errors import MarkupTaskError
from app.services.events import EventSink, EventType
from app.services.markup_pipeline import CLAIM_FLAG_TASK, COPY_EDIT_TASK, MarkupPipeline
from app.services.pipeline_config import PipelineConfig


def _paragraph(i: int) -> str:
    head = f"Paragraph {i} has teh typo."
    return head + " " + "w" * (998 - len(head) - 1)


ARTICLE = "\n\n".join(_paragraph(i) for i in range(9))


def _section(prompt: str, marker: str) -> str:
    return prompt.split(marker, 1)[1]


def copy_edit_responder(prompt, call_type):
    section = _section(prompt, "Section to edit:\n")
    marked = section.replace("teh", "[[ISSUE: teh]]")
    return f'{marked}\n\n---ISSUES---\n1. "teh" -> "the" (spelling)'


class TestCopyEdit:
    """Copy-edit over a three-chunk article."""

    @pytest.mark.asyncio
    async def test_findings_numbered_across_chunks(self, fake_llm):
        provider = fake_llm(copy_edit_responder)
        document = await MarkupPipeline(provider).run(COPY_EDIT_TASK, ARTICLE)

        assert len(provider.calls_of("copyEdit_chunk")) == 3
        assert [f.number for f in document.findings] == [1, 2, 3]
        assert all(f.replacement_text == "the" for f in document.findings)
        # Paragraphs 1-4 share #1, 5-8 share #2, 9 gets #3
        assert document.text.count("[[ISSUE #1: teh]]") == 4
        assert document.text.count("[[ISSUE #2: teh]]") == 4
        assert document.text.count("[[ISSUE #3: teh]]") == 1
        assert document.text.index("Paragraph 0") < document.text.index("Paragraph 8")

    @pytest.mark.asyncio
    async def test_failed_chunk_passes_through_unmarked(self, fake_llm):
        def responder(prompt, call_type):
            if "Paragraph 4 " in prompt:
                return RuntimeError("model overloaded")
            return copy_edit_responder(prompt, call_type)

        document = await MarkupPipeline(fake_llm(responder)).run(COPY_EDIT_TASK, ARTICLE)

        assert document.failed_chunks == 1
        assert [f.number for f in document.findings] == [1, 2]
        assert _paragraph(5) in document.text
        assert document.text.count("[[ISSUE #2: teh]]") == 1

    @pytest.mark.asyncio
    async def test_blank_chunk_not_sent_to_model(self, fake_llm):
        provider = fake_llm(copy_edit_responder)
        article = "\n\n" + "w" * 5000
        document = await MarkupPipeline(provider).run(COPY_EDIT_TASK, article)

        assert len(provider.calls_of("copyEdit_chunk")) == 1
        assert document.failed_chunks == 0
        assert document.findings == ()
        assert document.text.startswith("\n\n" + "w" * 100)

    @pytest.mark.asyncio
    async def test_all_chunks_failing_raises(self, fake_llm):
        provider = fake_llm(lambda prompt, call_type: RuntimeError("down"))
        with pytest.raises(MarkupTaskError):
            await MarkupPipeline(provider).run(COPY_EDIT_TASK, ARTICLE)

    @pytest.mark.asyncio
    async def test_progress_events_per_batch(self, fake_llm):
        sink = EventSink()
        config = PipelineConfig(edit_batch_size=2)
        await MarkupPipeline(fake_llm(copy_edit_responder), config).run(COPY_EDIT_TASK, ARTICLE, sink=sink)

        messages = [e.message for e in sink.of_type(EventType.PROGRESS)]
        assert messages == ["Copy-edited 2 of 3 sections", "Copy-edited 3 of 3 sections"]

    @pytest.mark.asyncio
    async def test_result_dict_shape(self, fake_llm):
        document = await MarkupPipeline(fake_llm(copy_edit_responder)).run(COPY_EDIT_TASK, "Short teh text.")
        payload = document.to_dict()
        assert payload["text"] == "Short [[ISSUE #1: teh]] text."
        assert payload["findings"] == [
            {"number": 1, "original": "teh", "replacement": "the", "rationale": "spelling"}
        ]


class TestClaimFlag:
    @pytest.mark.asyncio
    async def test_claims_marked_and_listed(self, fake_llm):
        def responder(prompt, call_type):
            section = _section(prompt, "Section to review:\n")
            marked = section.replace("67%", "[[CLAIM: 67%]]")
            return f'{marked}\n---CLAIMS---\n1. "67%" - confirm turnout figure'

        document = await MarkupPipeline(fake_llm(responder)).run(
            CLAIM_FLAG_TASK, "Turnout reached 67% last year."
        )
        assert document.text == "Turnout reached [[CLAIM #1: 67%]] last year."
        assert document.findings[0].rationale == "confirm turnout figure"
