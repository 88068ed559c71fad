# tests/test_editorial_service.py
"""
Tests for running editorial tasks together.
"""

import json

import pytest

from app.services.editorial_service import EditorialRequest, EditorialService
from app.services.errors import InvalidRequestError, TaskParseError
from app.services.events import EventSink, EventType

HEADLINES_REPLY = json.dumps(
    {"suggestions": [{"headline": f"Headline {i}", "dek": f"Dek {i}"} for i in range(3)]}
)


def social_reply(platform):
    return json.dumps({"suggestions": [f"{platform} post {i}" for i in range(3)]})


def default_responder(prompt, call_type):
    if call_type == "headlines":
        return HEADLINES_REPLY
    if call_type.startswith("social_"):
        return social_reply(call_type.split("_", 1)[1])
    if call_type == "copyEdit_chunk":
        return 'A [[ISSUE: teh]] article.\n---ISSUES---\n1. "teh" -> "the" (spelling)'
    if call_type == "fact_check":
        return "A [[VERIFIED: claim]] article."
    raise AssertionError(call_type)


async def _run(service, **request_kwargs):
    sink = EventSink()
    await service.run(EditorialRequest(**request_kwargs), sink)
    return sink


class TestValidation:
    """Invocation-fatal requests are rejected before any model call."""

    @pytest.mark.parametrize(
        "request_kwargs",
        [
            {"text": "", "tasks": {"headlines": True}},
            {"text": "   ", "tasks": {"headlines": True}},
            {"text": "Article", "tasks": {}},
            {"text": "Article", "tasks": {"headlines": False, "unknown": True}},
        ],
    )
    @pytest.mark.asyncio
    async def test_rejects_without_calling_model(self, fake_llm, request_kwargs):
        provider = fake_llm(default_responder)
        service = EditorialService(provider)
        with pytest.raises(InvalidRequestError):
            await service.run(EditorialRequest(**request_kwargs), EventSink())
        assert provider.calls == []


class TestRun:
    @pytest.mark.asyncio
    async def test_all_tasks_report_and_done_is_last(self, fake_llm):
        provider = fake_llm(default_responder)
        sink = await _run(
            EditorialService(provider),
            text="A teh article.",
            tasks={"headlines": True, "social": True, "copyEdit": True, "factCheck": True},
        )

        results = sink.of_type(EventType.RESULT)
        by_task = {}
        for event in results:
            by_task.setdefault(event.task, []).append(event.data)

        assert by_task["headlines"][0][0] == {"headline": "Headline 0", "dek": "Dek 0"}
        assert sorted(d["platform"] for d in by_task["social"]) == ["instagram", "substack", "twitter"]
        assert by_task["copyEdit"][0]["findings"][0]["number"] == 1
        assert by_task["factCheck"][0]["mode"] == "single_shot"
        assert sink.history[-1].type == EventType.DONE
        assert len(sink.of_type(EventType.DONE)) == 1
        assert not sink.of_type(EventType.ERROR)

    @pytest.mark.asyncio
    async def test_task_failure_is_scoped(self, fake_llm):
        def responder(prompt, call_type):
            if call_type == "headlines":
                return RuntimeError("rate limited")
            return default_responder(prompt, call_type)

        sink = await _run(
            EditorialService(fake_llm(responder)),
            text="A teh article.",
            tasks={"headlines": True, "copyEdit": True},
        )

        errors = sink.of_type(EventType.ERROR)
        assert [e.task for e in errors] == ["headlines"]
        assert "rate limited" in errors[0].message
        assert [e.task for e in sink.of_type(EventType.RESULT)] == ["copyEdit"]
        assert sink.history[-1].type == EventType.DONE

    @pytest.mark.asyncio
    async def test_one_social_platform_failing(self, fake_llm):
        def responder(prompt, call_type):
            if call_type == "social_twitter":
                return "no json here"
            return default_responder(prompt, call_type)

        sink = await _run(EditorialService(fake_llm(responder)), text="Article", tasks={"social": True})

        assert sorted(e.data["platform"] for e in sink.of_type(EventType.RESULT)) == ["instagram", "substack"]
        errors = sink.of_type(EventType.ERROR)
        assert len(errors) == 1
        assert errors[0].task == "social"
        assert errors[0].message.startswith("twitter:")

    @pytest.mark.asyncio
    async def test_style_guides_reach_prompts(self, fake_llm):
        provider = fake_llm(default_responder)
        await _run(
            EditorialService(provider),
            text="Article",
            tasks={"headlines": True, "social": True},
            style_guides={"headlines": "Use sentence case.", "socialMedia": "No emoji."},
        )
        assert "Use sentence case." in provider.calls_of("headlines")[0]
        assert all("No emoji." in p for p in provider.calls_of("social_twitter"))

    @pytest.mark.asyncio
    async def test_fact_check_gate_emits_no_result(self, fake_llm, fake_search):
        claims = [{"claim": f"zq{chr(97 + n)}a zq{chr(97 + n)}b zq{chr(97 + n)}c", "search_query": "q"} for n in range(26)]

        def responder(prompt, call_type):
            return json.dumps(claims)

        sink = await _run(
            EditorialService(fake_llm(responder), fake_search()),
            text="Article",
            tasks={"factCheck": True},
        )
        assert len(sink.of_type(EventType.CONFIRM_REQUIRED)) == 1
        assert not sink.of_type(EventType.RESULT)
        assert not sink.of_type(EventType.ERROR)
        assert sink.history[-1].type == EventType.DONE


class TestRegenerate:
    @pytest.mark.asyncio
    async def test_regenerate_headlines(self, fake_llm):
        service = EditorialService(fake_llm(default_responder))
        suggestions = await service.regenerate_headlines("Article", "Guide")
        assert len(suggestions) == 3

    @pytest.mark.asyncio
    async def test_regenerate_headlines_unparseable(self, fake_llm):
        service = EditorialService(fake_llm(lambda p, t: "Sorry, no."))
        with pytest.raises(TaskParseError):
            await service.regenerate_headlines("Article")

    @pytest.mark.asyncio
    async def test_regenerate_social_unknown_platform(self, fake_llm):
        service = EditorialService(fake_llm(default_responder))
        with pytest.raises(InvalidRequestError):
            await service.regenerate_social("Article", "myspace")

    @pytest.mark.asyncio
    async def test_regenerate_social(self, fake_llm):
        service = EditorialService(fake_llm(default_responder))
        assert await service.regenerate_social("Article", "twitter") == [
            "twitter post 0",
            "twitter post 1",
            "twitter post 2",
        ]
