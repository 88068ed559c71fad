# tests/conftest.py
"""
Pytest configuration and fixtures.
"""

import asyncio
import os
from typing import Callable, Optional

import pytest

# Set test environment before any app module reads settings
os.environ["APP_PASSWORD"] = "test-password"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOG_JSON"] = "false"
os.environ.pop("BRAVE_API_KEY", None)

from app.config import get_settings  # noqa: E402
from app.llm.base import LLMProvider  # noqa: E402
from app.services.style_guides import invalidate_style_guide_cache  # noqa: E402
from app.services.web_search import BaseSearchClient, SearchResult  # noqa: E402

get_settings.cache_clear()


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "llm: tests requiring LLM API calls (deselect with '-m \"not llm\"')")


class FakeLLMProvider(LLMProvider):
    """
    Scripted provider. ``responder(prompt, call_type)`` returns the reply
    text, or an exception instance to raise.
    """

    def __init__(self, responder: Callable[[str, str], object], delay: float = 0.0):
        self.responder = responder
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def complete(self, prompt, max_tokens, system=None, call_type="complete"):
        self.calls.append((call_type, prompt))
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.responder(prompt, call_type)
        if isinstance(result, Exception):
            raise result
        return result

    def calls_of(self, call_type: str) -> list[str]:
        return [p for t, p in self.calls if t == call_type]


class FakeSearchClient(BaseSearchClient):
    """Returns ``results_for(query)``; an exception instance is raised."""

    def __init__(self, results_for: Optional[Callable[[str], object]] = None):
        self.results_for = results_for or (
            lambda q: [SearchResult(title=f"About {q}", snippet=f"Reporting on {q}.", url="https://example.com/a")]
        )
        self.queries: list[str] = []
        self.closed = False

    @property
    def source_type(self) -> str:
        return "fake"

    async def search(self, query):
        self.queries.append(query)
        result = self.results_for(query)
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_llm():
    """Factory: fake_llm(responder) -> FakeLLMProvider."""
    return FakeLLMProvider


@pytest.fixture
def fake_search():
    """Factory: fake_search(results_for=None) -> FakeSearchClient."""
    return FakeSearchClient


@pytest.fixture(autouse=True)
def _clear_style_guide_cache():
    invalidate_style_guide_cache()
    yield
    invalidate_style_guide_cache()


@pytest.fixture
def db_session():
    """Session on a fresh in-memory SQLite database."""
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker
    from sqlalchemy.pool import StaticPool

    from app import models  # noqa: F401
    from app.database import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False, future=True)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def auth_headers():
    return {"X-API-Key": "test-password"}
