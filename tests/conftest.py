# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from ai_interviewer.core.config import get_settings
from ai_interviewer.core.interfaces import TextGenerator
from ai_interviewer.managers.interview import InterviewSessionManager
from ai_interviewer.processors.evaluation import InterviewEvaluator
from ai_interviewer.processors.questions import QuestionGenerator
from ai_interviewer.storage import MemorySessionStore


class FakeTextGenerator(TextGenerator):
    """Scripted generative backend: returns `response` or raises `error`."""
    def __init__(self, response: str = "", error: Exception = None):
        self.response = response
        self.error = error
        self.prompts = []

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_generator():
    return FakeTextGenerator


@pytest.fixture
def test_env_vars(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("ENVIRONMENT", "testing")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("APP_NAME", "Mock Interview Test")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

@pytest.fixture
def settings(test_env_vars):
    """Get test settings."""
    return get_settings()

@pytest.fixture
def store():
    return MemorySessionStore()

@pytest.fixture
def manager(store):
    """Session manager running entirely on fallbacks."""
    return InterviewSessionManager(
        store=store,
        question_provider=QuestionGenerator(),
        evaluator=InterviewEvaluator(),
    )

@pytest.fixture
def app(settings):
    """Create test app instance."""
    from ai_interviewer.interface.api.main import create_app
    return create_app(settings)

@pytest.fixture
def client(app):
    """Create test client."""
    with TestClient(app) as test_client:
        yield test_client
