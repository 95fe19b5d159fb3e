"""
Pytest configuration and shared fixtures
"""

import os
import threading
from typing import Generator, Iterable, List, Optional

import pytest
from fastapi.testclient import TestClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["LATENCY_SCALE"] = "0.01"
os.environ["CORS_ORIGINS"] = "http://localhost:3000,http://localhost:8000"
os.environ["FORCE_MOCK_AI"] = "false"

from config import get_settings
from api import create_app
from kitchen_ai import AiCallback, ModelRuntime


class RecordingCallback(AiCallback):
    """Collects every callback invocation in order"""

    def __init__(self):
        self.events: List[tuple] = []
        self.done = threading.Event()

    def on_success(self, response: str) -> None:
        self.events.append(("success", response))
        self.done.set()

    def on_error(self, error: str) -> None:
        self.events.append(("error", error))
        self.done.set()

    def on_progress(self, partial_response: str) -> None:
        self.events.append(("progress", partial_response))

    @property
    def terminal_events(self) -> List[tuple]:
        return [event for event in self.events if event[0] != "progress"]


class FakeRuntime(ModelRuntime):
    """Scripted model runtime"""

    def __init__(self, chunks: Iterable[str] = ("Hello", " from", " the model"), loads: bool = True,
                 error: Optional[Exception] = None):
        self.chunks = list(chunks)
        self.loads = loads
        self.error = error
        self.prompts: List[str] = []
        self.closed = False
        self.release = threading.Event()
        self.release.set()

    def load(self) -> bool:
        return self.loads

    def generate(self, prompt: str):
        self.prompts.append(prompt)
        self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        for chunk in self.chunks:
            yield chunk

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def recording_callback() -> RecordingCallback:
    return RecordingCallback()


@pytest.fixture
def make_runtime():
    """Build fake runtimes with custom behaviour"""
    return FakeRuntime


@pytest.fixture
def model_file(tmp_path) -> str:
    """A stand-in model file on disk"""
    path = tmp_path / "model.gguf"
    path.write_bytes(b"weights")
    return str(path)


@pytest.fixture(scope="session")
def test_settings():
    """Test settings configuration"""
    return get_settings()


@pytest.fixture(scope="session")
def app():
    """Create test FastAPI application"""
    return create_app()


@pytest.fixture(scope="session")
def client(app) -> Generator[TestClient, None, None]:
    """Create test client with the application lifespan running"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_recipe_request():
    """Sample recipe suggestion request"""
    return {
        "ingredients": ["Chicken breast", "rice", "garlic"],
        "preferences": "gluten-free",
    }


@pytest.fixture
def sample_grocery_request():
    """Sample grocery list request"""
    return {
        "pantry_items": ["tomato", "milk"],
        "meal_plan": "Chicken stir-fry on Monday, pasta on Tuesday",
    }


@pytest.fixture
def sample_substitute_request():
    """Sample substitution request"""
    return {"ingredient": "Butter", "recipe": "chocolate chip cookies"}
