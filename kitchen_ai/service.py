"""
Backend capability contract for the on-device assistant
Every backend delivers exactly one terminal callback per request, never before returning
"""

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from .errors import GenerationFault

SERVICE_CLOSED_MESSAGE = "AI service has been shut down"


class BackendKind(Enum):
    """Tag identifying a backend implementation"""
    RULE_BASED = "rule_based"
    LOCAL_MODEL = "local_model"


BACKEND_LABELS = {
    BackendKind.RULE_BASED: "Mock AI (Rule-based)",
    BackendKind.LOCAL_MODEL: "Real LLM",
}
NOT_INITIALIZED_LABEL = "Not initialized"


def running_loop() -> Optional[asyncio.AbstractEventLoop]:
    """The event loop running in this thread, if any"""
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class AiCallback(ABC):
    """Result sink for a single request"""

    @abstractmethod
    def on_success(self, response: str) -> None:
        """Called once with the generated text"""

    @abstractmethod
    def on_error(self, error: str) -> None:
        """Called once with a human-readable failure message"""

    def on_progress(self, partial_response: str) -> None:
        """Called zero or more times before the terminal call; no-op by default"""


class FutureCallback(AiCallback):
    """
    Adapts the callback contract to an asyncio future.

    Awaiting ``future`` yields the response text or raises GenerationFault.
    Partial responses are collected in ``progress``.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        loop = loop or asyncio.get_running_loop()
        self.future: asyncio.Future = loop.create_future()
        self.progress = []

    def on_success(self, response: str) -> None:
        if not self.future.done():
            self.future.set_result(response)

    def on_error(self, error: str) -> None:
        if not self.future.done():
            self.future.set_exception(GenerationFault(error))

    def on_progress(self, partial_response: str) -> None:
        self.progress.append(partial_response)

    def fail(self, error: Exception) -> None:
        """Resolve with an exception raised by the caller rather than the backend"""
        if not self.future.done():
            self.future.set_exception(error)

    def __await__(self):
        return self.future.__await__()


class OnDeviceAiService(ABC):
    """
    Interface every assistant backend implements.

    Request methods return immediately; results arrive later through the
    callback, on the caller's event loop when there is one. ``cancel`` and
    ``cleanup`` are no-ops unless a backend has something to release.
    """

    backend_kind: BackendKind

    @abstractmethod
    def is_available(self) -> bool:
        """Cheap readiness check without side effects"""

    @abstractmethod
    def suggest_recipes(self, ingredients: str, preferences: Optional[str], callback: AiCallback) -> None:
        """Suggest recipes for the available ingredients"""

    @abstractmethod
    def generate_grocery_list(self, pantry_items: str, meal_plan: str, callback: AiCallback) -> None:
        """Build a grocery list for a meal plan given the current pantry"""

    @abstractmethod
    def suggest_substitutes(self, ingredient: str, recipe: Optional[str], callback: AiCallback) -> None:
        """Suggest replacements for an ingredient"""

    @abstractmethod
    def chat(self, message: str, context: Optional[str], callback: AiCallback) -> None:
        """Answer a free-form cooking question"""

    def cancel(self) -> None:
        """Drop pending deliveries for requests already issued"""

    def cleanup(self) -> None:
        """Release resources; safe to call more than once"""

    @property
    def label(self) -> str:
        return BACKEND_LABELS[self.backend_kind]
