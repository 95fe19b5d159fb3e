"""
Rule-based assistant backend
Template responses delivered on the caller's event loop after a simulated processing delay
"""

import asyncio
import logging
import threading
from typing import Callable, Dict, Mapping, Optional, Set, Union

from .response_generator import ResponseGenerator
from .service import SERVICE_CLOSED_MESSAGE, AiCallback, BackendKind, OnDeviceAiService, running_loop
from .taxonomy import PROCESSING_TIMES, RequestKind

logger = logging.getLogger(__name__)

ERROR_PREFIXES: Dict[RequestKind, str] = {
    RequestKind.RECIPES: "Failed to generate recipe suggestions",
    RequestKind.GROCERY_LIST: "Failed to generate grocery list",
    RequestKind.SUBSTITUTES: "Failed to generate substitutes",
    RequestKind.CHAT: "Failed to process message",
}


class RuleBasedAiService(OnDeviceAiService):
    """
    Context-aware canned responses without a model.

    Each request is a timer on the injected loop or the caller's running
    loop; the response is generated when the timer fires and handed to the
    callback. Callers outside any event loop get a timer thread instead, so
    delivery still happens after the request method returns.
    """

    backend_kind = BackendKind.RULE_BASED

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        latency_scale: float = 1.0,
        processing_times: Mapping[RequestKind, float] = PROCESSING_TIMES,
        generator: Optional[ResponseGenerator] = None,
    ):
        if latency_scale < 0:
            raise ValueError("latency_scale must not be negative")
        self._loop = loop
        self._delays = {kind: seconds * latency_scale for kind, seconds in processing_times.items()}
        self._generator = generator or ResponseGenerator()
        self._pending: Set[Union[asyncio.TimerHandle, threading.Timer]] = set()
        self._lock = threading.Lock()
        self._closed = False

    def is_available(self) -> bool:
        return not self._closed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def suggest_recipes(self, ingredients: str, preferences: Optional[str], callback: AiCallback) -> None:
        logger.debug(f"Generating recipe suggestions for: {ingredients}")
        self._schedule(
            RequestKind.RECIPES, callback,
            lambda: self._generator.suggest_recipes(ingredients, preferences),
        )

    def generate_grocery_list(self, pantry_items: str, meal_plan: str, callback: AiCallback) -> None:
        logger.debug(f"Generating grocery list for meal plan: {meal_plan}")
        self._schedule(
            RequestKind.GROCERY_LIST, callback,
            lambda: self._generator.generate_grocery_list(pantry_items, meal_plan),
        )

    def suggest_substitutes(self, ingredient: str, recipe: Optional[str], callback: AiCallback) -> None:
        logger.debug(f"Finding substitutes for: {ingredient}")
        self._schedule(
            RequestKind.SUBSTITUTES, callback,
            lambda: self._generator.suggest_substitutes(ingredient, recipe),
        )

    def chat(self, message: str, context: Optional[str], callback: AiCallback) -> None:
        logger.debug(f"Processing chat message: {message}")
        self._schedule(
            RequestKind.CHAT, callback,
            lambda: self._generator.chat(message, context),
        )

    def _schedule(self, kind: RequestKind, callback: AiCallback, build: Callable[[], str]) -> None:
        if self._closed:
            self._call_later(0, lambda: callback.on_error(SERVICE_CLOSED_MESSAGE))
            return

        def deliver():
            try:
                response = build()
            except Exception as e:
                logger.exception(f"Error handling {kind.value} request")
                callback.on_error(f"{ERROR_PREFIXES[kind]}: {e}")
                return
            callback.on_success(response)

        self._call_later(self._delays[kind], deliver)

    def _call_later(self, delay: float, fn: Callable[[], None]) -> None:
        """Run fn after delay on the event loop, or on a timer thread when there is none"""
        def run():
            with self._lock:
                self._pending.discard(handle)
            fn()

        loop = self._loop or running_loop()
        with self._lock:
            if loop is not None:
                handle = loop.call_later(delay, run)
            else:
                handle = threading.Timer(delay, run)
                handle.daemon = True
                handle.start()
            self._pending.add(handle)

    def cancel(self) -> None:
        with self._lock:
            pending = list(self._pending)
            self._pending.clear()
        for handle in pending:
            handle.cancel()
        logger.debug("Cancelled all pending AI operations")

    def cleanup(self) -> None:
        self._closed = True
        self.cancel()
        logger.debug("Cleaned up RuleBasedAiService")
