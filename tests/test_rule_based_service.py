"""
Rule-based backend tests
Delivery timing, error conversion and lifecycle
"""

import asyncio
import time

import pytest

from kitchen_ai import FutureCallback, GenerationFault, ResponseGenerator, RuleBasedAiService
from kitchen_ai.service import SERVICE_CLOSED_MESSAGE
from kitchen_ai.taxonomy import PROCESSING_TIMES, RequestKind


class BrokenGenerator(ResponseGenerator):
    def suggest_recipes(self, ingredients, preferences=None):
        raise ValueError("template table missing")

    def chat(self, message, context=None):
        raise RuntimeError("classifier offline")


@pytest.fixture
def service():
    service = RuleBasedAiService(latency_scale=0.001)
    yield service
    service.cleanup()


async def settle(seconds: float = 0.05) -> None:
    await asyncio.sleep(seconds)


class TestDelivery:
    """Callbacks arrive later, on the event loop, exactly once"""

    @pytest.mark.asyncio
    async def test_not_delivered_before_return(self, service, recording_callback):
        service.suggest_recipes("chicken", None, recording_callback)
        assert recording_callback.events == []
        assert service.pending_count == 1

        await settle()

        assert len(recording_callback.events) == 1
        assert recording_callback.events[0][0] == "success"
        assert service.pending_count == 0

    @pytest.mark.asyncio
    async def test_zero_latency_still_deferred(self, recording_callback):
        service = RuleBasedAiService(latency_scale=0)
        service.chat("hello", None, recording_callback)
        assert recording_callback.events == []

        await settle(0.01)

        assert recording_callback.terminal_events[0][0] == "success"

    @pytest.mark.asyncio
    async def test_each_operation_succeeds(self, service):
        callbacks = [FutureCallback() for _ in range(4)]
        service.suggest_recipes("beef, rice", "spicy", callbacks[0])
        service.generate_grocery_list("tomato", "Tacos", callbacks[1])
        service.suggest_substitutes("butter", "cookies", callbacks[2])
        service.chat("How long to bake bread?", None, callbacks[3])

        results = [await callback for callback in callbacks]

        assert results[0].startswith("Based on your ingredients, here are 3 recipe suggestions:")
        assert results[1].startswith("Smart Grocery List\n")
        assert results[2].startswith("Substitutions for **butter**:")
        assert results[3].startswith("Cooking times vary by recipe and method:")

    @pytest.mark.asyncio
    async def test_matches_generator_output(self, service):
        callback = FutureCallback()
        service.suggest_substitutes("Butter", "cookies", callback)

        assert await callback == ResponseGenerator().suggest_substitutes("Butter", "cookies")

    @pytest.mark.asyncio
    async def test_no_progress_events(self, service, recording_callback):
        service.generate_grocery_list("", "Soup", recording_callback)
        await settle()

        assert [event[0] for event in recording_callback.events] == ["success"]

    def test_negative_latency_rejected(self):
        with pytest.raises(ValueError):
            RuleBasedAiService(latency_scale=-1)

    def test_default_processing_times(self):
        assert PROCESSING_TIMES[RequestKind.RECIPES] == 1.2
        assert PROCESSING_TIMES[RequestKind.GROCERY_LIST] == 1.0
        assert PROCESSING_TIMES[RequestKind.SUBSTITUTES] == 0.8
        assert PROCESSING_TIMES[RequestKind.CHAT] == 0.9


class TestErrors:
    """Exceptions while building a response become callback errors"""

    @pytest.mark.asyncio
    async def test_recipe_failure_message(self, recording_callback):
        service = RuleBasedAiService(latency_scale=0.001, generator=BrokenGenerator())
        service.suggest_recipes("chicken", None, recording_callback)
        await settle()

        assert recording_callback.events == [
            ("error", "Failed to generate recipe suggestions: template table missing")
        ]

    @pytest.mark.asyncio
    async def test_chat_failure_through_future(self):
        service = RuleBasedAiService(latency_scale=0.001, generator=BrokenGenerator())
        callback = FutureCallback()
        service.chat("hi", None, callback)

        with pytest.raises(GenerationFault) as exc_info:
            await callback

        assert exc_info.value.message == "Failed to process message: classifier offline"


class TestLifecycle:
    """cancel and cleanup"""

    @pytest.mark.asyncio
    async def test_cancel_drops_pending(self, service, recording_callback):
        service.suggest_recipes("chicken", None, recording_callback)
        service.chat("hello", None, recording_callback)
        service.cancel()

        await settle()

        assert recording_callback.events == []
        assert service.pending_count == 0
        assert service.is_available()

    @pytest.mark.asyncio
    async def test_requests_after_cancel_still_work(self, service, recording_callback):
        service.cancel()
        service.chat("hello", None, recording_callback)
        await settle()

        assert recording_callback.terminal_events[0][0] == "success"

    @pytest.mark.asyncio
    async def test_cleanup_then_request_reports_shutdown(self, service, recording_callback):
        service.cleanup()
        assert not service.is_available()

        service.suggest_substitutes("butter", None, recording_callback)
        assert recording_callback.events == []

        await settle()

        assert recording_callback.events == [("error", SERVICE_CLOSED_MESSAGE)]

    def test_cleanup_twice(self, service):
        service.cleanup()
        service.cleanup()
        assert not service.is_available()

    def test_label(self, service):
        assert service.label == "Mock AI (Rule-based)"


class TestWithoutEventLoop:
    """Requests issued from a plain thread fall back to timer threads"""

    def test_delivered_after_return(self, recording_callback):
        service = RuleBasedAiService(latency_scale=0.05)
        service.chat("help", None, recording_callback)
        assert recording_callback.events == []

        assert recording_callback.done.wait(timeout=2)
        assert recording_callback.events[0][0] == "success"
        assert recording_callback.events[0][1].startswith("I'm your Kitchen Kompanion AI assistant!")

    def test_cancel_stops_timer(self, recording_callback):
        service = RuleBasedAiService(latency_scale=0.1)
        service.suggest_recipes("chicken", None, recording_callback)
        service.cancel()

        time.sleep(0.25)

        assert recording_callback.events == []
        assert service.pending_count == 0

    def test_cleanup_then_request_reports_shutdown(self, recording_callback):
        service = RuleBasedAiService(latency_scale=0.001)
        service.cleanup()
        service.generate_grocery_list("milk", "Soup", recording_callback)

        assert recording_callback.done.wait(timeout=2)
        assert recording_callback.events == [("error", SERVICE_CLOSED_MESSAGE)]

    def test_generation_error_still_delivered(self, recording_callback):
        service = RuleBasedAiService(latency_scale=0.001, generator=BrokenGenerator())
        service.chat("hi", None, recording_callback)

        assert recording_callback.done.wait(timeout=2)
        assert recording_callback.events == [("error", "Failed to process message: classifier offline")]
