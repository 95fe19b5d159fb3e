"""
Local model backend for the on-device assistant
Drives an injected model runtime on a single worker thread and streams partial output
"""

import asyncio
import logging
import os
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Set

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .service import SERVICE_CLOSED_MESSAGE, AiCallback, BackendKind, OnDeviceAiService, running_loop
from .taxonomy import RequestKind

logger = logging.getLogger(__name__)


class ModelRuntime(ABC):
    """Minimal surface a local inference runtime must expose"""

    @abstractmethod
    def load(self) -> bool:
        """Load weights; return False if the model cannot run here"""

    @abstractmethod
    def generate(self, prompt: str) -> Iterable[str]:
        """Yield generated text in chunks"""

    def close(self) -> None:
        """Free the model"""


ModelRuntimeLoader = Callable[[str], ModelRuntime]


# Prompt construction

def build_recipe_prompt(ingredients: str, preferences: Optional[str] = None) -> str:
    prompt = [
        "You are a helpful cooking assistant. ",
        "Based on the following ingredients, suggest 3 simple recipes:\n\n",
        f"Ingredients: {ingredients}\n",
    ]
    if preferences:
        prompt.append(f"Dietary preferences: {preferences}\n")
    prompt.append(
        "\nFor each recipe, provide:\n"
        "- Recipe name\n"
        "- Brief description\n"
        "- Missing ingredients (if any)\n"
        "- Cooking time\n\n"
    )
    return "".join(prompt)


def build_grocery_prompt(pantry_items: str, meal_plan: str) -> str:
    return f"Generate a grocery list for: {meal_plan}\nExisting pantry: {pantry_items}"


def build_substitute_prompt(ingredient: str, recipe: Optional[str] = None) -> str:
    if recipe:
        return f"Suggest substitutes for {ingredient} in {recipe}"
    return f"Suggest substitutes for {ingredient}"


def build_chat_prompt(message: str, context: Optional[str] = None) -> str:
    return f"{context or ''}\nUser: {message}\nAssistant:"


# Availability probe

@dataclass
class ModelProbe:
    """Result of checking whether a local model could run"""
    model_path: Optional[str]
    model_present: bool
    available_memory_mb: Optional[int]
    required_memory_mb: int

    @property
    def memory_sufficient(self) -> bool:
        return self.available_memory_mb is not None and self.available_memory_mb >= self.required_memory_mb

    @property
    def ok(self) -> bool:
        return self.model_present and self.memory_sufficient


def available_memory_mb() -> Optional[int]:
    """Physical memory currently available, or None where the platform won't say"""
    try:
        pages = os.sysconf("SC_AVPHYS_PAGES")
        page_size = os.sysconf("SC_PAGE_SIZE")
    except (AttributeError, ValueError, OSError):
        return None
    return pages * page_size // (1024 * 1024)


def probe_local_model(
    model_path: Optional[str],
    required_memory_mb: int,
    memory_probe: Callable[[], Optional[int]] = available_memory_mb,
) -> ModelProbe:
    present = bool(model_path) and os.path.isfile(model_path)
    return ModelProbe(
        model_path=model_path,
        model_present=present,
        available_memory_mb=memory_probe() if present else None,
        required_memory_mb=required_memory_mb,
    )


class LocalModelAiService(OnDeviceAiService):
    """
    Backend that runs prompts through a local model runtime.

    Generation happens on one worker thread. Progress and the final result
    are posted back to the event loop the request came from. ``cancel``
    advances an epoch counter; anything produced for an older epoch is
    dropped instead of delivered.
    """

    backend_kind = BackendKind.LOCAL_MODEL

    def __init__(self, runtime: ModelRuntime, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._runtime = runtime
        self._loop = loop
        self._executor: Optional[ThreadPoolExecutor] = None
        self._futures: Set[Future] = set()
        self._lock = threading.RLock()
        self._epoch = 0
        self._initialized = False
        self._closed = False

    def initialize(self) -> bool:
        """Load the model; must succeed before requests are accepted"""
        if self._initialized:
            return True
        if not self._load_runtime():
            logger.warning("Local model runtime refused to load")
            return False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="local-model")
        self._initialized = True
        logger.info("Local model initialized")
        return True

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    def _load_runtime(self) -> bool:
        """Read the weights, retrying transient I/O failures"""
        return self._runtime.load()

    def is_available(self) -> bool:
        return self._initialized and not self._closed

    def suggest_recipes(self, ingredients: str, preferences: Optional[str], callback: AiCallback) -> None:
        self._submit(RequestKind.RECIPES, build_recipe_prompt(ingredients, preferences), callback)

    def generate_grocery_list(self, pantry_items: str, meal_plan: str, callback: AiCallback) -> None:
        self._submit(RequestKind.GROCERY_LIST, build_grocery_prompt(pantry_items, meal_plan), callback)

    def suggest_substitutes(self, ingredient: str, recipe: Optional[str], callback: AiCallback) -> None:
        self._submit(RequestKind.SUBSTITUTES, build_substitute_prompt(ingredient, recipe), callback)

    def chat(self, message: str, context: Optional[str], callback: AiCallback) -> None:
        self._submit(RequestKind.CHAT, build_chat_prompt(message, context), callback)

    def _submit(self, kind: RequestKind, prompt: str, callback: AiCallback) -> None:
        loop = self._loop or running_loop()

        with self._lock:
            epoch = self._epoch
            if not self.is_available():
                if loop is not None:
                    loop.call_soon(self._post, epoch, callback.on_error, SERVICE_CLOSED_MESSAGE)
                else:
                    threading.Timer(0, self._post, (epoch, callback.on_error, SERVICE_CLOSED_MESSAGE)).start()
                return
            future = self._executor.submit(self._run, kind, prompt, callback, loop, epoch)
            self._futures.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._futures.discard(future)

    def _run(
        self,
        kind: RequestKind,
        prompt: str,
        callback: AiCallback,
        loop: Optional[asyncio.AbstractEventLoop],
        epoch: int,
    ) -> None:
        logger.debug(f"Running {kind.value} prompt on local model")
        text = ""
        try:
            for chunk in self._runtime.generate(prompt):
                if epoch != self._epoch:
                    return
                text += chunk
                self._dispatch(loop, epoch, callback.on_progress, text)
        except Exception as e:
            logger.exception(f"Local model failed on {kind.value} request")
            self._dispatch(loop, epoch, callback.on_error, f"Local model error: {e}")
            return
        self._dispatch(loop, epoch, callback.on_success, text.strip())

    def _dispatch(
        self,
        loop: Optional[asyncio.AbstractEventLoop],
        epoch: int,
        deliver: Callable[[str], None],
        payload: str,
    ) -> None:
        """Hand a delivery to the requesting loop, or make it here on the worker without one"""
        if loop is None:
            self._post(epoch, deliver, payload)
        else:
            loop.call_soon_threadsafe(self._post, epoch, deliver, payload)

    def _post(self, epoch: int, deliver: Callable[[str], None], payload: str) -> None:
        if epoch == self._epoch:
            deliver(payload)

    def cancel(self) -> None:
        with self._lock:
            self._epoch += 1
            for future in list(self._futures):
                future.cancel()
        logger.debug("Cancelled pending local model requests")

    def cleanup(self) -> None:
        # A submit either lands before the epoch bump or sees the closed flag
        with self._lock:
            if self._closed:
                return
            self.cancel()
            self._closed = True
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
            self._runtime.close()
        logger.debug("Cleaned up LocalModelAiService")
