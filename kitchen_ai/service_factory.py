"""
Service selection policy for the on-device assistant
Owns the single active backend and swaps it when preferences change
"""

import asyncio
import logging
import threading
from typing import Callable, Optional, Set

from .errors import BackendInitFault
from .local_model import (
    LocalModelAiService,
    ModelRuntimeLoader,
    available_memory_mb,
    probe_local_model,
)
from .preferences import KEY_FORCE_MOCK, KEY_MODEL_PATH, PreferenceStore
from .rule_based import RuleBasedAiService
from .service import NOT_INITIALIZED_LABEL, BackendKind, OnDeviceAiService

logger = logging.getLogger(__name__)

DEFAULT_MIN_MODEL_MEMORY_MB = 2048
BACKEND_REPLACED_MESSAGE = "AI backend was replaced before it answered"


class AiServiceFactory:
    """
    Picks and owns the assistant backend.

    Selection order:
    1. ``force_mock_ai`` set in preferences -> rule-based backend
    2. a runtime loader is configured, the model file exists and enough
       memory is free -> local model backend, if it initializes
    3. otherwise, or on any failure in step 2 -> rule-based backend

    The instance is memoized. Every transition runs under one lock, so at
    most one backend is alive at a time.
    """

    def __init__(
        self,
        preferences: PreferenceStore,
        runtime_loader: Optional[ModelRuntimeLoader] = None,
        min_model_memory_mb: int = DEFAULT_MIN_MODEL_MEMORY_MB,
        latency_scale: float = 1.0,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        memory_probe: Callable[[], Optional[int]] = available_memory_mb,
    ):
        self._preferences = preferences
        self._runtime_loader = runtime_loader
        self._min_model_memory_mb = min_model_memory_mb
        self._latency_scale = latency_scale
        self._loop = loop
        self._memory_probe = memory_probe
        self._lock = threading.RLock()
        self._instance: Optional[OnDeviceAiService] = None
        self._retire_listeners: Set[Callable[[], None]] = set()
        self.last_init_fault: Optional[BackendInitFault] = None

    @classmethod
    def from_settings(
        cls,
        settings,
        preferences: PreferenceStore,
        runtime_loader: Optional[ModelRuntimeLoader] = None,
    ) -> "AiServiceFactory":
        return cls(
            preferences,
            runtime_loader=runtime_loader,
            min_model_memory_mb=settings.min_model_memory_mb,
            latency_scale=settings.latency_scale,
        )

    @property
    def current(self) -> Optional[OnDeviceAiService]:
        """The active backend without creating one"""
        with self._lock:
            return self._instance

    def get_instance(self, force_recreate: bool = False) -> OnDeviceAiService:
        """Return the active backend, building it on first use or when forced"""
        with self._lock:
            if self._instance is not None and not force_recreate:
                return self._instance

            self._retire_current()
            self._instance = self.create_service()
            logger.info(f"Created AI service: {type(self._instance).__name__}")
            return self._instance

    def create_service(self) -> OnDeviceAiService:
        """Build a new backend according to the selection rule"""
        if self._force_mock():
            logger.debug("Using mock service (forced by user)")
            return self._rule_based()

        if self._runtime_loader is not None:
            local_model = self._try_local_model()
            if local_model is not None:
                logger.info("Using real LLM service")
                return local_model

        logger.debug("Using intelligent mock service (default)")
        return self._rule_based()

    def _rule_based(self) -> RuleBasedAiService:
        return RuleBasedAiService(loop=self._loop, latency_scale=self._latency_scale)

    def _force_mock(self) -> bool:
        try:
            return self._preferences.get_bool(KEY_FORCE_MOCK, False)
        except Exception as e:
            logger.warning(f"Could not read {KEY_FORCE_MOCK}, assuming false: {e}")
            return False

    def _model_path(self) -> Optional[str]:
        try:
            return self._preferences.get_string(KEY_MODEL_PATH)
        except Exception as e:
            logger.warning(f"Could not read {KEY_MODEL_PATH}: {e}")
            return None

    def _try_local_model(self) -> Optional[LocalModelAiService]:
        model_path = self._model_path()
        probe = probe_local_model(model_path, self._min_model_memory_mb, self._memory_probe)
        if not probe.ok:
            logger.debug(
                f"Local model unavailable (present={probe.model_present}, "
                f"memory_mb={probe.available_memory_mb}, required_mb={probe.required_memory_mb})"
            )
            return None

        service = None
        try:
            service = LocalModelAiService(self._runtime_loader(model_path), loop=self._loop)
            if not service.initialize():
                raise BackendInitFault(f"Model at {model_path} failed to initialize")
        except Exception as e:
            self.last_init_fault = e if isinstance(e, BackendInitFault) else BackendInitFault(str(e))
            logger.warning(f"Real LLM failed, falling back to mock: {e}")
            if service is not None:
                service.cleanup()
            return None

        self.last_init_fault = None
        return service

    def set_force_mock_mode(self, force_mock: bool) -> OnDeviceAiService:
        """Persist the mock preference and rebuild the backend under it"""
        with self._lock:
            try:
                self._preferences.set(KEY_FORCE_MOCK, force_mock)
            except Exception as e:
                logger.warning(f"Could not persist {KEY_FORCE_MOCK}: {e}")
            logger.info(f"Force mock mode: {force_mock}")
            return self.get_instance(force_recreate=True)

    def is_using_mock_backend(self) -> bool:
        with self._lock:
            return self._instance is not None and self._instance.backend_kind is BackendKind.RULE_BASED

    def current_backend_label(self) -> str:
        with self._lock:
            if self._instance is None:
                return NOT_INITIALIZED_LABEL
            return self._instance.label

    def watch_retirement(self, service: OnDeviceAiService, listener: Callable[[], None]) -> bool:
        """
        Call listener once when service stops being the active backend.

        Returns False without registering if service is no longer active.
        Listeners run on the thread doing the swap, under the factory lock,
        so they should only hand work off (e.g. ``call_soon_threadsafe``).
        """
        with self._lock:
            if service is not self._instance:
                return False
            self._retire_listeners.add(listener)
            return True

    def unwatch_retirement(self, listener: Callable[[], None]) -> None:
        with self._lock:
            self._retire_listeners.discard(listener)

    def _retire_current(self) -> None:
        if self._instance is None:
            return
        self._instance.cleanup()
        self._instance = None

        listeners, self._retire_listeners = self._retire_listeners, set()
        for listener in listeners:
            try:
                listener()
            except Exception as e:
                logger.warning(f"Retirement listener failed: {e}")

    def shutdown(self) -> None:
        """Release the active backend"""
        with self._lock:
            self._retire_current()
        logger.debug("Factory cleanup complete")
