"""
Service selection policy tests
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from kitchen_ai import (
    AiServiceFactory,
    BackendInitFault,
    BackendKind,
    ConfigAccessFault,
    InMemoryPreferenceStore,
    LocalModelAiService,
    RuleBasedAiService,
)
from kitchen_ai.preferences import KEY_FORCE_MOCK, KEY_MODEL_PATH


class FlakyPreferenceStore(InMemoryPreferenceStore):
    """Fails on selected keys"""

    def __init__(self, initial=None, unreadable=(), unwritable=()):
        super().__init__(initial)
        self.unreadable = set(unreadable)
        self.unwritable = set(unwritable)

    def get(self, key, default=None):
        if key in self.unreadable:
            raise ConfigAccessFault(f"cannot read {key}")
        return super().get(key, default)

    def set(self, key, value):
        if key in self.unwritable:
            raise ConfigAccessFault(f"cannot write {key}")
        super().set(key, value)


@pytest.fixture
def loader(make_runtime):
    """Runtime loader that records the paths it was asked to load"""
    class Loader:
        def __init__(self):
            self.paths = []
            self.runtimes = []

        def __call__(self, path):
            self.paths.append(path)
            runtime = make_runtime()
            self.runtimes.append(runtime)
            return runtime

    return Loader()


@pytest.fixture
def local_factory(model_file, loader):
    """Factory able to pick the local model"""
    factory = AiServiceFactory(
        InMemoryPreferenceStore({KEY_MODEL_PATH: model_file}),
        runtime_loader=loader,
        memory_probe=lambda: 8192,
    )
    yield factory
    factory.shutdown()


class TestSelection:
    """Which backend gets built"""

    def test_rule_based_by_default(self):
        factory = AiServiceFactory(InMemoryPreferenceStore())
        service = factory.get_instance()

        assert isinstance(service, RuleBasedAiService)
        assert factory.is_using_mock_backend()
        assert factory.current_backend_label() == "Mock AI (Rule-based)"

    def test_local_model_when_present(self, local_factory, loader, model_file):
        service = local_factory.get_instance()

        assert isinstance(service, LocalModelAiService)
        assert service.is_available()
        assert loader.paths == [model_file]
        assert not local_factory.is_using_mock_backend()
        assert local_factory.current_backend_label() == "Real LLM"
        assert local_factory.last_init_fault is None

    def test_force_mock_preference_wins(self, model_file, loader):
        factory = AiServiceFactory(
            InMemoryPreferenceStore({KEY_FORCE_MOCK: True, KEY_MODEL_PATH: model_file}),
            runtime_loader=loader,
            memory_probe=lambda: 8192,
        )

        assert factory.get_instance().backend_kind is BackendKind.RULE_BASED
        assert loader.paths == []

    def test_string_preference_values(self, model_file, loader):
        factory = AiServiceFactory(
            InMemoryPreferenceStore({KEY_FORCE_MOCK: "true", KEY_MODEL_PATH: model_file}),
            runtime_loader=loader,
            memory_probe=lambda: 8192,
        )
        assert factory.is_using_mock_backend() is False
        factory.get_instance()
        assert factory.is_using_mock_backend()

    def test_missing_model_file(self, tmp_path, loader):
        factory = AiServiceFactory(
            InMemoryPreferenceStore({KEY_MODEL_PATH: str(tmp_path / "missing.gguf")}),
            runtime_loader=loader,
            memory_probe=lambda: 8192,
        )

        assert isinstance(factory.get_instance(), RuleBasedAiService)
        assert loader.paths == []

    def test_insufficient_memory(self, model_file, loader):
        factory = AiServiceFactory(
            InMemoryPreferenceStore({KEY_MODEL_PATH: model_file}),
            runtime_loader=loader,
            min_model_memory_mb=4096,
            memory_probe=lambda: 1024,
        )

        assert isinstance(factory.get_instance(), RuleBasedAiService)
        assert loader.paths == []
        assert factory.last_init_fault is None


class TestFallback:
    """Local model failures degrade to the rule-based backend"""

    def test_runtime_refuses_to_load(self, model_file, make_runtime):
        factory = AiServiceFactory(
            InMemoryPreferenceStore({KEY_MODEL_PATH: model_file}),
            runtime_loader=lambda path: make_runtime(loads=False),
            memory_probe=lambda: 8192,
        )

        assert isinstance(factory.get_instance(), RuleBasedAiService)
        assert isinstance(factory.last_init_fault, BackendInitFault)
        assert model_file in factory.last_init_fault.message

    def test_loader_raises(self, model_file):
        def broken_loader(path):
            raise OSError("unsupported model format")

        factory = AiServiceFactory(
            InMemoryPreferenceStore({KEY_MODEL_PATH: model_file}),
            runtime_loader=broken_loader,
            memory_probe=lambda: 8192,
        )

        assert isinstance(factory.get_instance(), RuleBasedAiService)
        assert factory.last_init_fault.message == "unsupported model format"

    def test_failed_runtime_is_closed(self, model_file, make_runtime):
        runtime = make_runtime(loads=False)
        factory = AiServiceFactory(
            InMemoryPreferenceStore({KEY_MODEL_PATH: model_file}),
            runtime_loader=lambda path: runtime,
            memory_probe=lambda: 8192,
        )
        factory.get_instance()

        assert runtime.closed

    def test_unreadable_force_mock_assumed_false(self, model_file, loader):
        factory = AiServiceFactory(
            FlakyPreferenceStore({KEY_MODEL_PATH: model_file}, unreadable=[KEY_FORCE_MOCK]),
            runtime_loader=loader,
            memory_probe=lambda: 8192,
        )
        try:
            assert isinstance(factory.get_instance(), LocalModelAiService)
        finally:
            factory.shutdown()

    def test_unreadable_model_path(self, model_file, loader):
        factory = AiServiceFactory(
            FlakyPreferenceStore({KEY_MODEL_PATH: model_file}, unreadable=[KEY_MODEL_PATH]),
            runtime_loader=loader,
            memory_probe=lambda: 8192,
        )

        assert isinstance(factory.get_instance(), RuleBasedAiService)


class TestLifecycle:
    """Memoization, recreation and shutdown"""

    def test_not_initialized_label(self):
        factory = AiServiceFactory(InMemoryPreferenceStore())

        assert factory.current is None
        assert factory.current_backend_label() == "Not initialized"
        assert not factory.is_using_mock_backend()

    def test_memoized(self):
        factory = AiServiceFactory(InMemoryPreferenceStore())
        assert factory.get_instance() is factory.get_instance()
        assert factory.current is factory.get_instance()

    def test_force_recreate_cleans_up_previous(self):
        factory = AiServiceFactory(InMemoryPreferenceStore())
        old = factory.get_instance()
        new = factory.get_instance(force_recreate=True)

        assert new is not old
        assert not old.is_available()
        assert new.is_available()

    def test_set_force_mock_mode_round_trip(self, local_factory, loader):
        first = local_factory.get_instance()
        assert isinstance(first, LocalModelAiService)

        mock = local_factory.set_force_mock_mode(True)
        assert isinstance(mock, RuleBasedAiService)
        assert not first.is_available()
        assert loader.runtimes[0].closed
        assert local_factory.is_using_mock_backend()

        real = local_factory.set_force_mock_mode(False)
        assert isinstance(real, LocalModelAiService)
        assert not mock.is_available()
        assert local_factory.current_backend_label() == "Real LLM"

    def test_set_force_mock_mode_persists(self):
        preferences = InMemoryPreferenceStore()
        factory = AiServiceFactory(preferences)
        factory.set_force_mock_mode(True)

        assert preferences.get_bool(KEY_FORCE_MOCK) is True

    def test_unwritable_preference_still_recreates(self):
        factory = AiServiceFactory(FlakyPreferenceStore(unwritable=[KEY_FORCE_MOCK]))
        old = factory.get_instance()
        new = factory.set_force_mock_mode(True)

        assert new is not old
        assert isinstance(new, RuleBasedAiService)

    def test_shutdown(self, local_factory, loader):
        service = local_factory.get_instance()
        local_factory.shutdown()

        assert not service.is_available()
        assert loader.runtimes[0].closed
        assert local_factory.current is None
        assert local_factory.current_backend_label() == "Not initialized"

    def test_shutdown_without_instance(self):
        factory = AiServiceFactory(InMemoryPreferenceStore())
        factory.shutdown()
        assert factory.current is None

    def test_concurrent_get_instance_builds_one_backend(self, local_factory, loader):
        start = threading.Barrier(8)

        def build(_):
            start.wait()
            return local_factory.get_instance()

        with ThreadPoolExecutor(max_workers=8) as pool:
            services = list(pool.map(build, range(8)))

        assert len({id(service) for service in services}) == 1
        assert len(loader.paths) == 1

    def test_from_settings(self, test_settings):
        factory = AiServiceFactory.from_settings(test_settings, InMemoryPreferenceStore.from_settings(test_settings))

        assert isinstance(factory.get_instance(), RuleBasedAiService)


class TestRetirement:
    """Listeners told when the active backend is swapped out"""

    def test_listener_fires_when_mock_mode_changes(self):
        factory = AiServiceFactory(InMemoryPreferenceStore())
        service = factory.get_instance()
        fired = []

        assert factory.watch_retirement(service, lambda: fired.append("retired"))
        factory.set_force_mock_mode(True)

        assert fired == ["retired"]

    def test_listener_fires_once(self):
        factory = AiServiceFactory(InMemoryPreferenceStore())
        service = factory.get_instance()
        fired = []
        factory.watch_retirement(service, lambda: fired.append("retired"))

        factory.get_instance(force_recreate=True)
        factory.get_instance(force_recreate=True)

        assert fired == ["retired"]

    def test_shutdown_notifies(self):
        factory = AiServiceFactory(InMemoryPreferenceStore())
        fired = []
        factory.watch_retirement(factory.get_instance(), lambda: fired.append("retired"))

        factory.shutdown()

        assert fired == ["retired"]

    def test_already_retired_service_rejected(self):
        factory = AiServiceFactory(InMemoryPreferenceStore())
        old = factory.get_instance()
        factory.get_instance(force_recreate=True)
        fired = []

        assert not factory.watch_retirement(old, lambda: fired.append("retired"))
        factory.shutdown()
        assert fired == []

    def test_unwatched_listener_not_called(self):
        factory = AiServiceFactory(InMemoryPreferenceStore())
        fired = []

        def listener():
            fired.append("retired")

        factory.watch_retirement(factory.get_instance(), listener)
        factory.unwatch_retirement(listener)
        factory.shutdown()

        assert fired == []

    def test_failing_listener_does_not_stop_swap(self):
        factory = AiServiceFactory(InMemoryPreferenceStore())
        service = factory.get_instance()
        fired = []

        def broken():
            raise RuntimeError("event loop closed")

        factory.watch_retirement(service, broken)
        factory.watch_retirement(service, lambda: fired.append("retired"))
        replacement = factory.get_instance(force_recreate=True)

        assert replacement is not service
        assert replacement.is_available()
        assert fired == ["retired"]
