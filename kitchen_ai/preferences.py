"""
Key-value preferences consulted by the service selection policy
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

KEY_FORCE_MOCK = "force_mock_ai"
KEY_MODEL_PATH = "llm_model_path"


class PreferenceStore(ABC):
    """Get/set access to persisted assistant preferences; may raise ConfigAccessFault"""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key, default)
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    def get_string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.get(key, default)
        return None if value is None else str(value)


class InMemoryPreferenceStore(PreferenceStore):
    """Process-local store, seeded from settings at startup"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings) -> "InMemoryPreferenceStore":
        return cls({
            KEY_FORCE_MOCK: settings.force_mock_ai,
            KEY_MODEL_PATH: settings.llm_model_path,
        })

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value
