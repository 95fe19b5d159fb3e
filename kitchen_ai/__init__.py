"""
Kitchen Kompanion - On-Device Assistant Engine
Rule-based recipe, grocery, substitution and chat responses behind a swappable backend
"""

from .errors import (
    BackendInitFault,
    BackendReplacedFault,
    ConfigAccessFault,
    GenerationFault,
    KitchenAIError,
)
from .local_model import LocalModelAiService, ModelRuntime
from .preferences import InMemoryPreferenceStore, PreferenceStore
from .response_generator import ResponseGenerator
from .rule_based import RuleBasedAiService
from .service import AiCallback, BackendKind, FutureCallback, OnDeviceAiService
from .service_factory import AiServiceFactory

__all__ = [
    'AiCallback',
    'AiServiceFactory',
    'BackendInitFault',
    'BackendReplacedFault',
    'BackendKind',
    'ConfigAccessFault',
    'FutureCallback',
    'GenerationFault',
    'InMemoryPreferenceStore',
    'KitchenAIError',
    'LocalModelAiService',
    'ModelRuntime',
    'OnDeviceAiService',
    'PreferenceStore',
    'ResponseGenerator',
    'RuleBasedAiService',
]
