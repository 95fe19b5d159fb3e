"""
Error types for the Kitchen Kompanion assistant engine
Failures are caught at the backend or policy boundary and never reach callers raw
"""

from enum import Enum


class FailureType(Enum):
    """Kinds of failure the assistant distinguishes"""
    GENERATION = "generation_error"
    BACKEND_INIT = "backend_init_error"
    CONFIG_ACCESS = "config_access_error"
    BACKEND_REPLACED = "backend_replaced"


class KitchenAIError(Exception):
    """Base class for assistant errors"""

    failure_type: FailureType = FailureType.GENERATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class GenerationFault(KitchenAIError):
    """Building a response failed; delivered to callers as a callback error"""

    failure_type = FailureType.GENERATION


class BackendInitFault(KitchenAIError):
    """A non-default backend could not be constructed or initialized"""

    failure_type = FailureType.BACKEND_INIT


class ConfigAccessFault(KitchenAIError):
    """Persisted preferences could not be read or written"""

    failure_type = FailureType.CONFIG_ACCESS


class BackendReplacedFault(KitchenAIError):
    """The backend serving a request was retired before it answered"""

    failure_type = FailureType.BACKEND_REPLACED
