"""
Backend lifecycle routes
Inspect, toggle and rebuild the active AI service
"""

from fastapi import APIRouter, Depends
import structlog

from kitchen_ai import AiServiceFactory
from ..dependencies import get_ai_factory
from ..models import BackendStatusResponse, MockModeRequest

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/backend", tags=["Backend"])


def _status(factory: AiServiceFactory) -> BackendStatusResponse:
    service = factory.current
    return BackendStatusResponse(
        label=factory.current_backend_label(),
        is_mock=factory.is_using_mock_backend(),
        available=service is not None and service.is_available(),
    )


@router.get("", response_model=BackendStatusResponse)
def get_backend_status(factory: AiServiceFactory = Depends(get_ai_factory)):
    """Report the active backend without creating one"""
    return _status(factory)


@router.put("/mock-mode", response_model=BackendStatusResponse)
def set_mock_mode(body: MockModeRequest, factory: AiServiceFactory = Depends(get_ai_factory)):
    """Force or release the rule-based backend; takes effect immediately

    Plain def so a model load runs in the threadpool, off the event loop
    """
    factory.set_force_mock_mode(body.force_mock)
    logger.info("Mock mode updated", force_mock=body.force_mock, backend=factory.current_backend_label())
    return _status(factory)


@router.post("/recreate", response_model=BackendStatusResponse)
def recreate_backend(factory: AiServiceFactory = Depends(get_ai_factory)):
    """Tear down the active backend and select a new one"""
    factory.get_instance(force_recreate=True)
    logger.info("Backend recreated", backend=factory.current_backend_label())
    return _status(factory)
