"""
Assistant routes
Recipe suggestions, grocery lists, substitutions and chat backed by the active AI service
"""

import asyncio
import time
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
import structlog

from config import get_settings
from kitchen_ai import AiCallback, AiServiceFactory, BackendReplacedFault, FutureCallback, OnDeviceAiService
from kitchen_ai.service_factory import BACKEND_REPLACED_MESSAGE
from ..dependencies import get_ai_factory
from ..models import (
    AssistantResponse,
    ChatRequest,
    GroceryListRequest,
    RecipeSuggestionRequest,
    SubstituteRequest,
)

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/assistant", tags=["Assistant"])


async def run_assistant_request(
    request: Request,
    factory: AiServiceFactory,
    operation: str,
    invoke: Callable[[OnDeviceAiService, AiCallback], None],
) -> AssistantResponse:
    """Issue one request against the active backend and wait for its callback"""
    settings = get_settings()
    loop = asyncio.get_running_loop()
    service = await run_in_threadpool(factory.get_instance)

    if not service.is_available():
        raise HTTPException(status_code=503, detail="AI service is not available")

    start_time = time.time()
    callback = FutureCallback(loop)

    # A swapped-out backend never answers; fail the request instead of waiting
    def on_retired():
        loop.call_soon_threadsafe(callback.fail, BackendReplacedFault(BACKEND_REPLACED_MESSAGE))

    if not factory.watch_retirement(service, on_retired):
        raise HTTPException(status_code=503, detail=BACKEND_REPLACED_MESSAGE)

    try:
        invoke(service, callback)
        text = await asyncio.wait_for(callback.future, timeout=settings.ai_request_timeout)
    except asyncio.TimeoutError:
        logger.warning("Assistant request timed out", operation=operation, backend=service.label)
        raise HTTPException(status_code=504, detail="Assistant did not respond in time")
    except BackendReplacedFault as e:
        logger.warning("Backend replaced during request", operation=operation, backend=service.label)
        raise HTTPException(status_code=503, detail=e.message)
    finally:
        factory.unwatch_retirement(on_retired)

    processing_time = round(time.time() - start_time, 4)
    logger.info(
        "Assistant request completed",
        operation=operation,
        backend=service.label,
        processing_time=processing_time,
    )

    response = AssistantResponse(
        response=text,
        backend=service.label,
        processing_time=processing_time,
    )
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        response.request_id = request_id
    return response


@router.post("/recipes", response_model=AssistantResponse)
async def suggest_recipes(
    body: RecipeSuggestionRequest,
    request: Request,
    factory: AiServiceFactory = Depends(get_ai_factory),
):
    """Suggest three recipes for the given pantry ingredients"""
    ingredients = ", ".join(body.ingredients[:get_settings().max_ingredients])
    return await run_assistant_request(
        request, factory, "recipes",
        lambda service, callback: service.suggest_recipes(ingredients, body.preferences, callback),
    )


@router.post("/grocery-list", response_model=AssistantResponse)
async def generate_grocery_list(
    body: GroceryListRequest,
    request: Request,
    factory: AiServiceFactory = Depends(get_ai_factory),
):
    """Build a grocery list for a meal plan, skipping what the pantry covers"""
    pantry_items = ", ".join(body.pantry_items)
    return await run_assistant_request(
        request, factory, "grocery_list",
        lambda service, callback: service.generate_grocery_list(pantry_items, body.meal_plan, callback),
    )


@router.post("/substitutes", response_model=AssistantResponse)
async def suggest_substitutes(
    body: SubstituteRequest,
    request: Request,
    factory: AiServiceFactory = Depends(get_ai_factory),
):
    """Suggest replacements for an ingredient"""
    return await run_assistant_request(
        request, factory, "substitutes",
        lambda service, callback: service.suggest_substitutes(body.ingredient, body.recipe, callback),
    )


@router.post("/chat", response_model=AssistantResponse)
async def chat(
    body: ChatRequest,
    request: Request,
    factory: AiServiceFactory = Depends(get_ai_factory),
):
    """Answer a free-form cooking question"""
    return await run_assistant_request(
        request, factory, "chat",
        lambda service, callback: service.chat(body.message, body.context, callback),
    )
