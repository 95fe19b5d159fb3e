"""
Request and Response models for the Kitchen Kompanion Assistant Service
Validation and standardized API models
"""

from typing import List, Dict, Any, Optional
from datetime import datetime
from enum import Enum
from pydantic import AfterValidator, BaseModel, Field, field_validator
from typing_extensions import Annotated
import uuid


class ResponseStatus(str, Enum):
    """Standard response statuses"""
    SUCCESS = "success"
    ERROR = "error"


class ErrorType(str, Enum):
    """Error types for standardized error handling"""
    VALIDATION_ERROR = "validation_error"
    GENERATION_ERROR = "generation_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    TIMEOUT_ERROR = "timeout_error"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"


class BaseResponse(BaseModel):
    """Base response model for all API responses"""
    status: ResponseStatus
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))


class ErrorResponse(BaseResponse):
    """Standardized error response"""
    status: ResponseStatus = ResponseStatus.ERROR
    error_type: ErrorType
    detail: str
    errors: Optional[List[Dict[str, Any]]] = None


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    version: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    checks: Dict[str, bool] = Field(default_factory=dict)
    backend: str
    uptime: Optional[float] = None


def _required_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError('Value must not be blank')
    return v


def _optional_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


def _item_list(v: List[str]) -> List[str]:
    items = [item.strip() for item in v if item and item.strip()]
    if not items:
        raise ValueError('At least one item is required')
    return items


# Assistant request models
class RecipeSuggestionRequest(BaseModel):
    """Request model for recipe suggestions"""
    ingredients: Annotated[List[str], AfterValidator(_item_list)] = Field(
        ..., min_length=1, max_length=100, description="Pantry ingredients"
    )
    preferences: Annotated[Optional[str], AfterValidator(_optional_text)] = Field(
        None, max_length=500, description="Dietary preferences"
    )


class GroceryListRequest(BaseModel):
    """Request model for grocery list generation"""
    pantry_items: List[str] = Field(default_factory=list, max_length=200)
    meal_plan: Annotated[str, AfterValidator(_required_text)] = Field(..., min_length=1, max_length=2000)

    @field_validator('pantry_items')
    @classmethod
    def validate_pantry_items(cls, v):
        return [item.strip() for item in v if item and item.strip()]


class SubstituteRequest(BaseModel):
    """Request model for ingredient substitution"""
    ingredient: Annotated[str, AfterValidator(_required_text)] = Field(..., min_length=1, max_length=100)
    recipe: Annotated[Optional[str], AfterValidator(_optional_text)] = Field(None, max_length=200)


class ChatRequest(BaseModel):
    """Request model for free-form chat"""
    message: Annotated[str, AfterValidator(_required_text)] = Field(..., min_length=1, max_length=2000)
    context: Optional[str] = Field(None, max_length=5000)


class AssistantResponse(BaseResponse):
    """Formatted assistant text"""
    status: ResponseStatus = ResponseStatus.SUCCESS
    response: str
    backend: str
    processing_time: Optional[float] = None


# Backend lifecycle models
class MockModeRequest(BaseModel):
    """Toggle the rule-based backend"""
    force_mock: bool


class BackendStatusResponse(BaseModel):
    """Active backend details"""
    label: str
    is_mock: bool
    available: bool
    timestamp: datetime = Field(default_factory=datetime.utcnow)
