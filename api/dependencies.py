"""
FastAPI dependencies shared by route modules
"""

from fastapi import Request

from kitchen_ai import AiServiceFactory


def get_ai_factory(request: Request) -> AiServiceFactory:
    """The selection policy owned by the application lifespan"""
    return request.app.state.ai_factory
