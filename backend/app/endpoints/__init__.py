# app/endpoints/__init__.py

# Import routers from each endpoint file
from .requests import router as requests_router
from .ai_test import router as ai_test_router

__all__ = ["requests_router", "ai_test_router"]
