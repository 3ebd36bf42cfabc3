# miniflix/api/v1/__init__.py
from .router import api_router

__all__ = ["api_router"]
