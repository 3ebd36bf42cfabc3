from fastapi import APIRouter
from . import contents, users

api_router = APIRouter()

api_router.include_router(contents.router, prefix="/contents", tags=["contents"])
api_router.include_router(users.router, prefix="/users", tags=["users"])

__all__ = ["api_router"]
