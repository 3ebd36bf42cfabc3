from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ...database import get_async_db
from ...models.user import User
from ...api.deps import get_current_user
from ...schemas.playback import ViewingHistoryItem
from ...services.viewing_history import viewing_history_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/viewing-history", response_model=List[ViewingHistoryItem])
async def get_viewing_history(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Get the user's viewing history, most recently watched first
    """
    try:
        return await viewing_history_service.list_history(db, current_user.id)
    except Exception as e:
        logger.error(f"Error fetching viewing history: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch viewing history"
        )


@router.get("/continue-watching", response_model=List[ViewingHistoryItem])
async def get_continue_watching(
    limit: Optional[int] = Query(default=None, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Get continue watching list for user
    Returns incomplete content, most recently watched first
    """
    try:
        return await viewing_history_service.continue_watching(db, current_user.id, limit)
    except Exception as e:
        logger.error(f"Error fetching continue watching: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch continue watching"
        )
