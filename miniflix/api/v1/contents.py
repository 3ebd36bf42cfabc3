from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ...database import get_async_db
from ...models.user import User
from ...api.deps import get_current_user
from ...schemas.playback import (
    ActionResponse,
    FinalPositionRequest,
    PlaybackPositionRequest,
    StreamingResponse,
)
from ...services.exceptions import ContentNotFoundError, InvalidPlaybackPositionError
from ...services.streaming import streaming_resolver
from ...services.viewing_history import viewing_history_service

router = APIRouter()
logger = logging.getLogger(__name__)


def _ensure_matching_content(path_id: int, body_id: int) -> None:
    if path_id != body_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="content_id in body does not match the content in the path"
        )


@router.get("/{content_id}/stream", response_model=StreamingResponse)
async def stream_content(
    content_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    ▶️ Resolve streaming URL and resume offset for a watch session
    """
    try:
        grant = await streaming_resolver.resolve(db, content_id, current_user.id)
        return StreamingResponse(**grant.to_response())

    except ContentNotFoundError:
        raise HTTPException(status_code=404, detail="Content not found")
    except Exception as e:
        logger.error(f"❌ Error resolving stream for content {content_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to resolve stream"
        )


@router.post("/{content_id}/playback", response_model=ActionResponse)
async def update_playback_position(
    content_id: int,
    request: PlaybackPositionRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    📊 Heartbeat: store the current playback position
    """
    _ensure_matching_content(content_id, request.content_id)

    try:
        await viewing_history_service.upsert_position(
            db,
            content_id=content_id,
            user_id=current_user.id,
            position=request.current_position,
        )
        return ActionResponse()

    except InvalidPlaybackPositionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ContentNotFoundError:
        raise HTTPException(status_code=404, detail="Content not found")
    except Exception as e:
        logger.error(f"❌ Error updating playback position: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update playback position"
        )


async def _store_final(
    content_id: int,
    request: FinalPositionRequest,
    current_user: User,
    db: AsyncSession,
) -> ActionResponse:
    _ensure_matching_content(content_id, request.content_id)

    try:
        await viewing_history_service.upsert_final(
            db,
            content_id=content_id,
            user_id=current_user.id,
            final_position=request.final_position,
            watch_duration=request.watch_duration,
            is_completed=request.is_completed,
        )
        return ActionResponse()

    except InvalidPlaybackPositionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ContentNotFoundError:
        raise HTTPException(status_code=404, detail="Content not found")
    except Exception as e:
        logger.error(f"❌ Error saving final position: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save final position"
        )


@router.post("/{content_id}/final-position", response_model=ActionResponse)
async def save_final_position(
    content_id: int,
    request: FinalPositionRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    ⏹️ Store the terminal position written when a session ends
    """
    return await _store_final(content_id, request, current_user, db)


@router.post("/{content_id}/history", response_model=ActionResponse)
async def update_viewing_history(
    content_id: int,
    request: FinalPositionRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Viewing history write, same record and semantics as final-position
    """
    return await _store_final(content_id, request, current_user, db)
