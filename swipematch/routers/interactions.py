from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ..models.interaction import (
    DislikedUsersResponse,
    InteractionRemovalResponse,
    InteractionRequest,
    InteractionResponse,
    LikedUsersResponse,
)
from ..repositories.exceptions import NotFoundRepositoryError
from ..services.interaction_service import (
    InteractionService,
    InvalidInteractionError,
    get_interaction_service,
)
from ..services.user_service import to_detail
from .deps import require_current_user_id

router = APIRouter(prefix="/interactions", tags=["interactions"])


@router.post("", response_model=InteractionResponse)
async def create_interaction(
    payload: Optional[InteractionRequest] = Body(default=None),
    user_id: str = Depends(require_current_user_id),
    service: InteractionService = Depends(get_interaction_service),
):
    try:
        body = payload or InteractionRequest()
        outcome = await service.record_interaction(user_id, body.to, body.action)
    except InvalidInteractionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundRepositoryError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    if not outcome.matched or outcome.match is None:
        return InteractionResponse(match=False)

    # Matched: reveal the counterpart, contact details included
    user = to_detail(outcome.counterpart, is_matched=True) if outcome.counterpart else None
    return InteractionResponse(match=True, match_id=str(outcome.match.id), user=user)


@router.get("/liked", response_model=LikedUsersResponse)
async def list_liked(
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    user_id: str = Depends(require_current_user_id),
    service: InteractionService = Depends(get_interaction_service),
):
    liked = await service.list_liked(user_id, page=page, limit=limit)
    return LikedUsersResponse(liked_users=liked)


@router.get("/disliked", response_model=DislikedUsersResponse)
async def list_disliked(
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    user_id: str = Depends(require_current_user_id),
    service: InteractionService = Depends(get_interaction_service),
):
    disliked = await service.list_disliked(user_id, page=page, limit=limit)
    return DislikedUsersResponse(disliked_users=disliked)


@router.delete("/{target_user_id}", response_model=InteractionRemovalResponse)
async def delete_interaction(
    target_user_id: str,
    user_id: str = Depends(require_current_user_id),
    service: InteractionService = Depends(get_interaction_service),
):
    try:
        await service.remove_interaction(user_id, target_user_id)
    except InvalidInteractionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundRepositoryError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return InteractionRemovalResponse()


__all__ = ["router"]
