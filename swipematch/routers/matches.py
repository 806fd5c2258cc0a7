from fastapi import APIRouter, Depends, HTTPException, status

from ..models.match import MatchesResponse, MatchResponse
from ..repositories.exceptions import NotFoundRepositoryError
from ..services.match_service import MatchAccessError, MatchService, get_match_service
from .deps import require_current_user_id

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get("", response_model=MatchesResponse)
async def list_matches(
    user_id: str = Depends(require_current_user_id),
    service: MatchService = Depends(get_match_service),
):
    matches = await service.list_matches(user_id)
    return MatchesResponse(matches=matches)


@router.get("/{match_id}", response_model=MatchResponse)
async def get_match(
    match_id: str,
    user_id: str = Depends(require_current_user_id),
    service: MatchService = Depends(get_match_service),
):
    try:
        match = await service.get_match(user_id, match_id)
    except NotFoundRepositoryError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except MatchAccessError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return MatchResponse(match=match)


__all__ = ["router"]
