from fastapi import APIRouter, Depends, HTTPException, status

from ..models.user import OwnProfileResponse, UserDetailResponse, UserProfileUpsert
from ..repositories.exceptions import NotFoundRepositoryError
from ..services.user_service import UserService, get_user_service
from .deps import require_current_user_id

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=OwnProfileResponse)
async def get_me(
    user_id: str = Depends(require_current_user_id),
    service: UserService = Depends(get_user_service),
):
    try:
        profile = await service.get_me(user_id)
    except NotFoundRepositoryError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return OwnProfileResponse(user=profile)


@router.put("/me", response_model=OwnProfileResponse)
async def upsert_me(
    payload: UserProfileUpsert,
    user_id: str = Depends(require_current_user_id),
    service: UserService = Depends(get_user_service),
):
    profile = await service.upsert_profile(user_id, payload)
    return OwnProfileResponse(user=profile)


@router.get("/{target_user_id}", response_model=UserDetailResponse)
async def get_user(
    target_user_id: str,
    user_id: str = Depends(require_current_user_id),
    service: UserService = Depends(get_user_service),
):
    try:
        detail = await service.get_detail(user_id, target_user_id)
    except NotFoundRepositoryError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return UserDetailResponse(user=detail)


__all__ = ["router"]
