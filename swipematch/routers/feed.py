from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from ..models.feed import FeedFilters, FeedResponse, FilterOptionsResponse
from ..services.feed_service import FeedService, get_feed_service
from ..utils.http import etag_matches, weak_etag
from .deps import require_current_user_id

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("", response_model=FeedResponse)
async def get_feed(
    limit: Optional[int] = Query(default=None),
    skip: Optional[int] = Query(default=None),
    min_age: Optional[int] = Query(default=None, alias="minAge"),
    max_age: Optional[int] = Query(default=None, alias="maxAge"),
    city: Optional[str] = Query(default=None),
    relationship_status: Optional[str] = Query(default=None, alias="relationshipStatus"),
    gender: Optional[str] = Query(default=None),
    verified_only: bool = Query(default=False, alias="verifiedOnly"),
    has_photos: bool = Query(default=False, alias="hasPhotos"),
    education: Optional[str] = Query(default=None),
    profession: Optional[str] = Query(default=None),
    drinking: Optional[str] = Query(default=None),
    smoking: Optional[str] = Query(default=None),
    eating: Optional[str] = Query(default=None),
    user_id: str = Depends(require_current_user_id),
    service: FeedService = Depends(get_feed_service),
):
    filters = FeedFilters(
        limit=limit,
        skip=skip,
        min_age=min_age,
        max_age=max_age,
        city=city,
        relationship_status=relationship_status,
        gender=gender,
        verified_only=verified_only,
        has_photos=has_photos,
        education=education,
        profession=profession,
        drinking=drinking,
        smoking=smoking,
        eating=eating,
    )
    results = await service.get_feed(user_id, filters)
    return FeedResponse(results=results)


@router.get("/filters", response_model=FilterOptionsResponse)
async def get_filter_options(
    request: Request,
    response: Response,
    _user_id: str = Depends(require_current_user_id),
    service: FeedService = Depends(get_feed_service),
):
    options = await service.filter_options()
    body = FilterOptionsResponse(filter_options=options)

    tag = weak_etag(body.model_dump(mode="json", by_alias=True))
    response.headers["ETag"] = tag
    response.headers["Cache-Control"] = "private, max-age=60"
    if etag_matches(request.headers.get("if-none-match"), tag):
        return Response(status_code=304, headers={"ETag": tag})
    return body


__all__ = ["router"]
