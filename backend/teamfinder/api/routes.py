from typing import Optional

from fastapi import APIRouter, Depends, Query

from teamfinder.api.dependencies import get_search_service
from teamfinder.auth.firebase_auth import FirebaseUser, get_current_user
from teamfinder.schemas.team_models import TeammateSearchResponse
from teamfinder.services.search_service import TeammateSearchService, parse_skill_query

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/users/search", response_model=TeammateSearchResponse, tags=["users"])
def search_teammates(
    skills: Optional[str] = Query(None, description="Comma-separated skills, e.g. python,react"),
    limit: Optional[int] = Query(None),
    user: FirebaseUser = Depends(get_current_user),
    service: TeammateSearchService = Depends(get_search_service),
) -> TeammateSearchResponse:
    """Rank potential teammates by skill overlap, excluding the caller."""
    query = parse_skill_query(skills)
    results = service.search(query, exclude_user_id=user.uid, limit=limit)
    return TeammateSearchResponse(query=query, results=results, total=len(results), limit=limit)
