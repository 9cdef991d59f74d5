from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException

from bookpath.internal.book_search import BookSearchService, get_search_service
from bookpath.internal.errors import SearchValidationError
from bookpath.internal.models import SearchQuery, SearchResult

router = APIRouter(prefix="/search", tags=["Search"])


@router.get("", response_model=SearchResult)
async def search_books(
    service: Annotated[BookSearchService, Depends(get_search_service)],
    title: str | None = None,
    author: str | None = None,
    category: str | None = None,
    subject: str | None = None,
    condition: str | None = None,
    sort: str | None = None,
    page: int = 1,
    requester: Annotated[str | None, Header(alias="X-Requester")] = None,
):
    try:
        query = SearchQuery.from_params(
            title=title,
            author=author,
            category=category,
            subject=subject,
            condition=condition,
            sort=sort,
            page=page,
        )
        return await service.search(query, requester=requester)
    except SearchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
