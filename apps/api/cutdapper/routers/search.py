from fastapi import APIRouter, Depends, Request

from cutdapper.dependencies import get_search_service
from cutdapper.schemas.search_request import SearchRequest, parse_query_params
from cutdapper.schemas.search_response import SearchResponse
from cutdapper.services.search_service import SearchService

router = APIRouter(prefix="/search", tags=["search"])

@router.post("", response_model=SearchResponse)
def search_endpoint(body: SearchRequest, svc: SearchService = Depends(get_search_service)) -> SearchResponse:
    return svc.execute(body)

@router.get("", response_model=SearchResponse)
def search_from_query(request: Request, svc: SearchService = Depends(get_search_service)) -> SearchResponse:
    # URL-state form: repeated or comma separated lists, tags as a JSON object
    req = parse_query_params(request.query_params.multi_items())
    return svc.execute(req)
