from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

from cutdapper.core.pagination import iso_utc
from cutdapper.schemas.search_request import SearchRequest


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class ClipperSummary(CamelModel):
    id: str
    name: str
    brand: Optional[str] = None
    model: Optional[str] = None

class ClipperLink(CamelModel):
    clipper: ClipperSummary

class VideoHit(CamelModel):
    id: str
    video_id: str
    title: str
    description: str = ""
    thumbnail_url: Optional[str] = None
    duration: Optional[str] = None
    channel_title: str
    tags: Dict[str, str] = {}
    created_at: datetime
    updated_at: datetime
    clippers: List[ClipperLink] = []

    @field_serializer("created_at", "updated_at")
    def _iso(self, dt: datetime) -> str:
        return iso_utc(dt)

class FacetCount(CamelModel):
    value: str
    count: int

class Facets(CamelModel):
    channels: List[FacetCount] = []
    brands: List[FacetCount] = []
    models: List[FacetCount] = []
    tags: Dict[str, List[FacetCount]] = {}

class Pagination(CamelModel):
    page: int
    page_size: int
    total: int
    total_pages: int

class SearchResponse(CamelModel):
    videos: List[VideoHit]
    pagination: Pagination
    facets: Facets
    input: SearchRequest
