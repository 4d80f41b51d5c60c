import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List

from cutdapper.core.pagination import total_pages
from cutdapper.domain.facets import FacetRegistry, facet_registry
from cutdapper.domain.predicates import compile_filters
from cutdapper.repositories.videos_repo import VideoSearchRepository
from cutdapper.schemas.search_request import SearchRequest
from cutdapper.schemas.search_response import (
    ClipperLink, ClipperSummary, Facets, Pagination, SearchResponse, VideoHit,
)

logger = logging.getLogger(__name__)


def to_video_hit(row: Dict[str, Any]) -> VideoHit:
    """Project a projection row into the display shape, clippers nested as {clipper: {...}}."""
    clippers = [
        ClipperLink(clipper=ClipperSummary(
            id=c["id"], name=c["name"], brand=c.get("brand"), model=c.get("model"),
        ))
        for c in (row.get("clipper_details") or [])
    ]
    return VideoHit(
        id=row["id"],
        video_id=row["video_id"],
        title=row["title"],
        description=row.get("description") or "",
        thumbnail_url=row.get("thumbnail_url"),
        duration=row.get("duration"),
        channel_title=row["channel_title"],
        tags=row.get("tags") or {},
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        clippers=clippers,
    )


class SearchService:
    def __init__(self, repo: VideoSearchRepository, registry: FacetRegistry = facet_registry,
                 max_workers: int = 1):
        self.repo = repo
        self.registry = registry
        self.max_workers = max_workers

    def execute(self, req: SearchRequest) -> SearchResponse:
        """Run page, count and facet reads over one predicate and merge them."""
        started = time.perf_counter()
        predicate = compile_filters(req)
        logger.debug("compiled %d search clause(s)", len(predicate))

        facets = self.registry.get_all_facets()
        # Any failed read propagates from .result(); no partial envelope is built
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            rows_f = pool.submit(self.repo.fetch_page, predicate, req.page, req.page_size)
            total_f = pool.submit(self.repo.count, predicate)
            facet_fs = [(f.name, pool.submit(self.repo.facet_counts, f, predicate)) for f in facets]
            rows: List[Dict[str, Any]] = rows_f.result()
            total = total_f.result()
            facet_results = {name: fut.result() for name, fut in facet_fs}

        response = SearchResponse(
            videos=[to_video_hit(r) for r in rows],
            pagination=Pagination(
                page=req.page,
                page_size=req.page_size,
                total=total,
                total_pages=total_pages(total, req.page_size),
            ),
            facets=Facets(**{
                name: self.registry.format_result(result) for name, result in facet_results.items()
            }),
            input=req,
        )
        logger.info(
            "search total=%d page=%d/%d in %.1fms",
            total, req.page, response.pagination.total_pages, (time.perf_counter() - started) * 1000,
        )
        return response
