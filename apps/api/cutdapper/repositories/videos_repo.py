import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from cutdapper.core.exceptions import StorageError
from cutdapper.core.pagination import page_offset
from cutdapper.domain.facets import Facet, FacetContext, FacetResult
from cutdapper.domain.predicates import CompiledPredicate
from cutdapper.repositories.query_builder import apply_predicate, build_base_query
from cutdapper.repositories.tables import video_search

logger = logging.getLogger(__name__)


class VideoSearchRepository:
    """
    Read-only access to the video search projection.

    Each call opens its own session so page, count and facet reads can run
    on separate threads against the same predicate.
    """

    def __init__(self, session_factory: sessionmaker, drill_sideways: bool = False):
        self.session_factory = session_factory
        self.drill_sideways = drill_sideways

    @contextmanager
    def _reading(self, what: str) -> Iterator[Session]:
        try:
            with self.session_factory() as db:
                yield db
        except SQLAlchemyError as e:
            logger.exception("search projection read failed: %s", what)
            raise StorageError(f"failed to read {what}") from e

    def fetch_page(self, predicate: CompiledPredicate, page: int, page_size: int) -> List[Dict[str, Any]]:
        """Rows for one page, newest first with id as tiebreak."""
        query = (
            apply_predicate(build_base_query(), predicate)
            .order_by(video_search.c.created_at.desc(), video_search.c.id.asc())
            .limit(page_size)
            .offset(page_offset(page, page_size))
        )
        with self._reading("page") as db:
            return [dict(r._mapping) for r in db.execute(query).all()]

    def count(self, predicate: CompiledPredicate) -> int:
        query = apply_predicate(select(func.count()).select_from(video_search), predicate)
        with self._reading("count") as db:
            return int(db.execute(query).scalar_one())

    def facet_counts(self, facet: Facet, predicate: CompiledPredicate) -> FacetResult:
        with self._reading(f"{facet.name} facet") as db:
            return facet.compute(predicate, FacetContext(db=db, drill_sideways=self.drill_sideways))
