import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from cutdapper.core.exceptions import StorageError
from cutdapper.repositories.tables import (
    clippers, video_clippers, video_search, video_search_brands,
    video_search_models, video_search_tags, videos,
)

logger = logging.getLogger(__name__)


def _tag_pairs(tags: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Flatten a video's tag mapping to key -> string value, skipping empties."""
    pairs: Dict[str, str] = {}
    for key, value in (tags or {}).items():
        if value is None or isinstance(value, (dict, list)):
            continue
        value = str(value).strip()
        if key and value:
            pairs[key] = value
    return pairs


class ProjectionRefresher:
    """
    Rebuilds the video search projection from the videos, clippers and
    video_clippers tables. Callers that write those tables invoke refresh()
    afterwards; searches only ever read the projection.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def refresh(self, video_ids: Optional[Sequence[str]] = None) -> int:
        """Rebuild all rows, or only those of video_ids. Returns rows written."""
        try:
            with self.session_factory.begin() as db:
                self._clear(db, video_ids)
                rows = self._load_videos(db, video_ids)
                self._write(db, rows, self._load_clippers(db, [r["id"] for r in rows]))
        except SQLAlchemyError as e:
            logger.exception("search projection refresh failed")
            raise StorageError("failed to refresh search projection") from e
        logger.info("refreshed search projection: %d video(s)", len(rows))
        return len(rows)

    def _clear(self, db: Session, video_ids: Optional[Sequence[str]]):
        for table in (video_search_tags, video_search_models, video_search_brands):
            stmt = delete(table)
            if video_ids is not None:
                stmt = stmt.where(table.c.video_id.in_(video_ids))
            db.execute(stmt)
        stmt = delete(video_search)
        if video_ids is not None:
            stmt = stmt.where(video_search.c.id.in_(video_ids))
        db.execute(stmt)

    def _load_videos(self, db: Session, video_ids: Optional[Sequence[str]]) -> List[Dict[str, Any]]:
        query = select(videos)
        if video_ids is not None:
            query = query.where(videos.c.id.in_(video_ids))
        return [dict(r._mapping) for r in db.execute(query).all()]

    def _load_clippers(self, db: Session, ids: List[str]) -> Dict[str, List[Dict[str, Any]]]:
        by_video: Dict[str, List[Dict[str, Any]]] = {vid: [] for vid in ids}
        if not ids:
            return by_video
        query = (
            select(video_clippers.c.video_id, clippers.c.id, clippers.c.name,
                   clippers.c.brand, clippers.c.model)
            .join(clippers, clippers.c.id == video_clippers.c.clipper_id)
            .where(video_clippers.c.video_id.in_(ids))
            .order_by(clippers.c.name, clippers.c.id)
        )
        for r in db.execute(query).all():
            by_video[r.video_id].append(
                {"id": r.id, "name": r.name, "brand": r.brand, "model": r.model}
            )
        return by_video

    def _write(self, db: Session, rows: List[Dict[str, Any]], clipper_map: Dict[str, List[Dict[str, Any]]]):
        for row in rows:
            vid = row["id"]
            details = clipper_map.get(vid, [])
            tags = _tag_pairs(row["tags"])
            db.execute(insert(video_search).values(
                id=vid,
                video_id=row["video_id"],
                title=row["title"],
                description=row["description"] or "",
                thumbnail_url=row["thumbnail_url"],
                duration=row["duration"],
                channel_title=row["channel_title"],
                tags=tags,
                clipper_details=details,
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            ))
            brands = sorted({c["brand"] for c in details if c["brand"]})
            models = sorted({c["model"] for c in details if c["model"]})
            if brands:
                db.execute(insert(video_search_brands), [{"video_id": vid, "brand": b} for b in brands])
            if models:
                db.execute(insert(video_search_models), [{"video_id": vid, "model": m} for m in models])
            if tags:
                db.execute(insert(video_search_tags),
                           [{"video_id": vid, "key": k, "value": v} for k, v in tags.items()])
