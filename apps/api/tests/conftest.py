from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, insert
from sqlalchemy.orm import sessionmaker

from cutdapper.dependencies import get_session_factory
from cutdapper.main import app
from cutdapper.repositories.projection import ProjectionRefresher
from cutdapper.repositories.tables import clippers, metadata, video_clippers, videos

T0 = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

CLIPPERS = [
    {"id": "c-andis-master", "name": "Andis Master", "brand": "Andis", "model": "Master"},
    {"id": "c-andis-outliner", "name": "Andis T-Outliner", "brand": "Andis", "model": "T-Outliner"},
    {"id": "c-wahl-magic", "name": "Wahl Magic Clip", "brand": "Wahl", "model": "Magic Clip"},
    {"id": "c-wahl-vapor", "name": "Wahl Vapor", "brand": "Wahl", "model": "Vapor"},
]


@pytest.fixture
def session_factory(tmp_path) -> Iterator[sessionmaker]:
    # File-backed so each fan-out thread gets its own connection
    engine = create_engine(f"sqlite:///{tmp_path / 'catalog.db'}", future=True,
                           connect_args={"check_same_thread": False})
    metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    engine.dispose()


def add_video(session_factory: sessionmaker, vid: str, *, title: str, channel: str,
              tags: Optional[Dict[str, Any]] = None, clipper_ids: Sequence[str] = (),
              created_at: Optional[datetime] = None, description: str = "") -> None:
    created_at = created_at or T0
    with session_factory.begin() as db:
        db.execute(insert(videos).values(
            id=vid, video_id=f"yt-{vid}", title=title, description=description,
            thumbnail_url=f"https://img.youtube.com/vi/yt-{vid}/hqdefault.jpg",
            duration="PT10M", channel_title=channel, tags=tags or {},
            created_at=created_at, updated_at=created_at,
        ))
        for cid in clipper_ids:
            db.execute(insert(video_clippers).values(video_id=vid, clipper_id=cid))


def add_clippers(session_factory: sessionmaker, rows: List[Dict[str, Any]] = CLIPPERS) -> None:
    with session_factory.begin() as db:
        db.execute(insert(clippers), rows)


@pytest.fixture
def catalog(session_factory) -> sessionmaker:
    """
    Three videos:
      video1 tags={hairstyle: fade}, clippers=[Andis Master]
      video2 tags={hairstyle: mohawk}, clippers=[Wahl Magic Clip]
      video3 tags={}, clippers=[Andis T-Outliner, Wahl Vapor]
    """
    add_clippers(session_factory)
    add_video(session_factory, "video1", title="How to cut a Fade", channel="Barber Academy",
              tags={"hairstyle": "fade"}, clipper_ids=["c-andis-master"], created_at=T0)
    add_video(session_factory, "video2", title="Mohawk tutorial", channel="Barber Academy",
              tags={"hairstyle": "mohawk"}, clipper_ids=["c-wahl-magic"],
              created_at=T0 + timedelta(days=1))
    add_video(session_factory, "video3", title="Clipper maintenance", channel="Clipper Lab",
              tags={}, clipper_ids=["c-andis-outliner", "c-wahl-vapor"],
              created_at=T0 + timedelta(days=2))
    ProjectionRefresher(session_factory).refresh()
    return session_factory


@pytest.fixture
def client(catalog) -> Iterator[TestClient]:
    app.dependency_overrides[get_session_factory] = lambda: catalog
    yield TestClient(app)
    app.dependency_overrides.clear()
