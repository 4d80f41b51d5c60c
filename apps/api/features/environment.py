# features/environment.py
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, insert
from sqlalchemy.orm import sessionmaker

from cutdapper.dependencies import get_session_factory
from cutdapper.main import app
from cutdapper.repositories.projection import ProjectionRefresher
from cutdapper.repositories.tables import clippers, metadata, video_clippers, videos

CLIPPERS = [
    ("c-andis-master", "Andis Master", "Andis", "Master"),
    ("c-andis-outliner", "Andis T-Outliner", "Andis", "T-Outliner"),
    ("c-wahl-magic", "Wahl Magic Clip", "Wahl", "Magic Clip"),
    ("c-wahl-vapor", "Wahl Vapor", "Wahl", "Vapor"),
    ("c-babyliss-fx", "BaBylissPRO FX", "BaBylissPRO", "FX870"),
]
CHANNELS = ["Barber Academy", "Clipper Lab", "Fade Nation"]
HAIRSTYLES = ["fade", "mohawk", "taper", "buzz"]
DIFFICULTY = ["beginner", "advanced"]


def before_all(context):
    # File-backed sqlite so the search fan-out threads each get a connection
    context.tmpdir = Path(tempfile.mkdtemp(prefix="cutdapper-bdd-"))
    context.engine = create_engine(f"sqlite:///{context.tmpdir / 'catalog.db'}", future=True,
                                   connect_args={"check_same_thread": False})
    context.Session = sessionmaker(bind=context.engine, autoflush=False, autocommit=False, future=True)
    metadata.create_all(context.engine)

    seed(context)
    ProjectionRefresher(context.Session).refresh()

    # Override DI to use our seeded database
    app.dependency_overrides[get_session_factory] = lambda: context.Session

    # HTTP client
    context.client = TestClient(app)

    # Shared test state
    context.search_url = "/api/v1/search"
    context.last_response = None


def after_all(context):
    app.dependency_overrides.clear()
    context.engine.dispose()
    shutil.rmtree(context.tmpdir, ignore_errors=True)


def seed(context):
    tz = timezone.utc
    with context.Session.begin() as S:
        S.execute(insert(clippers), [
            {"id": cid, "name": name, "brand": brand, "model": model}
            for cid, name, brand, model in CLIPPERS
        ])

        # 30 videos; diverse channels, tags and clipper links
        for i in range(30):
            vid = f"video{i:02d}"
            created = datetime(2024, 1, 1, 9, tzinfo=tz) + timedelta(hours=i)
            tags: Dict[str, str] = {"hairstyle": HAIRSTYLES[i % 4]}
            if i % 3 == 0:
                tags["difficulty"] = DIFFICULTY[(i // 3) % 2]
            S.execute(insert(videos).values(
                id=vid,
                video_id=f"yt{i:09d}",
                title=f"{HAIRSTYLES[i % 4].title()} tutorial #{i}",
                description="Step by step walkthrough" if i % 2 else "",
                thumbnail_url=f"https://img.youtube.com/vi/yt{i:09d}/hqdefault.jpg",
                duration=f"PT{5 + i % 20}M",
                channel_title=CHANNELS[i % 3],
                tags=tags,
                created_at=created,
                updated_at=created,
            ))
            linked: List[str] = [CLIPPERS[i % 5][0]]
            if i % 4 == 0:
                linked.append(CLIPPERS[(i + 2) % 5][0])
            S.execute(insert(video_clippers), [{"video_id": vid, "clipper_id": cid} for cid in linked])
