from functools import lru_cache

from fastapi import Depends
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from cutdapper.core.config import Settings, get_settings
from cutdapper.repositories.videos_repo import VideoSearchRepository
from cutdapper.services.search_service import SearchService

# In tests, pytest fixtures and Behave override get_session_factory().
@lru_cache
def get_engine() -> Engine:
    return create_engine(get_settings().database_url, future=True)

def get_session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autoflush=False, autocommit=False, future=True)

def get_search_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    settings: Settings = Depends(get_settings),
) -> SearchService:
    repo = VideoSearchRepository(session_factory, drill_sideways=settings.facet_drill_sideways)
    return SearchService(repo=repo, max_workers=settings.search_workers)
