from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cutdapper.core.pagination import PAGINATION


class Settings(BaseSettings):
    """Application settings"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(default="sqlite:///./cutdapper.db")

    # Pagination bounds for search requests
    default_page_size: int = Field(default=PAGINATION["DEFAULT_PAGE_SIZE"])
    min_page_size: int = Field(default=PAGINATION["MIN_PAGE_SIZE"])
    max_page_size: int = Field(default=PAGINATION["MAX_PAGE_SIZE"])

    # Threads used to fan out page/count/facet queries; 1 runs them in order
    search_workers: int = Field(default=6, ge=1)
    facet_drill_sideways: bool = Field(default=False)

    log_level: str = Field(default="INFO")

    @model_validator(mode="after")
    def _check_page_bounds(self) -> "Settings":
        if not (1 <= self.min_page_size <= self.default_page_size <= self.max_page_size):
            raise ValueError(
                "page size bounds must satisfy 1 <= min_page_size <= default_page_size <= max_page_size"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
