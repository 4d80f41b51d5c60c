import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from cutdapper.core.config import get_settings
from cutdapper.core.exceptions import FilterValidationError
from cutdapper.core.pagination import PAGINATION


def _unique(values: Iterable[Any]) -> List[str]:
    """Drop blank values and dedupe, keeping first-seen order.

    Values are kept verbatim: channel, brand, model and tag matches are exact.
    """
    seen: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v)
        if s.strip() and s not in seen:
            seen.append(s)
    return seen


class SearchRequest(BaseModel):
    """Normalized search filters. Every empty dimension imposes no constraint."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    page: int = PAGINATION["DEFAULT_PAGE"]
    page_size: Optional[int] = Field(default=None, validate_default=True)
    search: str = ""
    channels: List[str] = []
    brands: List[str] = []
    models: List[str] = []
    tags: Dict[str, List[str]] = {}

    @field_validator("page", "page_size", mode="before")
    @classmethod
    def _reject_bool(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("must be an integer, not a boolean")
        return v

    @field_validator("page")
    @classmethod
    def _page_in_range(cls, v: int) -> int:
        if v < 1:
            raise ValueError("page must be a positive integer")
        max_page = PAGINATION["MAX_OFFSET"] // get_settings().max_page_size + 1
        if v > max_page:
            raise ValueError(f"page must be at most {max_page}")
        return v

    @field_validator("page_size")
    @classmethod
    def _page_size_in_bounds(cls, v: Optional[int]) -> int:
        settings = get_settings()
        if v is None:
            return settings.default_page_size
        if not settings.min_page_size <= v <= settings.max_page_size:
            raise ValueError(
                f"pageSize must be between {settings.min_page_size} and {settings.max_page_size}"
            )
        return v

    @field_validator("search", mode="before")
    @classmethod
    def _strip_search(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("channels", "brands", "models", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("channels", "brands", "models")
    @classmethod
    def _dedupe(cls, v: List[str]) -> List[str]:
        return _unique(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_coerce(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            return {k: [vals] if isinstance(vals, str) else vals for k, vals in v.items()}
        return v

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        tags: Dict[str, List[str]] = {}
        for key, values in v.items():
            values = _unique(values)
            if key.strip() and values:
                tags[key] = values
        return tags


_WIRE_NAMES = {"page_size": "pageSize"}


def parse_search_request(raw: Mapping[str, Any]) -> SearchRequest:
    """Build a SearchRequest from untrusted input or raise FilterValidationError."""
    try:
        return SearchRequest.model_validate(dict(raw))
    except ValidationError as e:
        err = e.errors()[0]
        field = str(err["loc"][0]) if err["loc"] else "request"
        raise FilterValidationError(_WIRE_NAMES.get(field, field), err["msg"]) from e


def _split_multi(values: List[str]) -> List[str]:
    out: List[str] = []
    for v in values:
        out.extend(v.split(","))
    return out


def parse_query_params(items: Iterable[Tuple[str, str]]) -> SearchRequest:
    """
    Build a SearchRequest from URL query parameters.

    Lists may be repeated (?brands=Andis&brands=Wahl) or comma separated;
    tags is a JSON object string such as {"hairstyle":["fade"]}.
    """
    multi: Dict[str, List[str]] = {}
    for key, value in items:
        multi.setdefault(key, []).append(value)

    raw: Dict[str, Any] = {}
    for key in ("page", "pageSize", "page_size", "search"):
        if multi.get(key):
            raw[key] = multi[key][-1]
    for key in ("channels", "brands", "models"):
        if key in multi:
            raw[key] = _split_multi(multi[key])

    if multi.get("tags"):
        text = multi["tags"][-1].strip()
        if text:
            try:
                tags = json.loads(text)
            except json.JSONDecodeError as e:
                raise FilterValidationError("tags", f"invalid JSON: {e.msg}") from e
            if not isinstance(tags, dict):
                raise FilterValidationError("tags", "must be a JSON object of key to list of values")
            raw["tags"] = tags

    return parse_search_request(raw)
