"""
Search predicates as a tree of typed clauses.

A CompiledPredicate is independent of any query language: the same value is
rendered by the repository for the page query, the count query and every
facet query, so all of them filter identically. Clauses combine with AND;
values inside one clause combine with OR.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from cutdapper.core.enums import FacetDimension
from cutdapper.schemas.search_request import SearchRequest

# Projection columns matched by free-text search
SEARCH_FIELDS = ("title", "description", "channel_title")


@dataclass(frozen=True)
class TextSearch:
    """Case-insensitive substring match on any of the fields."""
    term: str
    fields: Tuple[str, ...] = SEARCH_FIELDS
    dimension: Optional[FacetDimension] = None


@dataclass(frozen=True)
class ChannelIn:
    """channel_title equals one of the values."""
    values: Tuple[str, ...]
    dimension: Optional[FacetDimension] = FacetDimension.channels


@dataclass(frozen=True)
class SetIntersects:
    """The video's brand or model set shares at least one value."""
    dimension: FacetDimension
    values: Tuple[str, ...]


@dataclass(frozen=True)
class TagValueIn:
    """The video's value for tag `key` equals one of the values."""
    key: str
    values: Tuple[str, ...]
    dimension: Optional[FacetDimension] = FacetDimension.tags


Clause = TextSearch | ChannelIn | SetIntersects | TagValueIn


@dataclass(frozen=True)
class CompiledPredicate:
    clauses: Tuple[Clause, ...] = ()

    def __iter__(self) -> Iterator[Clause]:
        return iter(self.clauses)

    def __len__(self) -> int:
        return len(self.clauses)

    @property
    def is_empty(self) -> bool:
        return not self.clauses

    def without(self, dimension: FacetDimension) -> "CompiledPredicate":
        """Drop every clause constraining the given facet dimension."""
        return CompiledPredicate(tuple(c for c in self.clauses if c.dimension != dimension))


def compile_filters(req: SearchRequest) -> CompiledPredicate:
    """Translate validated filters into clauses; absent dimensions add nothing."""
    clauses: list[Clause] = []
    if req.search:
        clauses.append(TextSearch(term=req.search))
    if req.channels:
        clauses.append(ChannelIn(values=tuple(req.channels)))
    if req.brands:
        clauses.append(SetIntersects(dimension=FacetDimension.brands, values=tuple(req.brands)))
    if req.models:
        clauses.append(SetIntersects(dimension=FacetDimension.models, values=tuple(req.models)))
    for key, values in req.tags.items():
        if values:
            clauses.append(TagValueIn(key=key, values=tuple(values)))
    return CompiledPredicate(tuple(clauses))
