"""
Domain model for facets - treating facets as first-class entities.

Every facet counts distinct videos over the rows selected by a
CompiledPredicate, so counts describe the filtered result set rather than
the whole catalog. Values are ordered by count descending, then by value.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import Table, func, select
from sqlalchemy.orm import Session

from cutdapper.core.enums import FacetDimension
from cutdapper.domain.predicates import CompiledPredicate
from cutdapper.repositories.query_builder import apply_predicate
from cutdapper.repositories.tables import (
    video_search, video_search_brands, video_search_models, video_search_tags,
)


class FacetType(Enum):
    """Types of facets supported by the system."""
    SIMPLE_COUNT = "simple_count"
    NESTED_COUNT = "nested_count"


@dataclass
class FacetValue:
    """A single facet value with its count and optional nested values."""
    value: str
    count: int
    children: Optional[List['FacetValue']] = None


@dataclass
class FacetResult:
    """Result of computing a facet."""
    facet_name: str
    facet_type: FacetType
    values: List[FacetValue]
    total_count: int


@dataclass
class FacetContext:
    """Context object providing dependencies for facet computation."""
    db: Session
    drill_sideways: bool = False


def sort_values(values: List[FacetValue]) -> List[FacetValue]:
    return sorted(values, key=lambda v: (-v.count, v.value))


class Facet(ABC):
    """Abstract base class for all facets."""

    def __init__(self, dimension: FacetDimension, facet_type: FacetType):
        self.dimension = dimension
        self.name = str(dimension)
        self.facet_type = facet_type

    @abstractmethod
    def compute(self, predicate: CompiledPredicate, context: FacetContext) -> FacetResult:
        """Compute the facet values over rows matching the predicate."""

    @abstractmethod
    def supports_drill_sideways(self) -> bool:
        """Whether this facet may be counted without its own filter."""

    def scope(self, predicate: CompiledPredicate, context: FacetContext) -> CompiledPredicate:
        """Predicate the counts are taken over; self-inclusive unless drill-sideways is on."""
        if context.drill_sideways and self.supports_drill_sideways():
            return predicate.without(self.dimension)
        return predicate

    def _result(self, values: List[FacetValue]) -> FacetResult:
        values = sort_values(values)
        return FacetResult(
            facet_name=self.name,
            facet_type=self.facet_type,
            values=values,
            total_count=sum(v.count for v in values),
        )


class ChannelsFacet(Facet):
    """Single-valued facet over the channel title column."""

    def __init__(self):
        super().__init__(FacetDimension.channels, FacetType.SIMPLE_COUNT)

    def compute(self, predicate: CompiledPredicate, context: FacetContext) -> FacetResult:
        col = video_search.c.channel_title
        query = apply_predicate(
            select(col, func.count(func.distinct(video_search.c.id))),
            self.scope(predicate, context),
        ).group_by(col)
        rows = context.db.execute(query).all()
        return self._result([FacetValue(value=v, count=int(c)) for v, c in rows if v is not None])

    def supports_drill_sideways(self) -> bool:
        return True


class SetFacet(Facet):
    """Facet over a multi-valued set; one video may count in several buckets."""

    def __init__(self, dimension: FacetDimension, table: Table, value_column: str):
        super().__init__(dimension, FacetType.SIMPLE_COUNT)
        self.table = table
        self.value_column = value_column

    def compute(self, predicate: CompiledPredicate, context: FacetContext) -> FacetResult:
        col = self.table.c[self.value_column]
        query = apply_predicate(
            select(col, func.count(func.distinct(video_search.c.id)))
            .select_from(video_search.join(self.table, self.table.c.video_id == video_search.c.id)),
            self.scope(predicate, context),
        ).group_by(col)
        rows = context.db.execute(query).all()
        return self._result([FacetValue(value=v, count=int(c)) for v, c in rows if v is not None])

    def supports_drill_sideways(self) -> bool:
        return True


class BrandsFacet(SetFacet):
    def __init__(self):
        super().__init__(FacetDimension.brands, video_search_brands, "brand")


class ModelsFacet(SetFacet):
    def __init__(self):
        super().__init__(FacetDimension.models, video_search_models, "model")


class TagsFacet(Facet):
    """
    Facet over the tag mapping: counts per (key, value), regrouped by key.

    Each top-level FacetValue is a tag key whose children are its values.
    Drill-sideways is not offered here because removing every tag clause
    would also widen the counts of unrelated keys.
    """

    def __init__(self):
        super().__init__(FacetDimension.tags, FacetType.NESTED_COUNT)

    def compute(self, predicate: CompiledPredicate, context: FacetContext) -> FacetResult:
        t = video_search_tags
        query = apply_predicate(
            select(t.c.key, t.c.value, func.count(func.distinct(video_search.c.id)))
            .select_from(video_search.join(t, t.c.video_id == video_search.c.id)),
            self.scope(predicate, context),
        ).group_by(t.c.key, t.c.value)
        rows = context.db.execute(query).all()

        by_key: Dict[str, List[FacetValue]] = {}
        for key, value, count in rows:
            if key and value:
                by_key.setdefault(key, []).append(FacetValue(value=value, count=int(count)))

        keys = [
            FacetValue(value=key, count=sum(c.count for c in children), children=sort_values(children))
            for key, children in sorted(by_key.items())
        ]
        return FacetResult(
            facet_name=self.name,
            facet_type=self.facet_type,
            values=keys,
            total_count=sum(k.count for k in keys),
        )

    def supports_drill_sideways(self) -> bool:
        return False


class FacetRegistry:
    """Registry of the facets computed for every search."""

    def __init__(self):
        self._facets: Dict[str, Facet] = {}
        self._register_default_facets()

    def _register_default_facets(self):
        self.register(ChannelsFacet())
        self.register(BrandsFacet())
        self.register(ModelsFacet())
        self.register(TagsFacet())

    def register(self, facet: Facet):
        self._facets[facet.name] = facet

    def get_facet(self, name: str) -> Optional[Facet]:
        return self._facets.get(name)

    def get_all_facets(self) -> List[Facet]:
        return list(self._facets.values())

    @staticmethod
    def format_result(result: FacetResult) -> Any:
        """Format facet result for API response."""
        if result.facet_type == FacetType.NESTED_COUNT:
            return {
                v.value: [{"value": c.value, "count": c.count} for c in (v.children or [])]
                for v in result.values
            }
        return [{"value": v.value, "count": v.count} for v in result.values]


# Global registry instance
facet_registry = FacetRegistry()
