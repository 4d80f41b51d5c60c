from typing import List

from sqlalchemy import and_, or_, select
from sqlalchemy.sql import ColumnElement, Select

from cutdapper.core.enums import FacetDimension
from cutdapper.domain.predicates import (
    ChannelIn, Clause, CompiledPredicate, SetIntersects, TagValueIn, TextSearch,
)
from cutdapper.repositories.tables import (
    video_search, video_search_brands, video_search_models, video_search_tags,
)

# Child table and value column holding each multi-valued set
SET_COLUMNS = {
    FacetDimension.brands: (video_search_brands, "brand"),
    FacetDimension.models: (video_search_models, "model"),
}

def build_base_query() -> Select:
    vs = video_search
    return select(
        vs.c.id, vs.c.video_id, vs.c.title, vs.c.description, vs.c.thumbnail_url,
        vs.c.duration, vs.c.channel_title, vs.c.tags, vs.c.clipper_details,
        vs.c.created_at, vs.c.updated_at,
    )

def clause_condition(clause: Clause) -> ColumnElement:
    vs = video_search
    # free text over several columns, any one may match
    if isinstance(clause, TextSearch):
        return or_(*[vs.c[f].icontains(clause.term, autoescape=True) for f in clause.fields])
    # channel: exact match, OR within
    if isinstance(clause, ChannelIn):
        return vs.c.channel_title.in_(clause.values)
    # brands/models: non-empty intersection with the video's set
    if isinstance(clause, SetIntersects):
        table, col = SET_COLUMNS[clause.dimension]
        child = table.alias()
        return select(child.c.video_id).where(and_(
            child.c.video_id == vs.c.id, child.c[col].in_(clause.values)
        )).correlate(vs).exists()
    # tag: exact value for one key, OR within; a missing key never matches
    if isinstance(clause, TagValueIn):
        t = video_search_tags.alias()
        return select(t.c.video_id).where(and_(
            t.c.video_id == vs.c.id, t.c.key == clause.key, t.c.value.in_(clause.values)
        )).correlate(vs).exists()
    raise TypeError(f"unsupported clause: {clause!r}")

def build_conditions(predicate: CompiledPredicate) -> List[ColumnElement]:
    return [clause_condition(c) for c in predicate]

def apply_predicate(sel: Select, predicate: CompiledPredicate) -> Select:
    where = build_conditions(predicate)
    if where:
        sel = sel.where(and_(*where))
    return sel
