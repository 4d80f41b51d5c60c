from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, MetaData, String, Table, Text

metadata = MetaData()

# --- Source tables, written by the video/clipper CRUD side ---

videos = Table("videos", metadata,
    Column("id", String, primary_key=True),
    Column("video_id", String, nullable=False, unique=True),
    Column("title", String, nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("thumbnail_url", String),
    Column("duration", String),
    Column("channel_title", String, nullable=False),
    Column("tags", JSON, nullable=False, default=dict),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

clippers = Table("clippers", metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("brand", String),
    Column("model", String),
)

video_clippers = Table("video_clippers", metadata,
    Column("video_id", String, ForeignKey("videos.id", ondelete="CASCADE"), primary_key=True),
    Column("clipper_id", String, ForeignKey("clippers.id", ondelete="CASCADE"), primary_key=True),
)

# --- Search projection: one row per video plus unnested multi-valued fields ---

video_search = Table("video_search", metadata,
    Column("id", String, primary_key=True),
    Column("video_id", String, nullable=False),
    Column("title", String, nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("thumbnail_url", String),
    Column("duration", String),
    Column("channel_title", String, nullable=False),
    Column("tags", JSON, nullable=False, default=dict),
    Column("clipper_details", JSON, nullable=False, default=list),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("ix_video_search_created", "created_at", "id"),
    Index("ix_video_search_channel", "channel_title"),
)

video_search_brands = Table("video_search_brands", metadata,
    Column("video_id", String, ForeignKey("video_search.id", ondelete="CASCADE"), primary_key=True),
    Column("brand", String, primary_key=True),
)

video_search_models = Table("video_search_models", metadata,
    Column("video_id", String, ForeignKey("video_search.id", ondelete="CASCADE"), primary_key=True),
    Column("model", String, primary_key=True),
)

video_search_tags = Table("video_search_tags", metadata,
    Column("video_id", String, ForeignKey("video_search.id", ondelete="CASCADE"), primary_key=True),
    Column("key", String, primary_key=True),
    Column("value", String, nullable=False),
    Index("ix_video_search_tags_kv", "key", "value"),
)

PROJECTION_TABLES = (video_search_tags, video_search_models, video_search_brands, video_search)
