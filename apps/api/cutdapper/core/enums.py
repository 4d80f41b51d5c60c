from enum import StrEnum


class FacetDimension(StrEnum):
    channels = "channels"
    brands   = "brands"
    models   = "models"
    tags     = "tags"
