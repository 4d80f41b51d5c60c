import math
from datetime import datetime, timezone

PAGINATION = {
    "DEFAULT_PAGE": 1,
    "DEFAULT_PAGE_SIZE": 5,
    "MIN_PAGE_SIZE": 1,
    "MAX_PAGE_SIZE": 100,
    # OFFSET is bound as a signed 64-bit integer
    "MAX_OFFSET": 2**63 - 1,
}

def iso_utc(dt: datetime) -> str:
    """ Convert datetime to ISO 8601 UTC string with 'Z' suffix. """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")

def page_offset(page: int, page_size: int) -> int:
    """ Row offset of the first item on a 1-based page. """
    return (page - 1) * page_size

def total_pages(total: int, page_size: int) -> int:
    """ Number of pages needed for total rows; 0 when there are none. """
    if total <= 0:
        return 0
    return math.ceil(total / page_size)
