"""
Pagination defaults shared by the workflow API and the client-side params loader.
"""
import math

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 5
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 100


def clamp_page_size(page_size: int) -> int:
    """Force a page size into the [MIN_PAGE_SIZE, MAX_PAGE_SIZE] range."""
    return max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, page_size))


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size else 0
