from typing import Any, Tuple

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _as_positive(value: Any, fallback: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return fallback
    return number if number > 0 else fallback


def normalize_paging(page: Any, page_size: Any, max_page_size: int = MAX_PAGE_SIZE) -> Tuple[int, int]:
    """Clamp query-string paging values; bad input falls back to page 1 / default size."""
    p = _as_positive(page, 1)
    ps = min(_as_positive(page_size, DEFAULT_PAGE_SIZE), max_page_size)
    return p, ps


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size
