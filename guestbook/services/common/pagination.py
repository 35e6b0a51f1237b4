import math

def get_last_page(total: int, page_size: int) -> int:
    """Zero-based index of the last page; 0 when there is nothing to show."""
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return max(math.ceil(total / page_size) - 1, 0)

def clamp_page(page: int, total: int, page_size: int) -> int:
    return min(max(page, 0), get_last_page(total, page_size))

def page_offset(page: int, page_size: int) -> int:
    return page * page_size
