import math
import random


def uniform_int(min_value: int, max_value: int) -> int:
    """Random integer in the closed range [min_value, max_value]."""
    if min_value > max_value:
        raise ValueError(f"empty range: [{min_value}, {max_value}]")
    return random.randint(min_value, max_value)


def page_window(total_count: int, per_page: int = 100, max_pages: int = 10) -> int:
    """Number of pages reachable through the search API's result window.

    GitHub only serves the first 1000 matches, so the page count is capped
    even when ``total_count`` is larger. Returns 0 when there are no matches.
    """
    if total_count <= 0:
        return 0
    return min(max_pages, math.ceil(total_count / per_page))
