"""Pagination helpers shared by the API and the cached catalog reads."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, TypeVar

from django.core.paginator import Paginator
from rest_framework.pagination import PageNumberPagination

T = TypeVar("T")

DEFAULT_PER_PAGE = 15
MAX_PER_PAGE = 100


class StandardResultsSetPagination(PageNumberPagination):
    """``?page=N&per_page=M`` pagination used by the DRF list endpoints."""

    page_size = DEFAULT_PER_PAGE
    page_size_query_param = "per_page"
    max_page_size = MAX_PER_PAGE


def clamp_per_page(value: Any, default: int = DEFAULT_PER_PAGE) -> int:
    try:
        per_page = int(value)
    except (TypeError, ValueError):
        return default
    return max(1, min(per_page, MAX_PER_PAGE))


def paginate(
    queryset: Iterable[T],
    page: Any,
    per_page: int,
    serialize: Callable[[T], Dict[str, Any]],
) -> Dict[str, Any]:
    """Paginate *queryset* into a plain, cacheable dict.

    Out-of-range or malformed page numbers resolve to the nearest valid page.
    """
    paginator = Paginator(queryset, per_page)
    current = paginator.get_page(page)
    return {
        "count": paginator.count,
        "page": current.number,
        "per_page": per_page,
        "num_pages": paginator.num_pages,
        "results": [serialize(item) for item in current.object_list],
    }
