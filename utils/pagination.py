"""
Client-side filtering and pagination over a fully downloaded collection
"""
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, List, Optional, TypeVar

from config.settings import ITEM_PER_PAGE

T = TypeVar("T")


@dataclass
class Listing(Generic[T]):
    """Result of a collection fetch: `count` is the filtered total, `items` the current window"""
    count: int = 0
    items: List[T] = field(default_factory=list)
    page: Optional[int] = None
    has_prev: bool = False
    has_next: bool = False

    def to_dict(self, serialize: Callable[[T], dict]) -> dict:
        return {
            "count": self.count,
            "items": [serialize(item) for item in self.items],
            "page": self.page,
            "has_prev": self.has_prev,
            "has_next": self.has_next,
        }


def matches_query(query: str, texts: Iterable[Optional[str]]) -> bool:
    """Case-insensitive substring match against any of the given texts"""
    needle = query.casefold()
    return any(needle in (text or "").casefold() for text in texts)


def filter_by_query(items: List[T], query: Optional[str], fields: Callable[[T], Iterable[Optional[str]]]) -> List[T]:
    if not query:
        return list(items)
    return [item for item in items if matches_query(query, fields(item))]


def paginate(items: List[T], page: Optional[int], page_size: int = ITEM_PER_PAGE) -> Listing[T]:
    """
    Slice the filtered collection into page `page` (1-based).

    Without a page number the whole collection is returned.
    """
    count = len(items)
    if not page:
        return Listing(count=count, items=list(items))

    page = max(int(page), 1)
    start = page_size * (page - 1)
    return Listing(
        count=count,
        items=list(items[start:start + page_size]),
        page=page,
        has_prev=start > 0,
        has_next=start + page_size < count,
    )
