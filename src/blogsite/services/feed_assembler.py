"""
# Feed Assembler

Turns a raw set of Content Records into what the reader page renders: a single
**featured slot** and the ordered **regular list**.

## Pipeline

1. Discard unpublished records.
2. Search: keep records whose title, excerpt, content or any tag contains the query
   (case-insensitive substring).
3. Category: keep the selected category unless it is the "all" sentinel.
4. Stable sort by the selected `SortMode`; ties keep their input order.
5. Partition: the first featured record after sorting fills the featured slot;
   everything else, including any further featured records, stays in the regular
   list in sorted order.

`assemble()` is a pure function of its four arguments. `compute_stats()` is the
matching fold for the admin dashboard.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

from blogsite.models.blog_models import ALL_CATEGORIES, BlogRecord, BlogStats, SortMode

# Sentinels the reader UI has used for "no category filter".
ALL_CATEGORY_ALIASES = frozenset({ALL_CATEGORIES.lower(), "all", ""})

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class FeedView(NamedTuple):
    featured: Optional[BlogRecord]
    regular: List[BlogRecord]

    @property
    def total(self) -> int:
        return len(self.regular) + (1 if self.featured is not None else 0)


def _published_key(record: BlogRecord) -> datetime:
    ts = record.published_at or record.created_at
    if ts is None:
        return _EPOCH
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


# (key, reverse) per sort mode. sorted() is stable for reverse=True as well.
_SORTS: Dict[SortMode, Tuple[Callable[[BlogRecord], object], bool]] = {
    SortMode.LATEST: (_published_key, True),
    SortMode.OLDEST: (_published_key, False),
    SortMode.POPULAR: (lambda r: r.views + r.likes, True),
    SortMode.VIEWS: (lambda r: r.views, True),
}


def is_all_categories(category: Optional[str]) -> bool:
    return category is None or category.strip().lower() in ALL_CATEGORY_ALIASES


def matches_search(record: BlogRecord, query: str) -> bool:
    needle = query.lower()
    if needle in record.title.lower() or needle in record.excerpt.lower() or needle in record.content.lower():
        return True
    return any(needle in tag.lower() for tag in record.tags)


def sort_records(records: Iterable[BlogRecord], sort: SortMode = SortMode.LATEST) -> List[BlogRecord]:
    key, reverse = _SORTS[SortMode(sort)]
    return sorted(records, key=key, reverse=reverse)


def assemble(
    records: Iterable[BlogRecord],
    category: Optional[str] = ALL_CATEGORIES,
    search: Optional[str] = "",
    sort: SortMode = SortMode.LATEST,
) -> FeedView:
    """
    Build the reader feed from a record set.

    Args:
        records: Records as returned by the gateway (published or not).
        category: Category to keep; the "all" sentinel (or `None`) disables the filter.
        search: Free-text query; empty or whitespace disables the filter.
        sort: Sort order.

    Returns:
        FeedView: `(featured, regular)`.
    """
    visible = [r for r in records if r.published]

    query = (search or "").strip()
    if query:
        visible = [r for r in visible if matches_search(r, query)]

    if not is_all_categories(category):
        visible = [r for r in visible if r.category == category]

    ordered = sort_records(visible, sort)

    featured_index = next((i for i, r in enumerate(ordered) if r.featured), None)
    if featured_index is None:
        return FeedView(featured=None, regular=ordered)
    featured = ordered[featured_index]
    regular = ordered[:featured_index] + ordered[featured_index + 1:]
    return FeedView(featured=featured, regular=regular)


def compute_stats(records: Iterable[BlogRecord]) -> BlogStats:
    stats = BlogStats()
    for record in records:
        stats.total_blogs += 1
        stats.total_views += record.views
        stats.total_likes += record.likes
        if record.published:
            stats.published_blogs += 1
    return stats
