from blogsite.models.blog_models import SortMode
from blogsite.services.feed_assembler import assemble, compute_stats, sort_records
from tests.conftest import make_record


def ids(records):
    return [r.id for r in records]


def test_assemble_is_deterministic():
    records = [make_record(i, featured=i == 2, views=i % 3) for i in range(6)]
    first = assemble(records, search="post", sort=SortMode.POPULAR)
    second = assemble(records, search="post", sort=SortMode.POPULAR)
    assert first == second


def test_unpublished_records_never_appear():
    records = [make_record(0), make_record(1, published=False, featured=True), make_record(2)]
    for sort in SortMode:
        view = assemble(records, sort=sort)
        assert view.featured is None
        assert "blog-1" not in ids(view.regular)


def test_search_matches_tag_case_insensitively():
    tagged = make_record(0, title="Quarterly report", excerpt="numbers", content="tables", tags=["AI"])
    other = make_record(1, title="Gardening", excerpt="soil", content="plants")
    view = assemble([tagged, other], search="ai")
    assert ids(view.regular) == ["blog-0"]


def test_search_covers_title_excerpt_and_content():
    records = [
        make_record(0, title="Python tips"),
        make_record(1, excerpt="all about PYTHON"),
        make_record(2, content="...python..."),
        make_record(3),
    ]
    view = assemble(records, search="  Python ")
    assert sorted(ids(view.regular)) == ["blog-0", "blog-1", "blog-2"]


def test_category_filter_and_sentinels():
    records = [make_record(0, category="Tech"), make_record(1, category="Design")]
    assert ids(assemble(records, category="Design").regular) == ["blog-1"]
    for sentinel in ("All Posts", "All", "", None):
        assert len(assemble(records, category=sentinel).regular) == 2


def test_latest_is_reverse_of_oldest():
    records = [make_record(i) for i in (3, 0, 4, 1, 2)]
    latest = ids(sort_records(records, SortMode.LATEST))
    oldest = ids(sort_records(records, SortMode.OLDEST))
    assert latest == list(reversed(oldest))
    assert latest == ["blog-4", "blog-3", "blog-2", "blog-1", "blog-0"]


def test_popular_orders_by_views_plus_likes():
    high_views = make_record(0, views=10, likes=0)
    mixed = make_record(1, views=5, likes=3)
    view = assemble([mixed, high_views], sort=SortMode.POPULAR)
    assert ids(view.regular) == ["blog-0", "blog-1"]


def test_views_sort_ignores_likes():
    records = [make_record(0, views=1, likes=100), make_record(1, views=2)]
    assert ids(assemble(records, sort=SortMode.VIEWS).regular) == ["blog-1", "blog-0"]


def test_sort_is_stable_for_ties():
    records = [make_record(i, views=7, published_at=None, created_at=make_record(0).created_at) for i in range(5)]
    assert ids(sort_records(records, SortMode.VIEWS)) == [f"blog-{i}" for i in range(5)]
    assert ids(sort_records(records, SortMode.LATEST)) == [f"blog-{i}" for i in range(5)]


def test_only_first_featured_record_takes_the_slot():
    records = [
        make_record(0, featured=True),
        make_record(1),
        make_record(2, featured=True),
        make_record(3),
    ]
    view = assemble(records, sort=SortMode.LATEST)
    assert view.featured.id == "blog-2"
    assert ids(view.regular) == ["blog-3", "blog-1", "blog-0"]
    assert view.total == 4


def test_no_featured_record_leaves_slot_empty():
    view = assemble([make_record(0), make_record(1)])
    assert view.featured is None
    assert ids(view.regular) == ["blog-1", "blog-0"]


def test_sort_accepts_plain_strings():
    records = [make_record(0), make_record(1)]
    assert ids(assemble(records, sort="oldest").regular) == ["blog-0", "blog-1"]


def test_compute_stats_folds_all_records():
    records = [
        make_record(0, views=10, likes=2),
        make_record(1, views=5, likes=1, published=False),
        make_record(2, views=0, likes=0),
    ]
    stats = compute_stats(records)
    assert stats.total_blogs == 3
    assert stats.total_views == 15
    assert stats.total_likes == 3
    assert stats.published_blogs == 2


def test_compute_stats_of_empty_set():
    stats = compute_stats([])
    assert stats.model_dump() == {"total_blogs": 0, "total_views": 0, "total_likes": 0, "published_blogs": 0}
