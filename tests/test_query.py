import pytest
from sqlalchemy import inspect as sqla_inspect
from sara import ConfigurationError, CursorPagingStrategy, Page, PagingStrategy, QueryParameters
from blog import Author, Post, PostAdapter


class RecordingStrategy(PagingStrategy):
    def __init__(self):
        self.calls = []

    def paginate(self, query, parameters):
        self.calls.append(parameters)
        size = int(parameters.page.get("size", 1))
        return Page(data=query.limit(size).all(), meta={"page": dict(parameters.page)})


class RecordingCursorStrategy(CursorPagingStrategy, RecordingStrategy):
    pass


class DefaultsAdapter(PostAdapter):
    default_sort = ["-created_at"]


class PagedAdapter(PostAdapter):
    default_pagination = {"size": 2}


class RecordingFilterAdapter(PostAdapter):
    seen_filters = None

    def filter(self, query, filters):
        self.seen_filters = dict(filters)
        return super().filter(query, filters)


class CountingAdapter(PostAdapter):
    normalized = 0

    def query_parameters(self, parameters=None):
        self.normalized += 1
        return super().query_parameters(parameters)


def ids(records):
    return [record.id for record in records]


def params(**kwargs):
    return QueryParameters.create(**kwargs)


def test_query_all(blog, authors):
    result = authors.query()
    assert isinstance(result, list)
    assert sorted(ids(result)) == [1, 2]


def test_find_many_filter(blog, posts):
    assert sorted(ids(posts.query(params(filters={"id": [1, 3]})))) == [1, 3]
    assert sorted(ids(posts.query(params(filters={"id": "1,2"})))) == [1, 2]
    assert posts.query(params(filters={"id": []})) == []


def test_find_many_predicate(posts):
    query = posts.apply_filters(posts.new_query(), {"id": [1, 2, 3]})
    sql = str(query.statement.compile(compile_kwargs={"literal_binds": True}))
    assert "posts.id IN (1, 2, 3)" in sql


def test_find_many_with_default_sort(blog):
    # no sort => default sort, no page => every matching record
    result = DefaultsAdapter().query(params(filters={"id": [1, 2, 3]}))
    assert ids(result) == [2, 1, 3]


def test_filter_precedence(blog):
    adapter = RecordingFilterAdapter()
    result = adapter.query(params(filters={"id": [1, 2], "title": "second"}))
    assert ids(result) == [2]
    assert adapter.seen_filters == {"id": [1, 2], "title": "second"}


def test_filter_hook_without_return_value(blog, comments):
    assert ids(comments.query(params(filters={"id": "2"}))) == [2]


def test_custom_filter(blog, posts):
    assert ids(posts.query(params(filters={"published": "true"}, sort="id"))) == [1, 3]


def test_sort(blog, posts):
    assert [post.title for post in posts.query(params(sort="-title"))] == ["third", "second", "first"]
    assert ids(posts.query(params(sort="-id"))) == [3, 2, 1]
    assert ids(posts.query(params(sort="-published,created-at"))) == [3, 1, 2]


def test_sort_unknown_field_is_skipped(blog, posts):
    assert ids(posts.query(params(sort="nope,-id"))) == [3, 2, 1]
    assert ids(posts.query(params(sort="author,-id"))) == [3, 2, 1]


def test_search_one(blog, authors):
    result = authors.query(params(filters={"slug": "alice"}))
    assert isinstance(result, Author)
    assert result.name == "alice"
    assert authors.query(params(filters={"slug": "nobody"})) is None


def test_paging_not_configured(blog, posts):
    with pytest.raises(ConfigurationError) as exc_info:
        posts.query(params(page={"size": 2}))
    assert "PostAdapter" in exc_info.value.message


def test_paging_delegated(blog):
    paging = RecordingStrategy()
    adapter = PostAdapter(paging=paging)
    page = adapter.query(params(page={"size": 2}, sort="id"))
    assert isinstance(page, Page)
    assert ids(page) == [1, 2]
    assert paging.calls[0].page == {"size": 2}


def test_default_pagination(blog):
    paging = RecordingStrategy()
    page = PagedAdapter(paging=paging).query()
    assert isinstance(page, Page)
    assert len(page) == 2
    assert page.meta == {"page": {"size": 2}}


def test_cursor_paging_gets_key_column(blog):
    paging = RecordingCursorStrategy()
    adapter = PostAdapter(paging=paging)
    adapter.query(params(page={"size": 1}))
    assert paging.identifier_column == "id"
    assert len(paging.calls) == 1


def test_read(blog, posts):
    assert posts.read("1").title == "first"
    assert posts.read(2).title == "second"
    assert posts.read("99") is None
    assert posts.read("abc") is None


def test_read_with_filters(blog, posts):
    assert posts.read("1", params(filters={"title": "first"})).id == 1
    assert posts.read("1", params(filters={"title": "second"})) is None


def test_read_loads_includes(blog, posts):
    post = posts.read("1", params(include_paths="author,comments"))
    state = sqla_inspect(post)
    assert "author" not in state.unloaded
    assert "comments" not in state.unloaded
    assert "tags" in state.unloaded


def test_query_eager_loads_includes(blog, posts):
    result = posts.query(params(include_paths="comments.post", sort="id"))
    for post in result:
        assert "comments" not in sqla_inspect(post).unloaded
    assert [comment.content for comment in result[0].comments] == ["nice", "meh"]


def test_query_related_to_many(blog, authors, posts):
    alice = blog["alice"]
    assert ids(authors.query_related(alice, "posts", posts, params(sort="-id"))) == [2, 1]
    assert ids(authors.query_related(alice, "posts", posts, params(filters={"title": "first"}))) == [1]


def test_query_related_to_one(blog, authors, posts):
    author = posts.query_related(blog["posts"][2], "author", authors)
    assert author.name == "bob"


def test_query_related_through(blog, authors, comments):
    assert sorted(ids(authors.query_related(blog["alice"], "comments", comments))) == [1, 2]


def test_query_related_closure(blog, authors, posts):
    alice = blog["alice"]
    assert ids(authors.query_related(alice, "published-posts", posts)) == [1]
    assert authors.query_related(alice, "latest-post", posts).id == 2


def test_query_related_not_a_relation(blog, authors, posts):
    with pytest.raises(ConfigurationError):
        authors.query_related(blog["alice"], "name", posts)


def test_nested_queries_normalize_once(blog, authors):
    adapter = CountingAdapter()
    relation_query = authors.get_related("posts").relation_query(blog["alice"])
    adapter.query_to_many(relation_query, params())
    assert adapter.normalized == 1
    adapter.query_to_one(relation_query, params())
    assert adapter.normalized == 2


def test_exists_and_find_many(blog, posts):
    assert posts.exists("1")
    assert not posts.exists("42")
    assert sorted(ids(posts.find_many(["1", "3", "x"]))) == [1, 3]
    assert isinstance(posts.find("3"), Post)


def test_lossy_ids_are_rejected(blog, posts):
    assert posts.read(1.9) is None
    assert posts.read(True) is None
    assert posts.read(2.0).id == 2
    assert posts.query(params(filters={"id": [2.5]})) == []
    assert ids(posts.query(params(filters={"id": [3.0, False]}))) == [3]


def test_sort_on_foreign_key_is_skipped(blog, posts):
    assert ids(posts.query(params(sort="author-id,-id"))) == [3, 2, 1]
