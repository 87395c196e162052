import inspect
import pytest
from sara import BelongsTo, ConfigurationError, HasMany, HasManyThrough, MorphHasMany, QueriesMany, QueriesOne, Relationship, ResourceObject, ValidationError
from blog import PostAdapter


def linkage(type_, *ids):
    return Relationship(data=[{"type": type_, "id": str(i)} for i in ids])


def test_relation_names_are_guessed(app, authors, posts):
    assert posts.author().key == "author"
    assert isinstance(posts.author(), BelongsTo)
    assert authors.posts().key == "posts"
    assert isinstance(authors.comments(), HasManyThrough)
    assert posts.has_many("images").key == "images"


def test_relation_name_from_lambda(posts):
    factory = lambda: posts.belongs_to()  # noqa: E731
    with pytest.raises(ConfigurationError) as exc_info:
        factory()
    assert "PostAdapter" in exc_info.value.message


def test_relation_name_without_frames(posts, monkeypatch):
    monkeypatch.setattr(inspect, "currentframe", lambda: None)
    with pytest.raises(ConfigurationError):
        posts.author()


def test_get_related(authors, posts):
    relation = authors.get_related("published-posts")
    assert isinstance(relation, QueriesMany)
    assert relation.field == "published-posts"
    assert relation.adapter is authors
    assert isinstance(authors.get_related("latest-post"), QueriesOne)
    assert posts.is_relation("author")
    assert not posts.is_relation("title")
    # adapter methods aren't relationships
    assert posts.get_related("filter") is None
    assert posts.get_related("model") is None


def test_unknown_model_relationship(blog, posts):
    relation = HasMany("nope").bind(posts, "nope")
    with pytest.raises(ConfigurationError):
        relation.relationship(blog["posts"][0])


def test_belongs_to(blog, posts):
    post = blog["posts"][0]
    relation = posts.get_related("author")
    relation.update(post, Relationship(data={"type": "authors", "id": "2"}), None)
    assert post.author is blog["bob"]
    relation.update(post, Relationship(data=None), None)
    assert post.author is None


@pytest.mark.parametrize(
    "data, status_code",
    [
        ({"type": "people", "id": "1"}, 403),
        ({"type": "authors", "id": "99"}, 400),
        ({"type": "authors", "id": "abc"}, 400),
        ({"type": "authors"}, 400),
        ([{"type": "authors", "id": "1"}], 400),
    ],
)
def test_belongs_to_invalid_linkage(blog, posts, data, status_code):
    with pytest.raises(ValidationError) as exc_info:
        posts.get_related("author").update(blog["posts"][0], Relationship(data=data), None)
    assert exc_info.value.status_code == status_code


def test_to_many_requires_list(blog, posts):
    with pytest.raises(ValidationError):
        posts.get_related("tags").update(blog["posts"][0], Relationship(data={"type": "tags", "id": "1"}), None)


def test_has_many(blog, posts):
    post = blog["posts"][0]
    tags = posts.get_related("tags")
    tags.add(post, linkage("tags", 1), None)
    tags.add(post, linkage("tags", 1, 2), None)
    assert [tag.id for tag in post.tags] == [1, 2]
    tags.remove(post, linkage("tags", 1), None)
    assert [tag.id for tag in post.tags] == [2]
    tags.replace(post, linkage("tags", 1), None)
    assert [tag.id for tag in post.tags] == [1]
    tags.update(post, linkage("tags"), None)
    assert post.tags == []


def test_has_many_relation_query(blog, posts):
    query = posts.get_related("comments").relation_query(blog["posts"][0])
    assert sorted(comment.id for comment in query) == [1, 2]


def test_has_many_through_is_read_only(blog, authors):
    relation = authors.get_related("comments")
    assert relation.to_many
    assert sorted(comment.id for comment in relation.related(blog["alice"])) == [1, 2]
    for method in (relation.update, relation.add, relation.remove, relation.replace):
        with pytest.raises(ConfigurationError):
            method(blog["alice"], linkage("comments", 3), None)


def test_morph_many(blog, posts):
    post = blog["posts"][0]
    media = posts.get_related("media")
    assert isinstance(media, MorphHasMany)
    media.update(
        post,
        Relationship(data=[{"type": "images", "id": "2"}, {"type": "videos", "id": "1"}, {"type": "images", "id": "1"}]),
        None,
    )
    assert sorted(image.id for image in post.images) == [1, 2]
    assert [video.id for video in post.videos] == [1]
    assert len(media.related(post)) == 3

    media.remove(post, linkage("images", 1), None)
    assert [image.id for image in post.images] == [2]
    media.add(post, linkage("images", 1), None)
    assert sorted(image.id for image in post.images) == [1, 2]


def test_morph_many_invalid_type(blog, posts):
    post = blog["posts"][0]
    with pytest.raises(ValidationError) as exc_info:
        posts.get_related("media").update(post, linkage("tags", 1), None)
    assert exc_info.value.status_code == 403
    assert post.images == []


def test_morph_many_has_no_relation_query(blog, posts):
    with pytest.raises(ConfigurationError):
        posts.get_related("media").relation_query(blog["posts"][0])


def test_queries_many(blog, authors):
    relation = authors.get_related("published-posts")
    assert [post.id for post in relation.related(blog["alice"])] == [1]
    assert authors.get_related("latest-post").related(blog["alice"]).id == 2
    with pytest.raises(ConfigurationError):
        relation.update(blog["alice"], linkage("posts", 2), None)


def test_relationship_adapter_override(blog):
    class ReadOnlyCommentsAdapter(PostAdapter):
        def comments(self):
            return self.has_many_through()

    with pytest.raises(ConfigurationError):
        ReadOnlyCommentsAdapter().update(blog["posts"][0], ResourceObject(type="posts", id="1", relationships={"comments": linkage("comments", 3)}))


def test_read_only_relationship_is_forbidden(blog, authors):
    with pytest.raises(ConfigurationError) as exc_info:
        authors.get_related("latest-post").update(blog["alice"], Relationship(data={"type": "posts", "id": "1"}), None)
    assert exc_info.value.status_code == 403
