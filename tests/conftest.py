import datetime
import pytest
from flask import Flask
from sara import DB as db, SARA
from blog import Author, Comment, Image, Phone, Post, Tag, Video
from blog import AuthorAdapter, CommentAdapter, PostAdapter, TagAdapter


@pytest.fixture
def app():
    app = Flask("sara-tests")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite://", SQLALCHEMY_TRACK_MODIFICATIONS=False)
    db.init_app(app)
    SARA(app)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def session(app):
    return db.session


@pytest.fixture
def blog(session):
    """
    Two authors, three posts, comments, tags and media
    """
    alice = Author(id=1, name="alice", slug="alice")
    bob = Author(id=2, name="bob", slug="bob")
    posts = [
        Post(id=1, title="first", published=True, created_at=datetime.datetime(2020, 1, 1), author=alice),
        Post(id=2, title="second", published=False, created_at=datetime.datetime(2021, 1, 1), author=alice),
        Post(id=3, title="third", published=True, created_at=datetime.datetime(2019, 1, 1), author=bob),
    ]
    comments = [Comment(id=1, content="nice", post=posts[0]), Comment(id=2, content="meh", post=posts[0]), Comment(id=3, content="ok", post=posts[2])]
    tags = [Tag(id=1, name="python"), Tag(id=2, name="sql")]
    media = [Image(id=1, url="/a.png"), Image(id=2, url="/b.png"), Video(id=1, url="/a.mp4")]
    session.add_all([alice, bob, Phone(id=1, number="123"), *posts, *comments, *tags, *media])
    session.commit()
    return dict(alice=alice, bob=bob, posts=posts, comments=comments, tags=tags)


@pytest.fixture
def authors(app):
    return AuthorAdapter()


@pytest.fixture
def posts(app):
    return PostAdapter()


@pytest.fixture
def comments(app):
    return CommentAdapter()


@pytest.fixture
def tags(app):
    return TagAdapter()
