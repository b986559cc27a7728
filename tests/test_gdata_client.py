"""
Tests for the GData client, its Atom codec and ClientLogin authentication.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
import requests

from blogwire.client.gdata_client import ClientLoginAuthenticator, GDataClient
from blogwire.models.blog_post import BlogComment, BlogPost
from blogwire.models.status import CommentStatus, PostStatus
from blogwire.processors.atom_codec import APP_NS, ATOM_NS, AtomCodec
from blogwire.utils.error_handler import (
    AuthenticationError,
    ErrorType,
    NotSupportedError,
    ParsingError,
)

FEEDS = "https://www.blogger.com/feeds/123"
WHEN = datetime(2006, 3, 30, 18, 36, 28, tzinfo=timezone.utc)
SIGNALS = (
    "fetched_profile_id",
    "listed_blogs",
    "listed_recent_posts",
    "fetched_post",
    "created_post",
    "modified_post",
    "removed_post",
    "created_comment",
    "removed_comment",
    "listed_comments",
    "listed_all_comments",
    "error",
    "error_post",
    "error_comment",
)

CREATED_ENTRY = f"""<?xml version='1.0' encoding='UTF-8'?>
<entry xmlns="{ATOM_NS}">
  <id>tag:blogger.com,1999:blog-123.post-456</id>
  <published>2006-03-30T18:36:28.000Z</published>
  <updated>2006-03-31T09:00:00.000-08:00</updated>
  <title type="text">Hello</title>
</entry>"""


def entry(post_id, title, labels=(), draft=False):
    categories = "".join(
        f'<category scheme="http://www.blogger.com/atom/ns#" term="{label}"/>' for label in labels
    )
    control = f'<app:control xmlns:app="{APP_NS}"><app:draft>yes</app:draft></app:control>' if draft else ""
    return f"""<entry>
    <id>tag:blogger.com,1999:blog-123.post-{post_id}</id>
    <published>2006-03-30T18:36:28.000Z</published>
    <updated>2006-03-30T18:36:28.000Z</updated>
    {categories}
    <title type="text">{title}</title>
    <content type="html">Body of {title}</content>
    <link rel="alternate" type="text/html" href="http://myblog.blogspot.com/{post_id}.html"/>
    {control}
  </entry>"""


def feed(*entries):
    return f'<feed xmlns="{ATOM_NS}">{"".join(entries)}</feed>'


@pytest.fixture
def client(http_transport, authenticator):
    return GDataClient(
        "http://myblog.blogspot.com/",
        "123",
        "me@example.com",
        "secret",
        transport=http_transport,
        authenticator=authenticator,
        full_name="Me",
    )


@pytest.fixture
def signals(client, record_signals):
    return record_signals(client, *SIGNALS)


class TestGDataPosts:
    def test_create_post(self, client, signals, http_transport):
        post = BlogPost(title="Hello", content="<p>Body</p>", tags=["python"], private=True)

        client.create_post(post)

        request = http_transport.requests[0]
        assert request.verb == "POST"
        assert request.url == f"{FEEDS}/posts/default"
        assert request.headers["Authorization"] == "GoogleLogin auth=secret-token"
        assert request.headers["Content-Type"].startswith("application/atom+xml")
        assert b"<app:draft>yes</app:draft>" in request.body

        http_transport.respond(0, CREATED_ENTRY, status=201)

        assert post.post_id == "456"
        assert post.creation_time == WHEN
        assert post.modification_time == datetime(2006, 3, 31, 17, 0, tzinfo=timezone.utc)
        assert post.status is PostStatus.CREATED
        assert signals["created_post"] == [(post,)]

    def test_modify_post_uses_put_override(self, client, signals, http_transport):
        post = BlogPost(title="Hello", post_id="456")

        client.modify_post(post)
        request = http_transport.requests[0]
        assert request.verb == "POST"
        assert request.url == f"{FEEDS}/posts/default/456"
        assert request.headers["X-HTTP-Method-Override"] == "PUT"
        assert b"draft" not in request.body

        http_transport.respond(0, CREATED_ENTRY)
        assert signals["modified_post"] == [(post,)]

    def test_remove_post_uses_delete_override(self, client, signals, http_transport):
        post = BlogPost(title="Hello", post_id="456")

        client.remove_post(post)
        request = http_transport.requests[0]
        assert request.headers["X-HTTP-Method-Override"] == "DELETE"
        assert request.body == b""
        assert "Content-Type" not in request.headers

        http_transport.respond(0, "")
        assert post.status is PostStatus.REMOVED
        assert signals["removed_post"] == [(post,)]

    def test_removed_post_can_be_fetched_again(self, client, signals, http_transport):
        post = BlogPost(title="Hello", post_id="2")
        client.remove_post(post)
        http_transport.respond(0, "")

        client.fetch_post(post)
        http_transport.respond(1, feed(entry("2", "Two")))

        assert post.status is PostStatus.FETCHED
        assert post.title == "Two"
        assert signals["fetched_post"] == [(post,)]
        assert signals["error_post"] == []

    def test_created_entry_without_id(self, client, signals, http_transport):
        post = BlogPost(title="Hello")

        client.create_post(post)
        http_transport.respond(0, "<entry><published>2006-03-30T18:36:28Z</published></entry>")

        assert post.status is PostStatus.ERROR
        assert signals["error_post"][0][0] is ErrorType.PARSING

    def test_fetch_post(self, client, signals, http_transport):
        post = BlogPost(post_id="2")

        client.fetch_post(post)
        assert http_transport.requests[0].verb == "GET"
        assert http_transport.requests[0].url == f"{FEEDS}/posts/default/2"

        http_transport.respond(0, feed(entry("1", "One"), entry("2", "Two", labels=["a", "b"])))

        assert post.title == "Two"
        assert post.content == "Body of Two"
        assert post.tags == ["a", "b"]
        assert post.link == "http://myblog.blogspot.com/2.html"
        assert signals["fetched_post"] == [(post,)]

    def test_fetch_post_missing_from_response(self, client, signals, http_transport):
        post = BlogPost(post_id="9")

        client.fetch_post(post)
        http_transport.respond(0, feed(entry("1", "One")))

        assert post.status is PostStatus.ERROR
        assert "9" in signals["error_post"][0][1]

    def test_list_recent_posts_with_filters(self, client, signals, http_transport):
        client.list_recent_posts(
            2, labels=["python", "testing"], updated_min=WHEN, published_max=WHEN
        )

        url = http_transport.requests[0].url
        assert url.startswith(f"{FEEDS}/posts/default/-/python/testing?")
        assert "max-results=2" in url
        assert "updated-min=2006-03-30T18%3A36%3A28Z" in url
        assert "published-max=2006-03-30T18%3A36%3A28Z" in url
        assert "updated-max" not in url

        http_transport.respond(0, feed(entry("3", "Three", draft=True), entry("2", "Two"), entry("1", "One")))

        posts = signals["listed_recent_posts"][0][0]
        assert [p.post_id for p in posts] == ["3", "2"]
        assert posts[0].private is True
        assert posts[1].private is False
        assert all(p.status is PostStatus.FETCHED for p in posts)

    def test_transport_error_status(self, client, signals, http_transport):
        post = BlogPost(title="Hello")
        client.create_post(post)
        http_transport.fail(0, AuthenticationError("Token expired", dialect="gdata"))

        assert signals["error_post"][0][0] is ErrorType.AUTHENTICATION

    def test_authentication_failure_skips_request(self, client, signals, http_transport, authenticator):
        authenticator.error = AuthenticationError("BadAuthentication", dialect="gdata")
        post = BlogPost(title="Hello")

        assert client.create_post(post) is None

        assert http_transport.requests == []
        assert post.status is PostStatus.ERROR
        assert signals["error_post"] == [(ErrorType.AUTHENTICATION, "BadAuthentication", post)]

    def test_categories_are_not_supported(self, client, signals):
        with pytest.raises(NotSupportedError):
            client.list_categories()
        assert signals["error"][0][0] is ErrorType.NOT_SUPPORTED


class TestGDataBlogs:
    def test_fetch_profile_id(self, client, signals, http_transport):
        client.fetch_profile_id()

        request = http_transport.requests[0]
        assert request.url == "http://myblog.blogspot.com/"
        assert "Authorization" not in request.headers

        http_transport.respond(0, '<a href="http://www.blogger.com/profile/0815">About me</a>')
        assert client.profile_id == "0815"
        assert signals["fetched_profile_id"] == [("0815",)]

    def test_profile_id_missing(self, client, signals, http_transport):
        client.fetch_profile_id()
        http_transport.respond(0, "<html>nothing here</html>")

        assert signals["error"][0][0] is ErrorType.PARSING

    def test_list_blogs_fetches_profile_first(self, client, signals, http_transport):
        client.list_blogs()
        http_transport.respond(0, '<a href="https://www.blogger.com/profile/0815">me</a>')

        assert http_transport.requests[1].url == "https://www.blogger.com/feeds/0815/blogs"

        http_transport.respond(
            1,
            f"""<feed xmlns="{ATOM_NS}"><entry>
              <id>tag:blogger.com,1999:user-0815.blog-123</id>
              <title type="text">My Blog</title>
              <link rel="alternate" type="text/html" href="http://myblog.blogspot.com/"/>
              <link rel="http://schemas.google.com/g/2005#post" href="{FEEDS}/posts/default"/>
            </entry></feed>""",
        )

        blogs = signals["listed_blogs"][0][0]
        assert blogs == [
            {
                "id": "123",
                "url": "http://myblog.blogspot.com/",
                "api_url": f"{FEEDS}/posts/default",
                "title": "My Blog",
                "summary": "",
            }
        ]


class TestGDataComments:
    def setup_method(self):
        self.post = BlogPost(title="Hello", post_id="456")

    def test_create_comment(self, client, signals, http_transport):
        comment = BlogComment(title="Nice", content="Nice post", name="Reader", email="r@example.com")

        client.create_comment(self.post, comment)
        request = http_transport.requests[0]
        assert request.url == f"{FEEDS}/456/comments/default"
        assert b"Nice post" in request.body

        http_transport.respond(0, CREATED_ENTRY.replace("post-456", "post-789"))

        assert comment.comment_id == "789"
        assert comment.status is CommentStatus.CREATED
        assert signals["created_comment"] == [(self.post, comment)]

    def test_remove_comment_reports_removed(self, client, signals, http_transport):
        comment = BlogComment(comment_id="789")

        client.remove_comment(self.post, comment)
        request = http_transport.requests[0]
        assert request.url == f"{FEEDS}/456/comments/default/789"
        assert request.headers["X-HTTP-Method-Override"] == "DELETE"

        http_transport.respond(0, "")
        assert comment.status is CommentStatus.REMOVED
        assert signals["removed_comment"] == [(self.post, comment)]

    def test_comment_error_names_the_post(self, client, signals, http_transport):
        comment = BlogComment(content="Nice")

        client.create_comment(self.post, comment)
        http_transport.respond(0, "garbage")

        assert comment.status is CommentStatus.ERROR
        kind, _, post, failed = signals["error_comment"][0]
        assert (kind, post, failed) == (ErrorType.PARSING, self.post, comment)

    def test_list_comments(self, client, signals, http_transport):
        client.list_comments(self.post)
        http_transport.respond(
            0,
            feed(
                f"""<entry><id>tag:blogger.com,1999:blog-123.post-789</id>
                <title>Re</title><content type="html">Great</content>
                <author><name>Reader</name><uri>http://reader/</uri></author>
                <published>2006-03-30T18:36:28Z</published></entry>"""
            ),
        )

        post, comments = signals["listed_comments"][0]
        assert post is self.post
        assert [(c.comment_id, c.name, c.url, c.content) for c in comments] == [
            ("789", "Reader", "http://reader/", "Great")
        ]
        assert comments[0].creation_time == WHEN
        assert comments[0].status is CommentStatus.FETCHED

    def test_list_all_comments(self, client, signals, http_transport):
        client.list_all_comments()
        assert http_transport.requests[0].url == f"{FEEDS}/comments/default"

        http_transport.respond(0, feed())
        assert signals["listed_all_comments"] == [([],)]


class TestAtomCodec:
    def setup_method(self):
        self.codec = AtomCodec(author_name="Me", author_email="me@example.com")

    def test_encode_post(self):
        post = BlogPost(
            title="Hello & welcome",
            content="<p>Body</p>",
            tags=["python"],
            creation_time=WHEN,
        )

        root = ET.fromstring(self.codec.encode_post(post, private=False))

        assert root.tag == f"{{{ATOM_NS}}}entry"
        assert root.findtext(f"{{{ATOM_NS}}}title") == "Hello & welcome"
        assert root.findtext(f"{{{ATOM_NS}}}content") == "<p>Body</p>"
        assert root.findtext(f"{{{ATOM_NS}}}published") == "2006-03-30T18:36:28Z"
        assert root.find(f"{{{ATOM_NS}}}updated") is None
        assert root.find(f"{{{ATOM_NS}}}category").get("term") == "python"
        assert root.findtext(f"{{{ATOM_NS}}}author/{{{ATOM_NS}}}name") == "Me"
        assert root.find(f"{{{APP_NS}}}control") is None

    def test_entry_round_trip(self):
        post = BlogPost(title="Hello", content="Body", tags=["a"], private=True, creation_time=WHEN)
        encoded = self.codec.encode_post(post, post.private).decode("utf-8")
        encoded = encoded.replace("<title", "<id>tag:blogger.com,1999:blog-1.post-5</id><title", 1)

        decoded = self.codec.decode_post(self.codec.parse_feed(encoded)[0], BlogPost())

        assert (decoded.post_id, decoded.title, decoded.content) == ("5", "Hello", "Body")
        assert decoded.tags == ["a"]
        assert decoded.private is True
        assert decoded.creation_time == WHEN

    def test_xhtml_content(self):
        body = feed(
            '<entry><id>post-1</id><content type="xhtml">'
            '<div xmlns="http://www.w3.org/1999/xhtml">Hi <b>there</b></div></content></entry>'
        )
        post = self.codec.decode_post(self.codec.parse_feed(body)[0], BlogPost())
        assert post.content.startswith("Hi ")
        assert "there" in post.content

    def test_parse_feed_rejects_other_documents(self):
        with pytest.raises(ParsingError):
            self.codec.parse_feed("<html/>")
        with pytest.raises(ParsingError):
            self.codec.parse_feed("not xml")

    def test_naive_filter_dates_are_rejected(self):
        with pytest.raises(ValueError):
            self.codec.format_datetime(datetime(2006, 3, 30))


class TestClientLoginAuthenticator:
    def _response(self, status_code, text):
        response = Mock()
        response.status_code = status_code
        response.text = text
        response.reason = "Reason"
        response.headers = {}
        if status_code >= 400:
            response.raise_for_status.side_effect = requests.exceptions.HTTPError()
        return response

    @patch("blogwire.client.gdata_client.requests.post")
    def test_token_is_cached(self, mock_post):
        mock_post.return_value = self._response(200, "SID=x\nLSID=y\nAuth=abc123\n")
        authenticator = ClientLoginAuthenticator("me@example.com", "secret")

        assert authenticator.token() == "abc123"
        assert authenticator.token() == "abc123"

        mock_post.assert_called_once()
        data = mock_post.call_args[1]["data"]
        assert data["Email"] == "me@example.com"
        assert data["service"] == "blogger"

    @patch("blogwire.client.gdata_client.requests.post")
    def test_token_expires(self, mock_post):
        mock_post.return_value = self._response(200, "Auth=abc123")
        authenticator = ClientLoginAuthenticator("me@example.com", "secret")

        authenticator.token()
        authenticator._obtained_at -= ClientLoginAuthenticator.TOKEN_LIFETIME + 1
        authenticator.token()

        assert mock_post.call_count == 2

    @patch("blogwire.client.gdata_client.requests.post")
    def test_rejected_credentials(self, mock_post):
        mock_post.return_value = self._response(403, "Error=BadAuthentication")

        with pytest.raises(AuthenticationError):
            ClientLoginAuthenticator("me@example.com", "wrong").token()
        mock_post.assert_called_once()

    @patch("blogwire.client.gdata_client.requests.post")
    def test_response_without_token(self, mock_post):
        mock_post.return_value = self._response(200, "SID=x")

        with pytest.raises(AuthenticationError, match="Auth token"):
            ClientLoginAuthenticator("me@example.com", "secret").token()

    @patch("blogwire.client.gdata_client.requests.post")
    def test_server_error_becomes_authentication_error(self, mock_post):
        mock_post.return_value = self._response(500, "oops")

        with pytest.raises(AuthenticationError, match="Could not obtain a token"):
            ClientLoginAuthenticator("me@example.com", "secret").token()

    @patch("blogwire.utils.error_handler.time.sleep")
    @patch("blogwire.client.gdata_client.requests.post")
    def test_unreachable_login_server(self, mock_post, mock_sleep):
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(AuthenticationError, match="Request to gdata failed: refused"):
            ClientLoginAuthenticator("me@example.com", "secret").token()
        assert mock_post.call_count == 3
        assert mock_sleep.call_count == 2
