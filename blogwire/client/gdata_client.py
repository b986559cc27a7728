"""
This module is used to interact with the Blogger GData (Atom) API for
publishing posts and comments and retrieving them.
"""

import logging
import re
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode
from datetime import datetime

import requests
from requests.exceptions import RequestException

from blogwire.client.aiohttp_transport import AioHttpTransport
from blogwire.client.base_client import BlogClient
from blogwire.interfaces.transport import HttpResponse, HttpTransport
from blogwire.managers.call_registry import CallRecord, Continuation
from blogwire.models.blog_post import BlogComment, BlogPost
from blogwire.models.status import CommentStatus, PostStatus
from blogwire.processors.atom_codec import AtomCodec
from blogwire.utils.error_handler import (
    AuthenticationError,
    BlogError,
    ParsingError,
    handle_api_response,
    with_retry_and_rate_limiting,
    wrap_request_exception,
)

logging.basicConfig(level=logging.INFO)

FEEDS_URL = "https://www.blogger.com/feeds"
CLIENT_LOGIN_URL = "https://www.google.com/accounts/ClientLogin"
PROFILE_ID = re.compile(r"https?://www\.blogger\.com/profile/(\d+)")
AUTH_TOKEN = re.compile(r"Auth=(.+)")
ATOM_CONTENT_TYPE = "application/atom+xml; charset=utf-8"


class ClientLoginAuthenticator:
    """
    Obtains GoogleLogin tokens and reuses each one for ten minutes.

    The login request is synchronous; it runs before the first call that
    needs a token and again once the token is too old.
    """

    TOKEN_LIFETIME = 600

    def __init__(
        self,
        username: str,
        password: str,
        source: str = "blogwire",
        timeout: float = 50,
        login_url: str = CLIENT_LOGIN_URL,
    ) -> None:
        self.username = username
        self.password = password
        self.source = source
        self.timeout = timeout
        self.login_url = login_url
        self._token = ""
        self._obtained_at = 0.0
        self.logging = logging.getLogger(__name__)

    def token(self) -> str:
        """
        Return a valid token, logging in if necessary.

        Raises:
            AuthenticationError: If the credentials are rejected or no token is returned
        """
        if self._token and time.monotonic() - self._obtained_at < self.TOKEN_LIFETIME:
            return self._token

        try:
            self._token = self._login()
        except AuthenticationError:
            raise
        except RequestException as e:
            error = wrap_request_exception(e, "gdata")
            raise AuthenticationError(f"Could not obtain a token: {error}", dialect="gdata")
        except BlogError as e:
            raise AuthenticationError(f"Could not obtain a token: {str(e)}", dialect="gdata")

        self._obtained_at = time.monotonic()
        return self._token

    @with_retry_and_rate_limiting(max_retries=2, base_delay=1.0)
    def _login(self) -> str:
        response = requests.post(
            self.login_url,
            data={
                "Email": self.username,
                "Passwd": self.password,
                "source": self.source,
                "service": "blogger",
            },
            timeout=self.timeout,
        )
        text = handle_api_response(response, "gdata", "authenticate")

        match = AUTH_TOKEN.search(text)
        if not match:
            raise AuthenticationError(
                "ClientLogin response did not contain an Auth token", dialect="gdata"
            )
        self.logging.debug("Obtained a new GoogleLogin token")
        return match.group(1).strip()


class GDataClient(BlogClient):
    # pylint: disable=too-many-public-methods
    """
    Client for Blogger's GData API.

    Posts and comments travel as Atom entries. PUT and DELETE are sent as
    POST with an X-HTTP-Method-Override header.
    """

    dialect = "gdata"

    def __init__(
        self,
        url: str,
        blog_id: str = "",
        username: str = "",
        password: str = "",
        transport: Optional[HttpTransport] = None,
        authenticator: Any = None,
        profile_id: str = "",
        full_name: str = "",
        user_agent: str = "",
        timeout: float = 50,
    ) -> None:
        super().__init__(url, blog_id, username, password, user_agent)
        self.logging = logging.getLogger(__name__)
        self.error_handler.logger = self.logging

        self.transport = transport or AioHttpTransport(user_agent=user_agent, timeout=timeout)
        self.authenticator = authenticator or ClientLoginAuthenticator(
            username, password, source=user_agent or "blogwire", timeout=timeout
        )
        self.profile_id = profile_id
        self.codec = AtomCodec(author_name=full_name, author_email=username)

        self.handlers.update(
            {
                Continuation.FETCH_PROFILE_ID: self._on_profile_id,
                Continuation.LIST_BLOGS: self._on_blogs,
                Continuation.LIST_RECENT_POSTS: self._on_recent_posts,
                Continuation.FETCH: self._on_fetched,
                Continuation.CREATE: self._on_created,
                Continuation.MODIFY: self._on_modified,
                Continuation.REMOVE: self._on_removed,
                Continuation.CREATE_COMMENT: self._on_comment_created,
                Continuation.REMOVE_COMMENT: self._on_comment_removed,
                Continuation.LIST_COMMENTS: self._on_comments,
                Continuation.LIST_ALL_COMMENTS: self._on_all_comments,
            }
        )

    # URLs

    def _posts_url(self, post_id: str = "") -> str:
        url = f"{FEEDS_URL}/{self.blog_id}/posts/default"
        return f"{url}/{post_id}" if post_id else url

    def _comments_url(self, post_id: str = "", comment_id: str = "") -> str:
        if not post_id:
            return f"{FEEDS_URL}/{self.blog_id}/comments/default"
        url = f"{FEEDS_URL}/{self.blog_id}/{post_id}/comments/default"
        return f"{url}/{comment_id}" if comment_id else url

    # Request plumbing

    def _send(
        self,
        verb: str,
        url: str,
        continuation: Continuation,
        target: Any = None,
        body: bytes = b"",
        method_override: str = "",
        parent: Any = None,
        context: Optional[Dict] = None,
        authenticate: bool = True,
    ) -> Optional[int]:
        headers = {}
        if authenticate:
            try:
                headers["Authorization"] = f"GoogleLogin auth={self.authenticator.token()}"
            except AuthenticationError as e:
                self.report_error(target, e, continuation.value, parent=parent)
                return None
        if body:
            headers["Content-Type"] = ATOM_CONTENT_TYPE
        if method_override:
            headers["X-HTTP-Method-Override"] = method_override

        token, on_result, on_error = self.register_call(
            continuation, target, parent=parent, context=context
        )
        self.logging.debug(f"{verb} {url} (call {token})")
        self.transport.request(verb, url, on_result, on_error, body=body, headers=headers)
        return token

    # Operations

    def fetch_profile_id(self) -> Optional[int]:
        """
        Find the Blogger profile id by scanning the blog's front page.

        Emits fetched_profile_id with the id.
        """
        return self._send("GET", self.url, Continuation.FETCH_PROFILE_ID, authenticate=False)

    def list_blogs(self) -> Optional[int]:
        if not self.profile_id:
            return self._send(
                "GET",
                self.url,
                Continuation.FETCH_PROFILE_ID,
                context={"then_list_blogs": True},
                authenticate=False,
            )
        return self._send("GET", f"{FEEDS_URL}/{self.profile_id}/blogs", Continuation.LIST_BLOGS)

    def list_recent_posts(
        self,
        count: int,
        labels: Optional[List[str]] = None,
        updated_min: Optional[datetime] = None,
        updated_max: Optional[datetime] = None,
        published_min: Optional[datetime] = None,
        published_max: Optional[datetime] = None,
    ) -> Optional[int]:
        """
        List recent posts, optionally filtered by labels and date ranges.

        Args:
            count: Maximum number of posts to return
            labels: Only posts carrying all of these labels
            updated_min, updated_max: Range of the last modification time
            published_min, published_max: Range of the publication time
        """
        url = self._posts_url()
        if labels:
            url += "/-/" + "/".join(labels)

        query = {"max-results": count}
        for key, value in (
            ("updated-min", updated_min),
            ("updated-max", updated_max),
            ("published-min", published_min),
            ("published-max", published_max),
        ):
            if value is not None:
                query[key] = self.codec.format_datetime(value)
        url += "?" + urlencode(query)

        return self._send("GET", url, Continuation.LIST_RECENT_POSTS, context={"count": count})

    def fetch_post(self, post: BlogPost) -> Optional[int]:
        return self._send("GET", self._posts_url(post.post_id), Continuation.FETCH, target=post)

    def create_post(self, post: BlogPost) -> Optional[int]:
        return self._send(
            "POST",
            self._posts_url(),
            Continuation.CREATE,
            target=post,
            body=self.codec.encode_post(post, post.private),
        )

    def modify_post(self, post: BlogPost) -> Optional[int]:
        return self._send(
            "POST",
            self._posts_url(post.post_id),
            Continuation.MODIFY,
            target=post,
            body=self.codec.encode_post(post, post.private),
            method_override="PUT",
        )

    def remove_post(self, post: BlogPost) -> Optional[int]:
        return self._send(
            "POST",
            self._posts_url(post.post_id),
            Continuation.REMOVE,
            target=post,
            method_override="DELETE",
        )

    def create_comment(self, post: BlogPost, comment: BlogComment) -> Optional[int]:
        return self._send(
            "POST",
            self._comments_url(post.post_id),
            Continuation.CREATE_COMMENT,
            target=comment,
            body=self.codec.encode_comment(comment),
            parent=post,
        )

    def remove_comment(self, post: BlogPost, comment: BlogComment) -> Optional[int]:
        return self._send(
            "POST",
            self._comments_url(post.post_id, comment.comment_id),
            Continuation.REMOVE_COMMENT,
            target=comment,
            method_override="DELETE",
            parent=post,
        )

    def list_comments(self, post: BlogPost) -> Optional[int]:
        """Emits listed_comments(post, comments)."""
        return self._send(
            "GET", self._comments_url(post.post_id), Continuation.LIST_COMMENTS, target=post
        )

    def list_all_comments(self) -> Optional[int]:
        """Emits listed_all_comments(comments) for every comment on the blog."""
        return self._send("GET", self._comments_url(), Continuation.LIST_ALL_COMMENTS)

    # Result handlers

    def _on_profile_id(self, record: CallRecord, response: HttpResponse) -> None:
        match = PROFILE_ID.search(response.text)
        if not match:
            raise ParsingError("Could not find the profile id on the blog page", dialect=self.dialect)
        self.profile_id = match.group(1)
        self.fetched_profile_id.emit(self.profile_id)
        if record.context.get("then_list_blogs"):
            self.list_blogs()

    def _on_blogs(self, record: CallRecord, response: HttpResponse) -> None:
        self.listed_blogs.emit(self.codec.read_blogs(response.text))

    def _on_recent_posts(self, record: CallRecord, response: HttpResponse) -> None:
        posts = []
        for entry in self.codec.parse_feed(response.text)[: record.context["count"]]:
            post = self.codec.decode_post(entry, BlogPost())
            post.set_status(PostStatus.FETCHED)
            posts.append(post)
        self.listed_recent_posts.emit(posts)

    def _on_fetched(self, record: CallRecord, response: HttpResponse) -> None:
        post = record.target
        for entry in self.codec.parse_feed(response.text):
            if self.codec.entry_id(entry) == post.post_id:
                self.codec.decode_post(entry, post)
                self.finish(post, PostStatus.FETCHED, self.fetched_post)
                return
        raise ParsingError(f"Post {post.post_id} was not in the response", dialect=self.dialect)

    def _read_entry_result(self, obj: Any, response: HttpResponse) -> str:
        created = self.codec.read_created(response.text)
        obj.creation_time = created["published"]
        obj.modification_time = created["updated"]
        return created["id"]

    def _on_created(self, record: CallRecord, response: HttpResponse) -> None:
        post = record.target
        post.post_id = self._read_entry_result(post, response)
        self.finish(post, PostStatus.CREATED, self.created_post)

    def _on_modified(self, record: CallRecord, response: HttpResponse) -> None:
        post = record.target
        post.post_id = self._read_entry_result(post, response)
        self.finish(post, PostStatus.MODIFIED, self.modified_post)

    def _on_removed(self, record: CallRecord, response: HttpResponse) -> None:
        self.finish(record.target, PostStatus.REMOVED, self.removed_post)

    def _on_comment_created(self, record: CallRecord, response: HttpResponse) -> None:
        comment = record.target
        comment.comment_id = self._read_entry_result(comment, response)
        self.finish(comment, CommentStatus.CREATED, self.created_comment, record.parent)

    def _on_comment_removed(self, record: CallRecord, response: HttpResponse) -> None:
        self.finish(record.target, CommentStatus.REMOVED, self.removed_comment, record.parent)

    def _read_comments(self, response: HttpResponse) -> List[BlogComment]:
        comments = []
        for entry in self.codec.parse_feed(response.text):
            comment = self.codec.decode_comment(entry, BlogComment())
            comment.set_status(CommentStatus.FETCHED)
            comments.append(comment)
        return comments

    def _on_comments(self, record: CallRecord, response: HttpResponse) -> None:
        self.listed_comments.emit(record.target, self._read_comments(response))

    def _on_all_comments(self, record: CallRecord, response: HttpResponse) -> None:
        self.listed_all_comments.emit(self._read_comments(response))
