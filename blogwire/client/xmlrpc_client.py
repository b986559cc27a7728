"""
Client for the XML-RPC blog dialects.

The dialect codec decides which operations exist and how their arguments
look; this class issues the calls and interprets the results. Dialects that
need categories set in a separate call get a PublishOrchestrator.
"""

import logging
from typing import Any, Dict, List, Optional

from blogwire.client.aiohttp_transport import AioXmlRpcTransport
from blogwire.client.base_client import BlogClient
from blogwire.interfaces.transport import XmlRpcTransport
from blogwire.managers.call_registry import CallRecord, Continuation
from blogwire.managers.category_cache import CategoryCache
from blogwire.managers.publish_orchestrator import PublishOrchestrator
from blogwire.models.blog_post import BlogMedia, BlogPost
from blogwire.models.category import CategoryList
from blogwire.models.status import MediaStatus, PostStatus
from blogwire.processors.xmlrpc_dialects import Account, Blogger1Dialect
from blogwire.utils.error_handler import BlogError, ParsingError


class XmlRpcBlogClient(BlogClient):
    """
    Generic XML-RPC blog client; subclasses pick the dialect.
    """

    dialect = "blogger1"
    dialect_class = Blogger1Dialect
    publishes_in_steps = False
    gate_without_categories = False

    def __init__(
        self,
        url: str,
        blog_id: str = "",
        username: str = "",
        password: str = "",
        transport: Optional[XmlRpcTransport] = None,
        category_cache: Optional[CategoryCache] = None,
        user_agent: str = "",
        timeout: float = 50,
    ) -> None:
        super().__init__(url, blog_id, username, password, user_agent)
        self.logging = logging.getLogger(__name__)
        self.error_handler.logger = self.logging

        self.transport = transport or AioXmlRpcTransport(
            url, user_agent=user_agent, timeout=timeout
        )
        self.category_cache = category_cache
        self.categories = CategoryList()
        self.categories_loaded = False
        self.categories_fetched = False
        self.codec = self.dialect_class(self.categories)

        self.handlers.update(
            {
                Continuation.FETCH_USER_INFO: self._on_user_info,
                Continuation.LIST_BLOGS: self._on_blogs,
                Continuation.LIST_RECENT_POSTS: self._on_recent_posts,
                Continuation.LIST_CATEGORIES: self._on_categories,
                Continuation.FETCH: self._on_fetched,
                Continuation.CREATE: self._on_created,
                Continuation.MODIFY: self._on_modified,
                Continuation.REMOVE: self._on_removed,
                Continuation.CREATE_MEDIA: self._on_media_created,
                Continuation.LIST_TRACKBACK_PINGS: self._on_trackback_pings,
            }
        )

        self.orchestrator: Optional[PublishOrchestrator] = None
        if self.publishes_in_steps:
            self.orchestrator = PublishOrchestrator(
                self, gate_without_categories=self.gate_without_categories
            )

    @property
    def account(self) -> Account:
        return Account(self.blog_id, self.username, self.password)

    def call(
        self,
        operation: str,
        args: List[Any],
        continuation: Continuation,
        target: Any = None,
        publish_after: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Issue the dialect's method for operation and return the call token.

        Raises:
            DuplicateCallError: If target already has a call of this kind outstanding
        """
        method = self.codec.method(operation)
        token, on_result, on_error = self.register_call(
            continuation, target, publish_after, context=context
        )
        self.logging.debug(f"Calling {method} (call {token})")
        self.transport.call(method, args, on_result, on_error)
        return token

    def _require(self, operation: str, obj: Any = None) -> None:
        if not self.codec.supports(operation):
            self.not_supported(operation, obj)

    def load_categories(self) -> None:
        """Fill the category list from the cache, once per client."""
        if self.categories_loaded:
            return
        self.categories_loaded = True
        if self.category_cache is not None:
            self.categories.replace(
                self.category_cache.load(self.host, self.blog_id, self.username)
            )

    # Operations

    def fetch_user_info(self) -> int:
        self._require("user_info")
        return self.call(
            "user_info", self.codec.user_info_args(self.account), Continuation.FETCH_USER_INFO
        )

    def list_blogs(self) -> int:
        self._require("list_blogs")
        return self.call(
            "list_blogs", self.codec.list_blogs_args(self.account), Continuation.LIST_BLOGS
        )

    def list_recent_posts(self, count: int) -> int:
        self._require("recent_posts")
        return self.call(
            "recent_posts",
            self.codec.recent_posts_args(self.account, count),
            Continuation.LIST_RECENT_POSTS,
            context={"count": count},
        )

    def list_categories(self) -> int:
        self._require("list_categories")
        return self.call(
            "list_categories",
            self.codec.list_categories_args(self.account),
            Continuation.LIST_CATEGORIES,
        )

    def fetch_post(self, post: BlogPost) -> Optional[int]:
        self._require("fetch_post", post)
        if self.orchestrator is not None:
            return self.orchestrator.fetch_post(post)
        return self.send_fetch(post)

    def create_post(self, post: BlogPost) -> Optional[int]:
        self._require("create_post", post)
        if self.orchestrator is not None:
            return self.orchestrator.create_post(post)
        return self.send_create(post, post.private)

    def modify_post(self, post: BlogPost, content_changed: bool = True) -> Optional[int]:
        self._require("modify_post", post)
        if self.orchestrator is not None:
            return self.orchestrator.modify_post(post, content_changed)
        return self.send_modify(post, post.private)

    def remove_post(self, post: BlogPost) -> int:
        self._require("remove_post", post)
        return self.call(
            "remove_post",
            self.codec.remove_post_args(self.account, post),
            Continuation.REMOVE,
            target=post,
        )

    def create_media(self, media: BlogMedia) -> int:
        self._require("create_media", media)
        return self.call(
            "create_media",
            self.codec.create_media_args(self.account, media),
            Continuation.CREATE_MEDIA,
            target=media,
        )

    def list_trackback_pings(self, post: BlogPost) -> int:
        """
        List the trackback pings a post received.

        Emits listed_trackback_pings(post, pings) where each ping is a dict
        with title, url and ip.
        """
        self._require("trackback_pings", post)
        return self.call(
            "trackback_pings",
            self.codec.trackback_pings_args(post),
            Continuation.LIST_TRACKBACK_PINGS,
            target=post,
        )

    # Wire calls used directly and by the orchestrator

    def send_fetch(self, post: BlogPost) -> int:
        return self.call(
            "fetch_post",
            self.codec.fetch_post_args(self.account, post),
            Continuation.FETCH,
            target=post,
        )

    def send_create(self, post: BlogPost, private: bool) -> int:
        return self.call(
            "create_post",
            self.codec.create_post_args(self.account, post, private),
            Continuation.CREATE,
            target=post,
        )

    def send_modify(
        self,
        post: BlogPost,
        private: bool,
        continuation: Continuation = Continuation.MODIFY,
    ) -> int:
        return self.call(
            "modify_post",
            self.codec.modify_post_args(self.account, post, private),
            continuation,
            target=post,
        )

    def send_set_categories(
        self, post: BlogPost, publish_after: bool, context: Optional[Dict] = None
    ) -> int:
        return self.call(
            "set_categories",
            self.codec.set_categories_args(self.account, post),
            Continuation.ASSIGN_CATEGORIES,
            target=post,
            publish_after=publish_after,
            context=context,
        )

    def send_fetch_post_categories(self, post: BlogPost) -> int:
        return self.call(
            "post_categories",
            self.codec.post_categories_args(self.account, post),
            Continuation.FETCH_POST_CATEGORIES,
            target=post,
        )

    # Result handlers

    def _on_user_info(self, record: CallRecord, result: Any) -> None:
        self.fetched_user_info.emit(self.codec.read_user_info(result))

    def _on_blogs(self, record: CallRecord, result: Any) -> None:
        self.listed_blogs.emit(self.codec.read_blogs(result))

    def _on_recent_posts(self, record: CallRecord, result: Any) -> None:
        if not isinstance(result, list):
            raise ParsingError(
                f"Could not read the list of recent posts, got {type(result).__name__}",
                dialect=self.dialect,
            )
        posts = []
        for item in result[: record.context.get("count", len(result))]:
            post = self.codec.decode_post(item, BlogPost())
            post.set_status(PostStatus.FETCHED)
            posts.append(post)
        self.logging.debug(f"Read {len(posts)} recent posts")
        self.listed_recent_posts.emit(posts)

    def _on_categories(self, record: CallRecord, result: Any) -> None:
        entries = self.codec.read_categories(result)
        self.categories.replace(entries)
        self.categories_loaded = True
        self.categories_fetched = True
        if self.category_cache is not None:
            try:
                self.category_cache.save(self.host, self.blog_id, self.username, entries)
            except OSError as e:
                self.logging.warning(f"Could not save the category cache: {e}")
        self.listed_categories.emit(self.categories.entries())

    def _on_fetched(self, record: CallRecord, result: Any) -> None:
        post = record.target
        self.codec.decode_post(result, post)
        if self.orchestrator is not None and self.orchestrator.after_fetch(post):
            return
        self.finish(post, PostStatus.FETCHED, self.fetched_post)

    def _on_created(self, record: CallRecord, result: Any) -> None:
        post = record.target
        post.post_id = self.codec.read_post_id(result)
        if self.orchestrator is not None and self.orchestrator.after_create(post):
            return
        self.finish(post, PostStatus.CREATED, self.created_post)

    def _on_modified(self, record: CallRecord, result: Any) -> None:
        self.codec.read_confirmation(result, "modify_post")
        self.finish(record.target, PostStatus.MODIFIED, self.modified_post)

    def _on_removed(self, record: CallRecord, result: Any) -> None:
        self.codec.read_confirmation(result, "remove_post")
        self.finish(record.target, PostStatus.REMOVED, self.removed_post)

    def _on_media_created(self, record: CallRecord, result: Any) -> None:
        media = record.target
        media.url = self.codec.read_media_url(result)
        self.finish(media, MediaStatus.CREATED, self.created_media)

    def _on_trackback_pings(self, record: CallRecord, result: Any) -> None:
        self.listed_trackback_pings.emit(record.target, self.codec.read_trackback_pings(result))

    def fail(self, record: CallRecord, error: BlogError) -> None:
        if self.orchestrator is not None and isinstance(record.target, BlogPost):
            self.orchestrator.abort(record.target)
        super().fail(record, error)
