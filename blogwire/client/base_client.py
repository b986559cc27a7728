"""
Shared plumbing for every blog dialect client.

A client issues remote calls through its transport, remembers each call in
its CallRegistry and dispatches the completion to the handler registered
for the call's continuation. Outcomes reach the caller through signals.
"""

import logging
from functools import partial
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

from blogwire.interfaces.protocol_adapter import ProtocolAdapter
from blogwire.managers.call_registry import CallRecord, CallRegistry, Continuation
from blogwire.models.blog_post import BlogComment, BlogMedia, BlogPost
from blogwire.models.status import InvalidStatusTransition, Status
from blogwire.utils.error_handler import (
    BlogError,
    ErrorHandler,
    ErrorType,
    NotSupportedError,
    UnknownTokenError,
)
from blogwire.utils.signals import Signal

Handler = Callable[[CallRecord, Any], None]

SIGNAL_NAMES = (
    "fetched_user_info",
    "listed_blogs",
    "listed_recent_posts",
    "listed_categories",
    "categories_failed",
    "fetched_post",
    "created_post",
    "modified_post",
    "removed_post",
    "created_media",
    "created_comment",
    "removed_comment",
    "listed_comments",
    "listed_all_comments",
    "listed_trackback_pings",
    "fetched_profile_id",
    "error",
    "error_post",
    "error_media",
    "error_comment",
)


class BlogClient(ProtocolAdapter):
    # pylint: disable=too-many-instance-attributes
    """
    Base class for dialect clients.

    Subclasses register one handler per Continuation in self.handlers and
    start calls through their transport with the callbacks returned by
    _callbacks(). Every operation a subclass does not override reports a
    NotSupported error.
    """

    dialect = "blog"

    def __init__(
        self,
        url: str,
        blog_id: str = "",
        username: str = "",
        password: str = "",
        user_agent: str = "",
    ) -> None:
        self.url = url
        self.blog_id = blog_id
        self.username = username
        self.password = password
        self.user_agent = user_agent

        self.logging = logging.getLogger(__name__)
        self.error_handler = ErrorHandler(self.logging)
        self.registry = CallRegistry()
        self.handlers: Dict[Continuation, Handler] = {}

        for name in SIGNAL_NAMES:
            setattr(self, name, Signal(name))

    @property
    def interface_name(self) -> str:
        return self.dialect

    @property
    def host(self) -> str:
        return urlparse(self.url).hostname or ""

    # Call plumbing

    def register_call(
        self,
        continuation: Continuation,
        target: Any = None,
        publish_after: bool = False,
        parent: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Register a call and return its token with the transport callbacks.

        Raises:
            DuplicateCallError: If target already has a call of this kind outstanding
        """
        token = self.registry.register(continuation, target, publish_after, parent, context)
        return token, partial(self._on_result, token), partial(self._on_error, token)

    def release(self, token: int) -> None:
        self.registry.release(token)

    def _claim(self, token: int) -> Optional[CallRecord]:
        """Take the record for a completed call, or None if the completion must be dropped."""
        if self.registry.was_released(token):
            self.logging.debug(f"Discarding completion of released call {token}")
            return None

        try:
            record = self.registry.take(token)
        except UnknownTokenError as e:
            self.report_error(None, e, "complete")
            return None

        if record.expired:
            self.logging.debug(
                f"Discarding completion of call {token}: its object no longer exists"
            )
            return None
        return record

    def _on_result(self, token: int, result: Any) -> None:
        record = self._claim(token)
        if record is None:
            return

        handler = self.handlers.get(record.continuation)
        if handler is None:
            self.fail(record, BlogError(f"No handler for {record.continuation.value} results", self.dialect))
            return

        try:
            handler(record, result)
        except BlogError as e:
            self.fail(record, e)
        except InvalidStatusTransition as e:
            self.fail(record, BlogError(str(e), self.dialect))
        except Exception as e:  # pylint: disable=broad-except
            self.logging.exception(f"Handling the result of call {token} failed")
            self.fail(record, BlogError(f"{type(e).__name__}: {e}", self.dialect))

    def _on_error(self, token: int, error: BlogError) -> None:
        record = self._claim(token)
        if record is None:
            return
        self.fail(record, error)

    # Outcomes

    def fail(self, record: CallRecord, error: BlogError) -> None:
        """Report a failed call against the object it was about."""
        if record.continuation is Continuation.LIST_CATEGORIES:
            self.categories_failed.emit(error)
        self.report_error(
            record.target, error, record.continuation.value, parent=record.parent
        )

    def report_error(
        self,
        obj: Any,
        error: BlogError,
        operation: str = None,
        parent: Optional[BlogPost] = None,
    ) -> None:
        """
        Attach an error to its object and emit the matching error signal.

        Posts go to error_post, media to error_media and comments to
        error_comment; errors without an object go to error.
        """
        error_type = getattr(error, "error_type", ErrorType.OTHER)
        message = str(error)
        title = getattr(obj, "title", None) or getattr(obj, "name", None)

        if isinstance(error, BlogError) and error.error_type is ErrorType.AUTHENTICATION:
            self.error_handler.log_authentication_error(self.dialect, message)
        else:
            self.error_handler.log_call_error(error, self.dialect, title, operation)

        if obj is not None:
            obj.mark_error(message)

        if isinstance(obj, BlogPost):
            self.error_post.emit(error_type, message, obj)
        elif isinstance(obj, BlogMedia):
            self.error_media.emit(error_type, message, obj)
        elif isinstance(obj, BlogComment):
            self.error_comment.emit(error_type, message, parent, obj)
        else:
            self.error.emit(error_type, message)

    def finish(self, obj: Any, status: Status, signal: Signal, *args: Any) -> None:
        """Move obj to its terminal status, log it and emit signal(*args, obj)."""
        obj.set_status(status)
        title = getattr(obj, "title", None) or getattr(obj, "name", "")
        object_id = (
            getattr(obj, "post_id", None)
            or getattr(obj, "comment_id", None)
            or getattr(obj, "url", None)
        )
        self.error_handler.log_success(self.dialect, title, status.value, object_id)
        signal.emit(*args, obj)

    def not_supported(self, operation: str, obj: Any = None, parent: Any = None) -> None:
        """
        Report that this dialect cannot perform operation.

        Raises:
            NotSupportedError: Always, after the error signal was emitted
        """
        error = NotSupportedError(
            f"{operation} is not supported by the {self.dialect} dialect",
            dialect=self.dialect,
        )
        self.report_error(obj, error, operation, parent=parent)
        raise error

    # Operations not every dialect has

    def fetch_user_info(self):
        self.not_supported("fetch_user_info")

    def list_blogs(self):
        self.not_supported("list_blogs")

    def list_recent_posts(self, count: int):
        self.not_supported("list_recent_posts")

    def list_categories(self):
        self.not_supported("list_categories")

    def fetch_post(self, post: BlogPost):
        self.not_supported("fetch_post", post)

    def create_post(self, post: BlogPost):
        self.not_supported("create_post", post)

    def modify_post(self, post: BlogPost):
        self.not_supported("modify_post", post)

    def remove_post(self, post: BlogPost):
        self.not_supported("remove_post", post)

    def create_media(self, media: BlogMedia):
        self.not_supported("create_media", media)

    def create_comment(self, post: BlogPost, comment: BlogComment):
        self.not_supported("create_comment", comment, post)

    def remove_comment(self, post: BlogPost, comment: BlogComment):
        self.not_supported("remove_comment", comment, post)
