"""
This module is used to publish posts to LiveJournal over its XML-RPC API.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from blogwire.client.aiohttp_transport import AioXmlRpcTransport
from blogwire.client.base_client import BlogClient
from blogwire.interfaces.transport import XmlRpcTransport
from blogwire.managers.call_registry import CallRecord, Continuation
from blogwire.models.blog_post import BlogPost
from blogwire.models.status import PostStatus
from blogwire.utils.error_handler import BlogError, ParsingError

logging.basicConfig(level=logging.INFO)


class LiveJournalClient(BlogClient):
    """
    LiveJournal: create, modify and remove posts.

    LiveJournal calls posts "events". Removing one is an edit with an empty
    event. Every other operation reports NotSupported.
    """

    dialect = "livejournal"

    def __init__(
        self,
        url: str,
        blog_id: str = "",
        username: str = "",
        password: str = "",
        transport: Optional[XmlRpcTransport] = None,
        user_agent: str = "",
        timeout: float = 50,
    ) -> None:
        super().__init__(url, blog_id, username, password, user_agent)
        self.logging = logging.getLogger(__name__)
        self.error_handler.logger = self.logging
        self.transport = transport or AioXmlRpcTransport(
            url, user_agent=user_agent, timeout=timeout
        )
        self.handlers.update(
            {
                Continuation.CREATE: self._on_created,
                Continuation.MODIFY: self._on_modified,
                Continuation.REMOVE: self._on_removed,
            }
        )

    def _event(self, post: BlogPost, content: str) -> Dict[str, Any]:
        date = post.creation_time or datetime.now(timezone.utc)
        return {
            "username": self.username,
            "password": self.password,
            "ver": "1",
            "lineendings": "pc",
            "event": content,
            "subject": post.title,
            "year": date.year,
            "mon": date.month,
            "day": date.day,
            "hour": date.hour,
            "min": date.minute,
        }

    def _call(self, method: str, args: List[Any], continuation: Continuation, post: BlogPost) -> int:
        token, on_result, on_error = self.register_call(continuation, post)
        self.logging.debug(f"Calling {method} (call {token})")
        self.transport.call(method, args, on_result, on_error)
        return token

    def create_post(self, post: BlogPost) -> int:
        return self._call(
            "LJ.XMLRPC.postevent", [self._event(post, post.content)], Continuation.CREATE, post
        )

    def _item_number(self, post: BlogPost, operation: str) -> Optional[int]:
        """The numeric itemid of post, or None after reporting that it has none."""
        try:
            return int(post.post_id)
        except ValueError:
            error = BlogError(
                f"'{post.post_id}' is not a LiveJournal itemid", dialect=self.dialect
            )
            self.report_error(post, error, operation)
            return None

    def modify_post(self, post: BlogPost) -> Optional[int]:
        itemid = self._item_number(post, "modify_post")
        if itemid is None:
            return None
        event = self._event(post, post.content)
        event["itemid"] = itemid
        return self._call("LJ.XMLRPC.editevent", [event], Continuation.MODIFY, post)

    def remove_post(self, post: BlogPost) -> Optional[int]:
        itemid = self._item_number(post, "remove_post")
        if itemid is None:
            return None
        event = self._event(post, "")
        event["itemid"] = itemid
        return self._call("LJ.XMLRPC.editevent", [event], Continuation.REMOVE, post)

    @staticmethod
    def _item_id(result: Any) -> str:
        if not isinstance(result, dict) or "itemid" not in result:
            raise ParsingError("Could not read the itemid from the result", dialect="livejournal")
        return str(result["itemid"])

    def _on_created(self, record: CallRecord, result: Any) -> None:
        post = record.target
        post.post_id = self._item_id(result)
        self.finish(post, PostStatus.CREATED, self.created_post)

    def _on_modified(self, record: CallRecord, result: Any) -> None:
        self._item_id(result)
        self.finish(record.target, PostStatus.MODIFIED, self.modified_post)

    def _on_removed(self, record: CallRecord, result: Any) -> None:
        post = record.target
        if self._item_id(result) != post.post_id:
            raise ParsingError(
                f"Server removed item {result['itemid']} instead of {post.post_id}",
                dialect="livejournal",
            )
        self.finish(post, PostStatus.REMOVED, self.removed_post)
