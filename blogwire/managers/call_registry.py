"""
Correlation of outstanding remote calls with the objects that issued them.
"""

import itertools
import logging
import weakref
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from blogwire.utils.error_handler import DuplicateCallError, UnknownTokenError

# Released tokens remembered so their late completions can be dropped quietly
RELEASED_LIMIT = 1024


class Continuation(Enum):
    """What a client does with the result of a call."""

    FETCH = "fetch"
    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"
    ASSIGN_CATEGORIES = "assign_categories"
    REPUBLISH = "republish"
    FETCH_POST_CATEGORIES = "fetch_post_categories"
    LIST_CATEGORIES = "list_categories"
    FETCH_USER_INFO = "fetch_user_info"
    LIST_BLOGS = "list_blogs"
    LIST_RECENT_POSTS = "list_recent_posts"
    CREATE_MEDIA = "create_media"
    CREATE_COMMENT = "create_comment"
    REMOVE_COMMENT = "remove_comment"
    LIST_COMMENTS = "list_comments"
    LIST_ALL_COMMENTS = "list_all_comments"
    LIST_TRACKBACK_PINGS = "list_trackback_pings"
    FETCH_PROFILE_ID = "fetch_profile_id"


@dataclass
class CallRecord:
    """
    One outstanding call.

    The target (and the parent post of a comment call) are held by weak
    reference; the caller owns them and may drop them at any time.
    """

    token: int
    continuation: Continuation
    target_ref: Optional[weakref.ref] = None
    parent_ref: Optional[weakref.ref] = None
    publish_after: bool = False
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def target(self) -> Any:
        return self.target_ref() if self.target_ref is not None else None

    @property
    def parent(self) -> Any:
        return self.parent_ref() if self.parent_ref is not None else None

    @property
    def expired(self) -> bool:
        """True when the record had a target and the caller has dropped it."""
        return self.target_ref is not None and self.target_ref() is None


class CallRegistry:
    """
    Token to CallRecord map owned by a single client instance.

    Tokens come from a counter starting at 1 and are never reused. At most
    one outstanding record may exist per (object, continuation) pair.
    """

    def __init__(self):
        self._counter = itertools.count(1)
        self._records: Dict[int, CallRecord] = {}
        self._released: "OrderedDict[int, None]" = OrderedDict()
        self.logging = logging.getLogger(__name__)

    def register(
        self,
        continuation: Continuation,
        target: Any = None,
        publish_after: bool = False,
        parent: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Record a new outstanding call.

        Args:
            continuation: What to do with the result
            target: The post, media or comment the call is about (optional)
            publish_after: Whether a silent creation publishes after its categories are set
            parent: The post a comment call belongs to (optional)
            context: Extra values the result handler needs

        Returns:
            The token identifying the call

        Raises:
            DuplicateCallError: If target already has an outstanding call of this kind
        """
        if target is not None:
            for record in self._records.values():
                if record.continuation is continuation and record.target is target:
                    raise DuplicateCallError(
                        f"A {continuation.value} call is already outstanding for this object "
                        f"(token {record.token})"
                    )

        token = next(self._counter)
        self._records[token] = CallRecord(
            token=token,
            continuation=continuation,
            target_ref=weakref.ref(target) if target is not None else None,
            parent_ref=weakref.ref(parent) if parent is not None else None,
            publish_after=publish_after,
            context=dict(context or {}),
        )
        self.logging.debug(f"Registered call {token} ({continuation.value})")
        return token

    def resolve(self, token: int) -> CallRecord:
        """
        Look up an outstanding call.

        Raises:
            UnknownTokenError: If no call with this token is outstanding
        """
        try:
            return self._records[token]
        except KeyError:
            raise UnknownTokenError(f"No outstanding call with token {token}")

    def take(self, token: int) -> CallRecord:
        """Resolve a call and remove it from the registry."""
        record = self.resolve(token)
        del self._records[token]
        return record

    def release(self, token: int) -> None:
        """
        Abandon a call. Releasing an unknown or already released token is a no-op.

        A completion arriving later for a released token is discarded. Only the
        last RELEASED_LIMIT released tokens are remembered; a completion for an
        older one is reported like any unknown token.
        """
        if self._records.pop(token, None) is not None:
            self._released[token] = None
            if len(self._released) > RELEASED_LIMIT:
                self._released.popitem(last=False)
            self.logging.debug(f"Released call {token}")

    def was_released(self, token: int) -> bool:
        """Check, and forget, whether the caller abandoned this token."""
        if token in self._released:
            del self._released[token]
            return True
        return False

    def tokens_for(self, obj: Any) -> List[int]:
        """Tokens of every outstanding call whose target is obj."""
        return [
            token for token, record in self._records.items() if record.target is obj
        ]

    def __contains__(self, token: int) -> bool:
        return token in self._records

    def __len__(self) -> int:
        return len(self._records)
