"""
Multi-step publishing for dialects that set categories in a separate call.

MovableType servers only accept categories through mt.setPostCategories,
which needs an existing post. A post with categories is therefore created
silently:

1. wait for the category list (CategoryGate)
2. create the post with the publish flag off
3. set its categories
4. if the caller wanted it public, edit it again with the publish flag on
5. report created_post once

The caller's post never shows the forced private flag and only one
created_post is emitted, after the last step.
"""

import logging
import weakref
from dataclasses import dataclass
from functools import partial
from typing import Any, Optional

from blogwire.managers.call_registry import CallRecord, Continuation
from blogwire.managers.category_gate import CategoryGate
from blogwire.models.blog_post import BlogPost
from blogwire.models.status import PostStatus
from blogwire.utils.error_handler import BlogError, DuplicateCallError


@dataclass
class SilentCreation:
    """Bookkeeping for a post that is being created in several steps."""

    original_private: bool


class PublishOrchestrator:
    """
    Drives the create, modify and fetch chains of a MovableType-family client.

    The client provides the wire calls (send_create, send_modify,
    send_fetch, send_set_categories, send_fetch_post_categories), its
    codec, its signals and the finish/report_error helpers.
    """

    def __init__(self, client: Any, gate_without_categories: bool = False):
        """
        Args:
            client: The client whose calls are chained
            gate_without_categories: Wait for the category list even when the
                post has no categories (old WordPress servers need this)
        """
        self.client = client
        self.gate = CategoryGate(client)
        self.gate_without_categories = gate_without_categories
        self._silent: "weakref.WeakKeyDictionary[BlogPost, SilentCreation]" = (
            weakref.WeakKeyDictionary()
        )
        self.logging = logging.getLogger(__name__)

        client.handlers.update(
            {
                Continuation.ASSIGN_CATEGORIES: self._on_categories_assigned,
                Continuation.REPUBLISH: self._on_republished,
                Continuation.FETCH_POST_CATEGORIES: self._on_post_categories,
            }
        )

    def is_silent(self, post: BlogPost) -> bool:
        """True while post is between its private create and its terminal notification."""
        return post in self._silent

    def _held(self, replay, post: BlogPost) -> bool:
        if not post.categories and not self.gate_without_categories:
            return False
        return self.gate.hold(replay, post)

    # Operations

    def create_post(self, post: BlogPost) -> Optional[int]:
        if self._held(self.create_post, post):
            return None

        if not post.categories:
            return self.client.send_create(post, post.private)

        if post in self._silent:
            raise DuplicateCallError(
                f"'{post.title}' is already being created", dialect=self.client.dialect
            )

        self._silent[post] = SilentCreation(original_private=post.private)
        try:
            return self.client.send_create(post, private=True)
        except BlogError:
            del self._silent[post]
            raise

    def modify_post(self, post: BlogPost, content_changed: bool = True) -> Optional[int]:
        """
        Modify a post, setting its categories first when it has any.

        Args:
            post: The post to modify
            content_changed: Also send the post's fields after the categories.
                When False only the categories are updated.
        """
        if self._held(partial(self.modify_post, content_changed=content_changed), post):
            return None

        if not post.categories:
            return self.client.send_modify(post, post.private)

        return self.client.send_set_categories(
            post, publish_after=False, context={"modify": content_changed}
        )

    def fetch_post(self, post: BlogPost) -> Optional[int]:
        # Fetched posts carry category ids or names, mapped through the list.
        if self.gate.hold(self.fetch_post, post):
            return None
        return self.client.send_fetch(post)

    # Chain steps

    def after_create(self, post: BlogPost) -> bool:
        """
        Continue a silent creation once the private create succeeded.

        Returns:
            True if the chain goes on, False if post was created normally
        """
        creation = self._silent.get(post)
        if creation is None:
            return False
        self.client.send_set_categories(post, publish_after=not creation.original_private)
        return True

    def after_fetch(self, post: BlogPost) -> bool:
        """
        Fetch the categories of a post the server returned without any.

        Returns:
            True if a follow-up call was issued
        """
        if post.categories:
            return False
        self.client.send_fetch_post_categories(post)
        return True

    def _on_categories_assigned(self, record: CallRecord, result: Any) -> None:
        post = record.target
        self.client.codec.read_confirmation(result, "mt.setPostCategories")

        creation = self._silent.get(post)
        if creation is None:
            if record.context.get("modify"):
                self.client.send_modify(post, post.private)
            else:
                self.client.finish(post, PostStatus.MODIFIED, self.client.modified_post)
            return

        if record.publish_after:
            self.client.send_modify(
                post, creation.original_private, continuation=Continuation.REPUBLISH
            )
            return

        self._finish_creation(post)

    def _on_republished(self, record: CallRecord, result: Any) -> None:
        self.client.codec.read_confirmation(result, "metaWeblog.editPost")
        self._finish_creation(record.target)

    def _on_post_categories(self, record: CallRecord, result: Any) -> None:
        post = record.target
        post.categories = self.client.codec.read_post_categories(result)
        self.client.finish(post, PostStatus.FETCHED, self.client.fetched_post)

    def _finish_creation(self, post: BlogPost) -> None:
        creation = self._silent.pop(post)
        post.private = creation.original_private
        self.client.finish(post, PostStatus.CREATED, self.client.created_post)

    def abort(self, post: BlogPost) -> None:
        """Drop post from any chain in progress and restore its publish flag."""
        creation = self._silent.pop(post, None)
        if creation is not None:
            post.private = creation.original_private
            self.logging.debug(f"Aborted silent creation of '{post.title}'")
