"""
Protocol adapter interface implemented by every blog dialect.
"""

from abc import ABC, abstractmethod
from typing import Optional

from blogwire.models.blog_post import BlogComment, BlogMedia, BlogPost


class ProtocolAdapter(ABC):
    """
    Abstract base class for clients that talk to one blog dialect.

    Every operation is non-blocking: it returns once the first remote call
    has been issued, usually with the call token. The outcome is reported
    later through the client's signals. Operations a dialect cannot perform
    report a NotSupported error immediately and raise NotSupportedError.
    """

    @property
    @abstractmethod
    def interface_name(self) -> str:
        """Short dialect name, e.g. "movabletype"."""
        pass

    @abstractmethod
    def fetch_user_info(self) -> Optional[int]:
        """
        Fetch information about the authenticated user.

        Emits fetched_user_info with a dict holding nickname, userid, url,
        email, lastname and firstname.
        """
        pass

    @abstractmethod
    def list_blogs(self) -> Optional[int]:
        """
        List the blogs the user can post to.

        Emits listed_blogs with a list of dicts holding id, url, api_url and title.
        """
        pass

    @abstractmethod
    def list_recent_posts(self, count: int) -> Optional[int]:
        """
        List the most recent posts of the blog.

        Args:
            count: Maximum number of posts to return

        Emits listed_recent_posts with a list of fetched BlogPost objects.
        """
        pass

    @abstractmethod
    def list_categories(self) -> Optional[int]:
        """
        List the categories of the blog and refresh the category cache.

        Emits listed_categories with a list of CategoryEntry objects.
        """
        pass

    @abstractmethod
    def fetch_post(self, post: BlogPost) -> Optional[int]:
        """
        Fetch the post whose post_id is set, filling in its fields.

        Args:
            post: The post to fill in

        Emits fetched_post once the post is complete.
        """
        pass

    @abstractmethod
    def create_post(self, post: BlogPost) -> Optional[int]:
        """
        Create a new post on the blog.

        Args:
            post: The post to create; its post_id is set on success

        Emits created_post exactly once when the post is in its final state.
        """
        pass

    @abstractmethod
    def modify_post(self, post: BlogPost) -> Optional[int]:
        """
        Modify an existing post.

        Args:
            post: The post to modify, identified by post_id

        Emits modified_post.
        """
        pass

    @abstractmethod
    def remove_post(self, post: BlogPost) -> Optional[int]:
        """
        Remove an existing post.

        Args:
            post: The post to remove, identified by post_id

        Emits removed_post.
        """
        pass

    @abstractmethod
    def create_media(self, media: BlogMedia) -> Optional[int]:
        """
        Upload a media object.

        Args:
            media: The media to upload; its url is set on success

        Emits created_media.
        """
        pass

    @abstractmethod
    def create_comment(self, post: BlogPost, comment: BlogComment) -> Optional[int]:
        """
        Add a comment to a post.

        Emits created_comment.
        """
        pass

    @abstractmethod
    def remove_comment(self, post: BlogPost, comment: BlogComment) -> Optional[int]:
        """
        Remove a comment from a post.

        Emits removed_comment.
        """
        pass

    @abstractmethod
    def release(self, token: int) -> None:
        """
        Abandon an outstanding call; its completion will be discarded.

        Args:
            token: Token returned when the call was issued
        """
        pass
