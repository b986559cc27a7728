"""
Codec interface translating posts to and from a dialect's wire format.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from blogwire.models.blog_post import BlogPost


class PostCodec(ABC):
    """
    Abstract base class for dialect codecs.
    """

    @abstractmethod
    def encode_post(self, post: BlogPost, private: bool) -> Any:
        """
        Build the wire payload for creating or modifying a post.

        Args:
            post: The post to encode
            private: Publish gate to send; may differ from post.private
                while a post is being created silently

        Returns:
            The dialect's payload (an XML-RPC struct or an Atom entry)
        """
        pass

    @abstractmethod
    def decode_post(self, data: Any, post: BlogPost) -> BlogPost:
        """
        Fill a post from a server response.

        Args:
            data: The response payload for one post
            post: The post to update in place

        Returns:
            The same post, for convenience

        Raises:
            ParsingError: If the payload does not have the expected shape
        """
        pass

    @abstractmethod
    def format_datetime(self, value: datetime) -> Any:
        """
        Convert an aware datetime into the dialect's date representation.

        Raises:
            ValueError: If value is naive
        """
        pass
