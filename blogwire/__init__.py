"""
Client library for publishing to blogs over the Blogger 1.0, MetaWeblog,
MovableType, GData and LiveJournal APIs.
"""

from blogwire.managers.blog_factory import BlogFactory
from blogwire.models import BlogComment, BlogMedia, BlogPost
from blogwire.utils.error_handler import BlogError, ErrorType

__version__ = "0.1.0"

__all__ = [
    "BlogFactory",
    "BlogPost",
    "BlogMedia",
    "BlogComment",
    "BlogError",
    "ErrorType",
]
