"""
Data models for posts, media, comments and categories.
"""

from .blog_post import BlogComment, BlogMedia, BlogPost
from .category import CategoryEntry, CategoryList
from .status import (
    CommentStatus,
    InvalidStatusTransition,
    MediaStatus,
    PostStatus,
)

__all__ = [
    "BlogPost",
    "BlogMedia",
    "BlogComment",
    "CategoryEntry",
    "CategoryList",
    "PostStatus",
    "MediaStatus",
    "CommentStatus",
    "InvalidStatusTransition",
]
