"""
Data models for posts, media objects and comments.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional
import frontmatter
from dateutil import parser as date_parser

from blogwire.models.status import (
    CommentStatus,
    MediaStatus,
    PostStatus,
    Status,
    validate_transition,
)

MORE_SEPARATOR = "<!--more-->"


def require_aware(value: Optional[datetime], name: str) -> None:
    """Reject naive datetimes; every timestamp must carry its UTC offset."""
    if value is not None and (
        value.tzinfo is None or value.tzinfo.utcoffset(value) is None
    ):
        raise ValueError(f"{name} must be timezone-aware, got naive {value!r}")


class _Lifecycle:
    """Status bookkeeping shared by posts, media and comments."""

    status: Status
    error: str

    def set_status(self, status: Status) -> None:
        """
        Move the object to a new status.

        Raises:
            InvalidStatusTransition: If the lifecycle table forbids the move
        """
        validate_transition(self.status, status)
        self.status = status
        if status.name != "ERROR":
            self.error = ""

    def mark_error(self, message: str) -> None:
        """Move the object to Error and remember the message."""
        validate_transition(self.status, type(self.status).ERROR)
        self.status = type(self.status).ERROR
        self.error = message


@dataclass(eq=False)
class BlogPost(_Lifecycle):
    """
    A blog post owned by the caller.

    Clients only ever mutate fields of a post; they never keep a strong
    reference to it beyond the call that is in flight.
    """

    title: str = ""
    content: str = ""
    post_id: str = ""
    additional_content: str = ""
    slug: str = ""
    summary: str = ""
    tags: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    private: bool = False
    comment_allowed: bool = True
    trackback_allowed: bool = True
    creation_time: Optional[datetime] = None
    modification_time: Optional[datetime] = None
    link: str = ""
    perma_link: str = ""
    status: PostStatus = PostStatus.NEW
    error: str = ""

    def __post_init__(self):
        require_aware(self.creation_time, "creation_time")
        require_aware(self.modification_time, "modification_time")

    @classmethod
    def from_frontmatter(cls, text: str) -> "BlogPost":
        """
        Create a BlogPost from a Markdown document with YAML front matter.

        Recognised keys: title, slug, summary, tags, categories, private
        (or draft), comments, trackbacks and date. Tags and categories may
        be lists or comma-separated strings. Naive dates are taken as UTC.
        Text after a ``<!--more-->`` marker becomes the additional content.

        Args:
            text: The full document, front matter included

        Returns:
            BlogPost instance
        """
        document = frontmatter.loads(text)
        metadata: Dict = document.metadata

        content, _, more = document.content.partition(MORE_SEPARATOR)

        date = metadata.get("date")
        if isinstance(date, str):
            date = date_parser.parse(date)
        elif not isinstance(date, datetime):
            date = None
        if date is not None and date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)

        return cls(
            title=str(metadata.get("title", "")),
            content=content.strip(),
            additional_content=more.strip(),
            slug=str(metadata.get("slug", "")),
            summary=str(metadata.get("summary", "")),
            tags=_split_list(metadata.get("tags")),
            categories=_split_list(metadata.get("categories")),
            private=bool(metadata.get("private", metadata.get("draft", False))),
            comment_allowed=bool(metadata.get("comments", True)),
            trackback_allowed=bool(metadata.get("trackbacks", True)),
            creation_time=date,
            modification_time=date,
        )


@dataclass(eq=False)
class BlogMedia(_Lifecycle):
    """A media file to upload; the server assigns its url."""

    name: str = ""
    mimetype: str = ""
    data: bytes = b""
    url: str = ""
    status: MediaStatus = MediaStatus.NEW
    error: str = ""


@dataclass(eq=False)
class BlogComment(_Lifecycle):
    """A comment on a post. The post is referenced by id in every call."""

    comment_id: str = ""
    title: str = ""
    content: str = ""
    name: str = ""
    email: str = ""
    url: str = ""
    creation_time: Optional[datetime] = None
    modification_time: Optional[datetime] = None
    status: CommentStatus = CommentStatus.NEW
    error: str = ""

    def __post_init__(self):
        require_aware(self.creation_time, "creation_time")
        require_aware(self.modification_time, "modification_time")


def _split_list(value) -> List[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []
